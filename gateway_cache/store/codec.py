"""Record (de)serialization for cache values.

Records are stored as compact JSON produced by pydantic, so any service that
reads the cache can decode them without sharing this package.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import ValidationError

from gateway_cache.store.errors import CodecError
from gateway_cache.store.models import CacheRecord

RecordT = TypeVar("RecordT", bound=CacheRecord)


def encode(record: CacheRecord) -> bytes:
    """Encode a record to bytes."""
    return record.model_dump_json(exclude_none=True).encode("utf-8")


def decode(model: type[RecordT], data: bytes | str) -> RecordT:
    """Decode bytes read from the store into a record.

    Raises:
        CodecError: If the bytes are not a valid encoding of ``model``.
    """
    try:
        return model.model_validate_json(data)
    except ValidationError as e:
        raise CodecError(model.__name__, str(e)) from e
