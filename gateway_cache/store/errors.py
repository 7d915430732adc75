"""Error types raised by the cache layer."""

from __future__ import annotations


class CacheError(Exception):
    """Base class for all cache layer errors."""


class StoreError(CacheError):
    """Raised when the store cannot be reached or rejects a command.

    Transient: the event that triggered it may be retried as a whole.
    """

    def __init__(self, command: str, message: str) -> None:
        self.command = command
        self.message = message
        super().__init__(f"Store error during {command}: {message}")


class CodecError(CacheError):
    """Raised when a cached record exists but cannot be decoded."""

    def __init__(self, record_type: str, message: str) -> None:
        self.record_type = record_type
        self.message = message
        super().__init__(f"Could not decode {record_type}: {message}")


class InvariantViolation(CacheError):
    """Raised when an upstream event breaks an assumption the cache relies on."""


class EventParseError(CacheError):
    """Raised when a gateway payload cannot be turned into a typed event."""

    def __init__(self, event_name: str, message: str) -> None:
        self.event_name = event_name
        self.message = message
        super().__init__(f"Could not parse {event_name}: {message}")
