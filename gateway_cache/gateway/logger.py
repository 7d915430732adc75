"""Rich-based logging utilities for the gateway cache layer.

Routes component messages through Python logging (so they reach the
RichHandler and any log file) and renders operator-facing tables on the
shared console.
"""

from __future__ import annotations

from typing import Any, Iterable

from gateway_cache.store.models import ShardState
from gateway_cache.utils.pipeline_logger import BasePipelineLogger
from gateway_cache.utils.time import format_unix


class GatewayLogger(BasePipelineLogger):
    """Logger for identify admission, shard state and event routing."""

    def __init__(self) -> None:
        super().__init__(__name__)

    # -------------------------------------------------------------------------
    # Identify admission
    # -------------------------------------------------------------------------

    def waiting_for_allowance(self, shard_id: int, bucket: int) -> None:
        self._logger.info(f"Shard {shard_id} (bucket {bucket}) waiting for identify allowance...")

    def allowance_granted(self, shard_id: int, bucket: int, attempts: int) -> None:
        self._logger.info(
            f"Shard {shard_id} (bucket {bucket}) got identify allowance "
            f"after {attempts} attempt{'s' if attempts != 1 else ''}"
        )

    def allowance_error(self, shard_id: int, bucket: int, error: Exception) -> None:
        self._logger.error(
            f"Error getting identify allowance for shard {shard_id} (bucket {bucket}): {error}"
        )

    # -------------------------------------------------------------------------
    # Shard state
    # -------------------------------------------------------------------------

    def shard_ready(self, shard_id: int) -> None:
        self._logger.info(f"Shard {shard_id} ready")

    def shard_closed(self, shard_id: int, code: int | None, count: int) -> None:
        reason = f" (close code {code})" if code is not None else ""
        self._logger.warning(
            f"Shard {shard_id} closed{reason}, {count} disconnection(s) so far"
        )

    # -------------------------------------------------------------------------
    # Event routing
    # -------------------------------------------------------------------------

    def event_failed(self, shard_id: int, event_name: str, error: Exception) -> None:
        """Log a per-event failure with its traceback; the stream continues."""
        self._logger.error(
            f"Error processing {event_name or 'event'} on shard {shard_id}: {error}",
            exc_info=error,
        )

    # -------------------------------------------------------------------------
    # Operator output
    # -------------------------------------------------------------------------

    def shard_table(self, shards: Iterable[ShardState]) -> None:
        """Render shard health records as a table."""
        rows = [
            (
                state.shard_id,
                "[green]up[/green]" if state.up else "[red]down[/red]",
                f"{state.latency} ms",
                format_unix(state.last_heartbeat),
                format_unix(state.last_connection),
                state.disconnection_count,
            )
            for state in shards
        ]
        self.print_table(
            "Shard Status",
            ["Shard", "State", "Latency", "Last heartbeat", "Last connection", "Disconnects"],
            rows,
        )

    def summary(self, **stats: Any) -> None:
        """Print a key/value summary panel."""
        self.print_summary("Gateway Cache", stats=stats)


# Global logger instance
logger = GatewayLogger()
