"""Base logger with shared rich components.

Provides reusable building blocks for component-specific loggers:
- BasePipelineLogger: standard logging methods routed through Python logging
- Table and panel helpers for operator-facing output on the shared console

All service loggers should inherit from BasePipelineLogger to ensure consistent output.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gateway_cache.utils.logging import console


class BasePipelineLogger:
    """Base class for service loggers.

    Provides common functionality:
    - Shared console instance
    - Standard logging methods (info, warning, error, debug, exception)
    - Table and summary panel rendering

    Subclasses add component-specific methods like shard_ready(),
    allowance_granted(), etc.
    """

    def __init__(self, logger_name: str | None = None) -> None:
        """Initialize the logger.

        Args:
            logger_name: Name for the Python logger. If None, uses the module name.
        """
        self.console: Console = console
        self._logger = logging.getLogger(logger_name or self.__class__.__module__)

    # -------------------------------------------------------------------------
    # Standard Logging (goes through Python logging)
    # -------------------------------------------------------------------------

    def info(self, message: str) -> None:
        """Log an info message."""
        self._logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self._logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self._logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self._logger.debug(message)

    def success(self, message: str) -> None:
        """Log a success message with green checkmark."""
        self.console.print(f"[green]✓[/green] {message}")

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def print_table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        style: str = "cyan",
    ) -> None:
        """Print a titled table with one row per item.

        Args:
            title: Table title
            columns: Column headers
            rows: Row values, converted with str()
            style: Header style
        """
        table = Table(title=f"[bold]{title}[/bold]", header_style=f"bold {style}")
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*(str(value) for value in row))
        self.console.print(table)

    def print_summary(
        self,
        title: str,
        *,
        stats: dict[str, int | str],
        style: str = "cyan",
    ) -> None:
        """Print a key/value summary panel.

        Args:
            title: Panel title
            stats: Statistics as {label: value}
            style: Border color style
        """
        self.console.print()

        table = Table.grid(padding=(0, 2))
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right", style="green")

        for label, value in stats.items():
            if isinstance(value, int):
                table.add_row(label, f"{value:,}")
            else:
                table.add_row(label, str(value))

        panel = Panel(
            table,
            title=f"[bold]{title}[/bold]",
            border_style=style,
            padding=(1, 2),
        )
        self.console.print(panel)
