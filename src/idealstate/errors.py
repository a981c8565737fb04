"""Errors raised by the criteria table engine and store."""

from __future__ import annotations

from pathlib import Path


class ISCError(Exception):
    """Base error for criteria table operations."""


class InvalidArgumentError(ISCError, ValueError):
    """Required input is missing or malformed (empty text, unknown enum value)."""


class RowNotFoundError(ISCError, KeyError):
    """The referenced row id is not present in the current table."""

    def __init__(self, row_id: int) -> None:
        super().__init__(row_id)
        self.row_id = row_id

    def __str__(self) -> str:
        return f"Row {self.row_id} not found"


class NoCurrentTableError(ISCError):
    """An operation needs a current table but none exists."""

    def __init__(self, message: str = "No current ISC. Use 'create' first.") -> None:
        super().__init__(message)


class TableParseError(ISCError):
    """The current-table document exists but cannot be decoded."""

    def __init__(self, path: Path | str | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        where = f" at {path}" if path is not None else ""
        super().__init__(f"Cannot parse ISC document{where}: {reason}")
