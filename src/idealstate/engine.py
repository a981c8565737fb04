"""Table engine: criteria table operations and the status/verification workflow."""

from __future__ import annotations

import logging

from idealstate.errors import InvalidArgumentError
from idealstate.models import (
    DEFAULT_EFFORT,
    CapabilityAssignment,
    CriteriaTable,
    CriterionRow,
    Source,
    Status,
    VerifyResult,
)
from idealstate.store import TableStore

logger = logging.getLogger(__name__)


def _require_text(value: str | None, name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"{name} is required")
    return str(value)


def _reason_clause(reason: str | None) -> str:
    return f" ({reason})" if reason else ""


class TableEngine:
    """Mutating operations over a :class:`CriteriaTable`.

    Every mutating method validates its input first, then mutates the table,
    appends exactly one log entry and saves through the store.  Invalid input
    therefore never reaches the table or the disk.

    Parameters
    ----------
    store:
        The :class:`TableStore` that persists each change.
    """

    def __init__(self, store: TableStore) -> None:
        self._store = store

    @property
    def store(self) -> TableStore:
        return self._store

    def current(self) -> CriteriaTable:
        """Load the current table, raising ``NoCurrentTableError`` if absent."""
        return self._store.require()

    def _commit(self, table: CriteriaTable, message: str) -> None:
        table.append_log(message)
        self._store.save(table)

    # ------------------------------------------------------------------
    # Table lifecycle
    # ------------------------------------------------------------------

    def create(self, request: str, effort: str | None = DEFAULT_EFFORT) -> CriteriaTable:
        """Create and persist a fresh table, replacing the current one.

        Does not archive the previous table; call
        :meth:`TableStore.archive_and_clear` first to keep it.
        """
        request = _require_text(request, "request")
        table = CriteriaTable(request=request, effort=effort or DEFAULT_EFFORT)
        self._commit(table, f"ISC created for: {request}")
        logger.info("Created ISC for %r (effort=%s)", request, table.effort)
        return table

    def set_phase(self, table: CriteriaTable, phase: str) -> CriteriaTable:
        phase = _require_text(phase, "phase")
        old_phase = table.phase
        table.phase = phase
        self._commit(table, f"Phase: {old_phase} → {phase}")
        return table

    def increment_iteration(self, table: CriteriaTable) -> CriteriaTable:
        table.iteration += 1
        self._commit(table, f"Starting iteration {table.iteration}")
        return table

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def add_row(
        self,
        table: CriteriaTable,
        description: str,
        source: Source | str,
        parallel: bool = True,
    ) -> CriterionRow:
        """Append a new PENDING row with the next id."""
        description = _require_text(description, "description")
        source = Source.parse(source)

        row = CriterionRow(
            id=table.next_row_id(),
            description=description,
            source=source,
            parallel=parallel,
        )
        table.rows.append(row)
        self._commit(table, f"Added row {row.id}: {description} ({source})")
        return row

    def update_row_status(
        self,
        table: CriteriaTable,
        row_id: int,
        status: Status | str,
        reason: str | None = None,
    ) -> CriterionRow:
        """Move a row to *status*.

        Any status may follow any other.  A *reason* is stored only for
        ADJUSTED and BLOCKED; without one the reason field is left as is.
        """
        status = Status.parse(status)
        row = table.find_row(row_id)

        old_status = row.status
        row.status = status
        if reason:
            if status is Status.ADJUSTED:
                row.adjusted_reason = reason
            elif status is Status.BLOCKED:
                row.blocked_reason = reason

        self._commit(table, f"Row {row_id}: {old_status} → {status}{_reason_clause(reason)}")
        return row

    def set_verify_result(
        self,
        table: CriteriaTable,
        row_id: int,
        result: VerifyResult | str,
        reason: str | None = None,
    ) -> CriterionRow:
        """Record a verification outcome for a row.

        ADJUSTED and BLOCKED force the row status to the same value, even
        over DONE.  PASS leaves the status alone; marking the row DONE is a
        separate :meth:`update_row_status` call.
        """
        result = VerifyResult.parse(result)
        row = table.find_row(row_id)

        row.verify_result = result
        if result is VerifyResult.ADJUSTED:
            row.status = Status.ADJUSTED
            if reason:
                row.adjusted_reason = reason
        elif result is VerifyResult.BLOCKED:
            row.status = Status.BLOCKED
            if reason:
                row.blocked_reason = reason

        self._commit(table, f"Verify row {row_id}: {result}{_reason_clause(reason)}")
        return row

    def set_capability(self, table: CriteriaTable, row_id: int, capability: str) -> CriterionRow:
        """Assign *capability* to a row and derive its icon."""
        capability = _require_text(capability, "capability").strip()
        row = table.find_row(row_id)

        row.capability = CapabilityAssignment.for_name(capability)
        self._commit(table, f"Row {row_id}: capability → {capability}")
        return row
