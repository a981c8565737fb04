"""Read-only views of a criteria table: summary counts and text reports."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from idealstate.capabilities import short_name
from idealstate.models import CriteriaTable, CriterionRow, Status

STATUS_GLYPHS: dict[Status, str] = {
    Status.PENDING: "\u23f3",
    Status.ACTIVE: "\U0001f504",
    Status.DONE: "\u2705",
    Status.ADJUSTED: "\U0001f527",
    Status.BLOCKED: "\U0001f6ab",
}

PARALLEL_MARKER = "\u00d7"
UNASSIGNED = "\u2014"

LEGEND = (
    "**Legend:** \U0001f52c Research | \U0001f4a1 Thinking | \U0001f5e3\ufe0f Debate"
    " | \U0001f50d Analysis | \U0001f916 Execution | \u2705 Verify"
    f" | {PARALLEL_MARKER} Parallel"
)


@dataclass(frozen=True)
class Summary:
    """Row counts by status."""

    total: int
    pending: int
    active: int
    done: int
    adjusted: int
    blocked: int
    parallelizable: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def summary(table: CriteriaTable) -> Summary:
    """Count rows by status.

    ``parallelizable`` counts PENDING rows that may run in parallel.
    """
    counts = {status: 0 for status in Status}
    parallelizable = 0
    for row in table.rows:
        counts[row.status] += 1
        if row.parallel and row.status is Status.PENDING:
            parallelizable += 1
    return Summary(
        total=len(table.rows),
        pending=counts[Status.PENDING],
        active=counts[Status.ACTIVE],
        done=counts[Status.DONE],
        adjusted=counts[Status.ADJUSTED],
        blocked=counts[Status.BLOCKED],
        parallelizable=parallelizable,
    )


def summary_payload(table: CriteriaTable) -> dict:
    """Summary counts plus phase and iteration, for raw output."""
    payload: dict = summary(table).as_dict()
    payload["phase"] = table.phase
    payload["iteration"] = table.iteration
    return payload


# ---------------------------------------------------------------------------
# Cell formatting
# ---------------------------------------------------------------------------


def _description_cell(row: CriterionRow) -> str:
    desc = row.description
    if row.adjusted_reason:
        desc += f" *(adjusted: {row.adjusted_reason})*"
    if row.blocked_reason:
        desc += f" *(blocked: {row.blocked_reason})*"
    return desc


def _capability_cell(row: CriterionRow) -> str:
    if row.capability is None:
        return UNASSIGNED
    display = f"{row.capability.icon} {short_name(row.capability.name)}"
    if row.parallel:
        display += PARALLEL_MARKER
    return display


def _status_cell(row: CriterionRow) -> str:
    return f"{STATUS_GLYPHS[row.status]} {row.status}"


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def render_table(table: CriteriaTable) -> str:
    """Render the table as a markdown report with a fixed five-column layout."""
    lines = [
        "## \U0001f3af IDEAL STATE CRITERIA",
        "",
        f"**Request:** {table.request}",
        f"**Effort:** {table.effort} | **Phase:** {table.phase} | **Iteration:** {table.iteration}",
        "",
        "| # | What Ideal Looks Like | Source | Capability | Status |",
        "|---|----------------------|--------|------------|--------|",
    ]
    for row in table.rows:
        lines.append(
            f"| {row.id} | {_description_cell(row)} | {row.source} "
            f"| {_capability_cell(row)} | {_status_cell(row)} |"
        )
    lines.append("")
    lines.append(LEGEND)
    return "\n".join(lines) + "\n"


def render_log(table: CriteriaTable) -> str:
    """Render the stored audit log, one entry per line."""
    lines = ["## Evolution Log", ""]
    lines.extend(table.log)
    return "\n".join(lines) + "\n"


def render_summary(table: CriteriaTable) -> str:
    s = summary(table)
    return (
        f"ISC Summary: {table.request}\n"
        f"Phase: {table.phase} | Iteration: {table.iteration}\n"
        f"Total: {s.total} | Pending: {s.pending} | Active: {s.active}\n"
        f"Done: {s.done} | Adjusted: {s.adjusted} | Blocked: {s.blocked}\n"
        f"Parallelizable: {s.parallelizable}\n"
    )
