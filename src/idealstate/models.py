"""Data model for Ideal State Criteria tables.

The on-disk document keeps the camelCase keys of the ISC JSON format
(``lastModified``, ``capabilityIcon``, ...); the Python side uses snake_case
attributes and converts in :meth:`CriteriaTable.to_dict` /
:meth:`CriteriaTable.from_dict`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from idealstate.capabilities import icon_for
from idealstate.errors import InvalidArgumentError, RowNotFoundError, TableParseError


def _utcnow() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def _text_field(data: dict, key: str, where: str, required: bool = True) -> str | None:
    """Return ``data[key]`` as a string, raising TableParseError on a wrong type."""
    if key not in data or data[key] is None:
        if required:
            raise TableParseError(None, f"{where} is missing required key {key!r}")
        return None
    value = data[key]
    if not isinstance(value, str):
        raise TableParseError(
            None, f"{where} field {key!r} must be a string, got {type(value).__name__}",
        )
    return value


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class _ParsableEnum(StrEnum):
    @classmethod
    def parse(cls, value: Any):
        """Return the member matching *value*, ignoring case.

        Raises :class:`InvalidArgumentError` for anything unrecognised.
        """
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().upper()
        try:
            return cls(text)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise InvalidArgumentError(
                f"Invalid {cls.__name__.lower()} {value!r}: must be one of {allowed}"
            ) from None


class Source(_ParsableEnum):
    EXPLICIT = "EXPLICIT"
    INFERRED = "INFERRED"
    IMPLICIT = "IMPLICIT"


class Status(_ParsableEnum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    DONE = "DONE"
    ADJUSTED = "ADJUSTED"
    BLOCKED = "BLOCKED"


class VerifyResult(_ParsableEnum):
    PASS = "PASS"
    ADJUSTED = "ADJUSTED"
    BLOCKED = "BLOCKED"


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CapabilityAssignment:
    """An assigned capability and the icon derived from it."""

    name: str
    icon: str

    @classmethod
    def for_name(cls, name: str) -> CapabilityAssignment:
        return cls(name=name, icon=icon_for(name))


@dataclass
class CriterionRow:
    """One verifiable criterion in a table."""

    id: int
    description: str
    source: Source
    status: Status = Status.PENDING
    parallel: bool = True
    capability: CapabilityAssignment | None = None
    result: str | None = None
    adjusted_reason: str | None = None
    blocked_reason: str | None = None
    verify_result: VerifyResult | None = None
    timestamp: str = field(default_factory=_utcnow)

    @property
    def capability_name(self) -> str | None:
        return self.capability.name if self.capability else None

    @property
    def capability_icon(self) -> str | None:
        return self.capability.icon if self.capability else None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "source": self.source.value,
            "status": self.status.value,
            "parallel": self.parallel,
        }
        if self.capability is not None:
            data["capability"] = self.capability.name
            data["capabilityIcon"] = self.capability.icon
        if self.result is not None:
            data["result"] = self.result
        if self.adjusted_reason is not None:
            data["adjustedReason"] = self.adjusted_reason
        if self.blocked_reason is not None:
            data["blockedReason"] = self.blocked_reason
        if self.verify_result is not None:
            data["verifyResult"] = self.verify_result.value
        data["timestamp"] = self.timestamp
        return data

    @classmethod
    def from_dict(cls, data: dict) -> CriterionRow:
        if not isinstance(data, dict):
            raise TableParseError(None, f"row must be an object, got {type(data).__name__}")
        row_id = data.get("id")
        if not isinstance(row_id, int) or isinstance(row_id, bool):
            raise TableParseError(None, f"row id must be an integer, got {row_id!r}")
        where = f"row {row_id}"

        description = _text_field(data, "description", where)
        timestamp = _text_field(data, "timestamp", where)
        try:
            source = Source.parse(_text_field(data, "source", where))
            status = Status.parse(_text_field(data, "status", where))
            verify_text = _text_field(data, "verifyResult", where, required=False)
            verify_result = VerifyResult.parse(verify_text) if verify_text is not None else None
        except InvalidArgumentError as exc:
            raise TableParseError(None, f"{where}: {exc}") from exc

        parallel = data.get("parallel", True)
        if not isinstance(parallel, bool):
            raise TableParseError(
                None, f"{where} field 'parallel' must be a boolean, got {parallel!r}",
            )

        # An icon without a capability is dropped; a capability without an
        # icon gets one derived.
        capability = None
        cap_name = _text_field(data, "capability", where, required=False)
        if cap_name:
            icon = _text_field(data, "capabilityIcon", where, required=False)
            capability = CapabilityAssignment(name=cap_name, icon=icon or icon_for(cap_name))

        return cls(
            id=row_id,
            description=description,
            source=source,
            status=status,
            parallel=parallel,
            capability=capability,
            result=_text_field(data, "result", where, required=False),
            adjusted_reason=_text_field(data, "adjustedReason", where, required=False),
            blocked_reason=_text_field(data, "blockedReason", where, required=False),
            verify_result=verify_result,
            timestamp=timestamp,
        )


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


DEFAULT_PHASE = "OBSERVE"
DEFAULT_EFFORT = "STANDARD"


@dataclass
class CriteriaTable:
    """The criteria table for one request, with its audit log."""

    request: str
    effort: str = DEFAULT_EFFORT
    created: str = field(default_factory=_utcnow)
    last_modified: str = ""
    phase: str = DEFAULT_PHASE
    iteration: int = 1
    rows: list[CriterionRow] = field(default_factory=list)
    log: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.last_modified:
            self.last_modified = self.created

    def next_row_id(self) -> int:
        return len(self.rows) + 1

    def find_row(self, row_id: int) -> CriterionRow:
        """Return the row with *row_id* or raise :class:`RowNotFoundError`."""
        for row in self.rows:
            if row.id == row_id:
                return row
        raise RowNotFoundError(row_id)

    def append_log(self, message: str) -> str:
        """Append a timestamped entry to the audit log and return it."""
        entry = f"[{_utcnow()}] {message}"
        self.log.append(entry)
        return entry

    def to_dict(self) -> dict:
        return {
            "request": self.request,
            "effort": self.effort,
            "created": self.created,
            "lastModified": self.last_modified,
            "phase": self.phase,
            "iteration": self.iteration,
            "rows": [row.to_dict() for row in self.rows],
            "log": list(self.log),
        }

    @classmethod
    def from_dict(cls, data: Any) -> CriteriaTable:
        """Build a table from its document form.

        Raises
        ------
        TableParseError
            If required keys are missing or have the wrong shape.
        """
        if not isinstance(data, dict):
            raise TableParseError(None, f"document must be an object, got {type(data).__name__}")
        missing = [
            key for key in ("request", "effort", "created", "phase", "iteration", "rows", "log")
            if key not in data
        ]
        if missing:
            raise TableParseError(None, f"document is missing keys: {', '.join(missing)}")

        iteration = data["iteration"]
        if not isinstance(iteration, int) or isinstance(iteration, bool) or iteration < 1:
            raise TableParseError(None, f"iteration must be an integer >= 1, got {iteration!r}")
        if not isinstance(data["rows"], list):
            raise TableParseError(None, "rows must be a list")
        if not isinstance(data["log"], list):
            raise TableParseError(None, "log must be a list")

        if not all(isinstance(entry, str) for entry in data["log"]):
            raise TableParseError(None, "log entries must be strings")

        created = _text_field(data, "created", "document")
        return cls(
            request=_text_field(data, "request", "document"),
            effort=_text_field(data, "effort", "document"),
            created=created,
            last_modified=_text_field(data, "lastModified", "document", required=False) or created,
            phase=_text_field(data, "phase", "document"),
            iteration=iteration,
            rows=[CriterionRow.from_dict(r) for r in data["rows"]],
            log=list(data["log"]),
        )
