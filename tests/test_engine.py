"""Tests for idealstate.engine — table operations and the status/verify workflow."""

from __future__ import annotations

import pytest

from idealstate.capabilities import DEFAULT_ICON
from idealstate.errors import InvalidArgumentError, NoCurrentTableError, RowNotFoundError
from idealstate.models import Source, Status, VerifyResult
from idealstate.rendering import summary


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class TestCreate:
    def test_create_initial_state(self, engine):
        table = engine.create("Add dark mode", "STANDARD")
        assert table.phase == "OBSERVE"
        assert table.iteration == 1
        assert table.rows == []
        assert len(table.log) == 1
        assert table.log[0].endswith("ISC created for: Add dark mode")

    def test_create_persists_immediately(self, engine, store):
        engine.create("Add dark mode")
        loaded = store.load()
        assert loaded is not None
        assert loaded.request == "Add dark mode"
        assert loaded.effort == "STANDARD"

    def test_create_replaces_current_without_archiving(self, engine, store):
        first = engine.create("First")
        engine.add_row(first, "Row", "EXPLICIT")
        engine.create("Second")
        assert store.load().request == "Second"
        assert store.load().rows == []
        assert store.list_archives() == []

    def test_create_requires_request(self, engine, store):
        with pytest.raises(InvalidArgumentError):
            engine.create("   ")
        assert store.load() is None

    def test_current_without_table(self, engine):
        with pytest.raises(NoCurrentTableError):
            engine.current()


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


class TestAddRow:
    def test_ids_follow_call_order(self, engine, table):
        ids = [engine.add_row(table, f"Row {i}", "EXPLICIT").id for i in range(5)]
        assert ids == [1, 2, 3, 4, 5]

    def test_ids_not_reused_after_status_changes(self, engine, table):
        engine.add_row(table, "One", "EXPLICIT")
        engine.add_row(table, "Two", "EXPLICIT")
        engine.update_row_status(table, 1, "BLOCKED", "no access")
        engine.update_row_status(table, 2, "DONE")
        assert engine.add_row(table, "Three", "IMPLICIT").id == 3

    def test_new_row_defaults(self, engine, table):
        row = engine.add_row(table, "Toggle works", "explicit")
        assert row.id == 1
        assert row.status is Status.PENDING
        assert row.source is Source.EXPLICIT
        assert row.parallel is True
        assert row.capability is None
        assert row.timestamp

    def test_log_entry(self, engine, table):
        engine.add_row(table, "Tests pass", "IMPLICIT", parallel=False)
        assert table.log[-1].endswith("Added row 1: Tests pass (IMPLICIT)")
        assert table.rows[0].parallel is False

    def test_persists(self, engine, store, table):
        engine.add_row(table, "Toggle works", "EXPLICIT")
        assert [r.description for r in store.load().rows] == ["Toggle works"]

    @pytest.mark.parametrize("description", ["", "   ", None])
    def test_empty_description_rejected(self, engine, table, description):
        with pytest.raises(InvalidArgumentError):
            engine.add_row(table, description, "EXPLICIT")
        assert table.rows == []
        assert len(table.log) == 1

    def test_unknown_source_rejected(self, engine, store, table):
        with pytest.raises(InvalidArgumentError):
            engine.add_row(table, "Toggle works", "RUMOUR")
        assert table.rows == []
        assert store.load().rows == []


class TestUpdateRowStatus:
    def test_update_sets_status_and_logs(self, engine, table):
        engine.add_row(table, "Toggle works", "EXPLICIT")
        row = engine.update_row_status(table, 1, "ACTIVE")
        assert row.status is Status.ACTIVE
        assert table.log[-1].endswith("Row 1: PENDING → ACTIVE")

    def test_reason_clause_in_log(self, engine, table):
        engine.add_row(table, "Toggle works", "EXPLICIT")
        engine.update_row_status(table, 1, "BLOCKED", "waiting on design")
        assert table.log[-1].endswith("Row 1: PENDING → BLOCKED (waiting on design)")

    def test_adjusted_stores_reason(self, engine, table):
        engine.add_row(table, "Toggle works", "EXPLICIT")
        row = engine.update_row_status(table, 1, Status.ADJUSTED, "scope cut")
        assert row.adjusted_reason == "scope cut"
        assert row.blocked_reason is None

    def test_blocked_without_reason_is_accepted(self, engine, table):
        engine.add_row(table, "Toggle works", "EXPLICIT")
        row = engine.update_row_status(table, 1, "BLOCKED")
        assert row.status is Status.BLOCKED
        assert row.blocked_reason is None

    def test_reason_ignored_for_other_statuses(self, engine, table):
        engine.add_row(table, "Toggle works", "EXPLICIT")
        row = engine.update_row_status(table, 1, "DONE", "shipped")
        assert row.adjusted_reason is None
        assert row.blocked_reason is None
        assert table.log[-1].endswith("(shipped)")

    def test_missing_row(self, engine, table):
        with pytest.raises(RowNotFoundError):
            engine.update_row_status(table, 7, "DONE")
        assert len(table.log) == 1

    def test_invalid_status_leaves_row_untouched(self, engine, table):
        engine.add_row(table, "Toggle works", "EXPLICIT")
        with pytest.raises(InvalidArgumentError):
            engine.update_row_status(table, 1, "FINISHED")
        assert table.rows[0].status is Status.PENDING
        assert len(table.log) == 2


class TestSetVerifyResult:
    @pytest.fixture
    def done_row(self, engine, table):
        engine.add_row(table, "Toggle works", "EXPLICIT")
        return engine.update_row_status(table, 1, "DONE")

    def test_adjusted_forces_status(self, engine, table, done_row):
        row = engine.set_verify_result(table, 1, "ADJUSTED", "250ms instead of 200ms")
        assert row.status is Status.ADJUSTED
        assert row.adjusted_reason == "250ms instead of 200ms"
        assert row.verify_result is VerifyResult.ADJUSTED

    def test_blocked_forces_status(self, engine, table, done_row):
        row = engine.set_verify_result(table, 1, "BLOCKED", "no test env")
        assert row.status is Status.BLOCKED
        assert row.blocked_reason == "no test env"

    def test_blocked_without_reason_still_forces_status(self, engine, table, done_row):
        row = engine.set_verify_result(table, 1, VerifyResult.BLOCKED)
        assert row.status is Status.BLOCKED
        assert row.blocked_reason is None

    def test_pass_does_not_change_status(self, engine, table):
        engine.add_row(table, "Toggle works", "EXPLICIT")
        engine.update_row_status(table, 1, "ACTIVE")
        row = engine.set_verify_result(table, 1, "PASS")
        assert row.verify_result is VerifyResult.PASS
        assert row.status is Status.ACTIVE

    def test_log_entry(self, engine, table, done_row):
        engine.set_verify_result(table, 1, "ADJUSTED", "slower")
        assert table.log[-1].endswith("Verify row 1: ADJUSTED (slower)")
        engine.set_verify_result(table, 1, "PASS")
        assert table.log[-1].endswith("Verify row 1: PASS")

    def test_missing_row(self, engine, table):
        with pytest.raises(RowNotFoundError):
            engine.set_verify_result(table, 1, "PASS")


class TestSetCapability:
    def test_known_category_icon(self, engine, table):
        engine.add_row(table, "Find prior art", "INFERRED")
        row = engine.set_capability(table, 1, "research.perplexity")
        assert row.capability_name == "research.perplexity"
        assert row.capability_icon == "\U0001f52c"
        assert table.log[-1].endswith("Row 1: capability → research.perplexity")

    def test_unknown_category_uses_default(self, engine, table):
        engine.add_row(table, "Something", "INFERRED")
        row = engine.set_capability(table, 1, "unknowncat.x")
        assert row.capability_icon == DEFAULT_ICON

    def test_reassignment_replaces_icon(self, engine, table):
        engine.add_row(table, "Something", "INFERRED")
        engine.set_capability(table, 1, "research.perplexity")
        row = engine.set_capability(table, 1, "thinking.ultrathink")
        assert row.capability_icon == "\U0001f4a1"

    def test_empty_capability_rejected(self, engine, table):
        engine.add_row(table, "Something", "INFERRED")
        with pytest.raises(InvalidArgumentError):
            engine.set_capability(table, 1, "")
        assert table.rows[0].capability is None

    def test_missing_row(self, engine, table):
        with pytest.raises(RowNotFoundError):
            engine.set_capability(table, 4, "research.perplexity")


# ---------------------------------------------------------------------------
# Table-level fields
# ---------------------------------------------------------------------------


class TestPhaseAndIteration:
    def test_set_phase(self, engine, store, table):
        engine.set_phase(table, "THINK")
        assert table.phase == "THINK"
        assert table.log[-1].endswith("Phase: OBSERVE → THINK")
        assert store.load().phase == "THINK"

    def test_empty_phase_rejected(self, engine, table):
        with pytest.raises(InvalidArgumentError):
            engine.set_phase(table, "")
        assert table.phase == "OBSERVE"

    def test_increment_iteration(self, engine, store, table):
        engine.increment_iteration(table)
        engine.increment_iteration(table)
        assert table.iteration == 3
        assert table.log[-1].endswith("Starting iteration 3")
        assert store.load().iteration == 3


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


def test_end_to_end_dark_mode(engine, store):
    table = engine.create("Add dark mode", "STANDARD")
    assert (table.phase, table.iteration, table.rows, len(table.log)) == ("OBSERVE", 1, [], 1)

    row = engine.add_row(table, "Toggle works", "EXPLICIT")
    assert (row.id, row.status) == (1, Status.PENDING)

    row = engine.update_row_status(table, 1, "DONE")
    assert row.status == "DONE"
    assert len(table.log) == 3

    assert summary(table).as_dict() == {
        "total": 1, "pending": 0, "active": 0, "done": 1,
        "adjusted": 0, "blocked": 0, "parallelizable": 0,
    }
    assert store.load() == table


def test_every_mutation_appends_one_log_entry(engine, table):
    steps = [
        lambda: engine.add_row(table, "One", "EXPLICIT"),
        lambda: engine.update_row_status(table, 1, "ACTIVE"),
        lambda: engine.set_capability(table, 1, "execution.engineer"),
        lambda: engine.set_verify_result(table, 1, "PASS"),
        lambda: engine.set_phase(table, "BUILD"),
        lambda: engine.increment_iteration(table),
    ]
    for step in steps:
        before = len(table.log)
        step()
        assert len(table.log) == before + 1
