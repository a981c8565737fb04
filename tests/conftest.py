# tests/conftest.py
from pathlib import Path

import pytest

from idealstate.engine import TableEngine
from idealstate.store import TableStore


@pytest.fixture
def work_dir(tmp_path) -> Path:
    """Return an isolated directory for ISC documents (not created yet)."""
    return tmp_path / "MEMORY" / "Work"


@pytest.fixture
def store(work_dir) -> TableStore:
    return TableStore(work_dir)


@pytest.fixture
def engine(store) -> TableEngine:
    return TableEngine(store)


@pytest.fixture
def table(engine):
    """A freshly created, persisted table."""
    return engine.create("Add dark mode", "STANDARD")
