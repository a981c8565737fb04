"""Table store: load/save of the current criteria table and archive-on-clear."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path

from idealstate import models
from idealstate.errors import NoCurrentTableError, TableParseError
from idealstate.models import CriteriaTable

logger = logging.getLogger(__name__)

DEFAULT_CURRENT_FILENAME = "current-isc.json"
DEFAULT_ARCHIVE_PREFIX = "archive-"


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class TableStore:
    """Persist the single current criteria table as a JSON document.

    Directory layout::

        work_dir/
          current-isc.json          # the current table (empty when cleared)
          archive-<millis>.json     # one per cleared table

    There is no locking: the last :meth:`save` wins.

    Parameters
    ----------
    work_dir:
        Directory holding the current document and its archives.  Created on
        first save.
    current_filename:
        File name of the current-table document.
    archive_prefix:
        Prefix for archive file names.
    """

    def __init__(
        self,
        work_dir: Path | str,
        current_filename: str = DEFAULT_CURRENT_FILENAME,
        archive_prefix: str = DEFAULT_ARCHIVE_PREFIX,
    ) -> None:
        self.work_dir = Path(work_dir)
        self.current_filename = current_filename
        self.archive_prefix = archive_prefix

    @property
    def current_path(self) -> Path:
        return self.work_dir / self.current_filename

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load(self) -> CriteriaTable | None:
        """Return the current table, or ``None`` when there is none.

        A missing or empty document means "no current table".  A document
        that exists but cannot be decoded raises :class:`TableParseError`.
        """
        path = self.current_path
        if not path.exists():
            return None
        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            logger.warning("Undecodable ISC document at %s: %s", path, exc)
            raise TableParseError(path, str(exc)) from exc
        if not content.strip():
            return None

        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.warning("Corrupted ISC document at %s: %s", path, exc)
            raise TableParseError(path, str(exc)) from exc

        try:
            return CriteriaTable.from_dict(data)
        except TableParseError as exc:
            logger.warning("Invalid ISC document at %s: %s", path, exc.reason)
            raise TableParseError(path, exc.reason) from exc

    def require(self) -> CriteriaTable:
        """Like :meth:`load` but raise :class:`NoCurrentTableError` if absent."""
        table = self.load()
        if table is None:
            raise NoCurrentTableError()
        return table

    def save(self, table: CriteriaTable) -> Path:
        """Stamp ``last_modified`` and write *table* as the current document.

        The document is written to a temporary file and moved into place, so
        a failed write leaves the previous document intact.  ``OSError``
        propagates to the caller.
        """
        table.last_modified = models._utcnow()
        self._write_atomic(self.current_path, self._dumps(table))
        logger.debug("Saved ISC (%d rows) to %s", len(table.rows), self.current_path)
        return self.current_path

    # ------------------------------------------------------------------
    # Archival
    # ------------------------------------------------------------------

    def archive_and_clear(self) -> Path | None:
        """Archive the current table and empty the current slot.

        Returns the archive path, or ``None`` if there was no current table.
        """
        table = self.load()
        if table is None:
            logger.info("No current ISC to clear in %s", self.work_dir)
            return None

        archive_path = self._write_archive(self._dumps(table))
        self.current_path.write_text("", encoding="utf-8")
        logger.info("Archived ISC '%s' to %s", table.request, archive_path)
        return archive_path

    def list_archives(self) -> list[Path]:
        """Return archive files in the work directory, oldest name first."""
        if not self.work_dir.is_dir():
            return []
        return sorted(self.work_dir.glob(f"{self.archive_prefix}*.json"))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _dumps(table: CriteriaTable) -> str:
        return json.dumps(table.to_dict(), indent=2, ensure_ascii=False)

    def _write_atomic(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _write_archive(self, content: str) -> Path:
        """Write *content* under a new, unused time-keyed archive name."""
        self.work_dir.mkdir(parents=True, exist_ok=True)
        stem = f"{self.archive_prefix}{_epoch_millis()}"
        suffix = 0
        while True:
            name = f"{stem}.json" if suffix == 0 else f"{stem}-{suffix}.json"
            path = self.work_dir / name
            try:
                with open(path, "x", encoding="utf-8") as f:
                    f.write(content)
                return path
            except FileExistsError:
                suffix += 1
