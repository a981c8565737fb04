"""Load storage and logging configuration from YAML and the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from idealstate.store import DEFAULT_ARCHIVE_PREFIX, DEFAULT_CURRENT_FILENAME

logger = logging.getLogger(__name__)

DEFAULT_PAI_DIR = Path.home() / ".config" / "pai"
WORK_SUBDIR = Path("MEMORY") / "Work"

_LOG_FORMATS = ("dev", "json")


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _get_section(data: dict, key: str, context: str) -> dict:
    """Return ``data[key]`` as a dict, raising ValueError on a wrong type."""
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' in {context} must be a mapping, got {type(value).__name__}")
    return value


def _validate_filename(value: Any, name: str) -> str:
    """Validate that *value* is a bare file name (no directories)."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config '{name}' must be a non-empty string, got {value!r}")
    if os.sep in value or (os.altsep and os.altsep in value) or value in (".", ".."):
        raise ValueError(f"Config '{name}' must be a bare file name, got {value!r}")
    return value


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class ISCConfig:
    """Where the criteria table lives and how the CLI logs."""

    work_dir: Path
    current_filename: str = DEFAULT_CURRENT_FILENAME
    archive_prefix: str = DEFAULT_ARCHIVE_PREFIX
    log_format: str = "dev"
    log_level: str = "WARNING"


def default_work_dir(env: dict[str, str] | None = None) -> Path:
    """Return ``$PAI_DIR/MEMORY/Work``, or the ``~/.config/pai`` equivalent."""
    env = os.environ if env is None else env
    pai_dir = env.get("PAI_DIR")
    base = Path(pai_dir).expanduser() if pai_dir else DEFAULT_PAI_DIR
    return base / WORK_SUBDIR


def load_config(
    path: Path | None = None,
    work_dir: Path | str | None = None,
    env: dict[str, str] | None = None,
) -> ISCConfig:
    """Resolve the configuration.

    Parameters
    ----------
    path:
        Optional YAML file.  A missing file is an error only when given
        explicitly.
    work_dir:
        Explicit work directory; wins over everything else.
    env:
        Environment mapping, defaults to ``os.environ``.

    The work directory is resolved in order: *work_dir*, ``ISC_WORK_DIR``,
    ``storage.work_dir`` from the YAML file, then :func:`default_work_dir`.

    Raises
    ------
    FileNotFoundError
        If *path* is given but does not exist.
    ValueError
        If a configured value is malformed.
    """
    env = os.environ if env is None else env
    data: dict = {}
    if path is not None:
        if not path.exists():
            raise FileNotFoundError(f"ISC config not found: {path}")
        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"ISC config {path} must be a mapping")

    storage = _get_section(data, "storage", "config")
    logging_raw = _get_section(data, "logging", "config")

    if work_dir is not None:
        resolved = Path(work_dir)
    elif env.get("ISC_WORK_DIR"):
        resolved = Path(env["ISC_WORK_DIR"])
    elif storage.get("work_dir"):
        resolved = Path(str(storage["work_dir"]))
    else:
        resolved = default_work_dir(env)

    log_format = env.get("LOG_FORMAT") or logging_raw.get("format", "dev")
    if log_format not in _LOG_FORMATS:
        raise ValueError(f"Config 'logging.format' must be one of {_LOG_FORMATS}, got {log_format!r}")

    config = ISCConfig(
        work_dir=resolved.expanduser(),
        current_filename=_validate_filename(
            storage.get("current_file", DEFAULT_CURRENT_FILENAME), "storage.current_file",
        ),
        archive_prefix=_validate_filename(
            storage.get("archive_prefix", DEFAULT_ARCHIVE_PREFIX), "storage.archive_prefix",
        ),
        log_format=log_format,
        log_level=str(env.get("LOG_LEVEL") or logging_raw.get("level", "WARNING")),
    )
    logger.debug("Resolved ISC work dir: %s", config.work_dir)
    return config
