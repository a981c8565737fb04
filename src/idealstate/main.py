"""ISC: Ideal State Criteria table manager. Command-line entry point."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from idealstate.config_loader import ISCConfig, load_config
from idealstate.engine import TableEngine
from idealstate.errors import ISCError
from idealstate.logging_config import setup_logging
from idealstate.models import DEFAULT_EFFORT
from idealstate.rendering import render_log, render_summary, render_table, summary_payload
from idealstate.store import TableStore

logger = logging.getLogger(__name__)


def build_engine(config: ISCConfig) -> TableEngine:
    """Return an engine over the store described by *config*."""
    store = TableStore(
        config.work_dir,
        current_filename=config.current_filename,
        archive_prefix=config.archive_prefix,
    )
    return TableEngine(store)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_create(engine: TableEngine, args) -> None:
    table = engine.create(args.request, args.effort)
    print(f"ISC created for: {table.request}")
    print(f"Effort: {table.effort}")
    print(f"Saved to: {engine.store.current_path}")


def _cmd_add(engine: TableEngine, args) -> None:
    table = engine.current()
    row = engine.add_row(table, args.description, args.source, parallel=args.parallel)
    print(f"Added row {row.id}: {row.description} ({row.source})")


def _cmd_update(engine: TableEngine, args) -> None:
    table = engine.current()
    row = engine.update_row_status(table, args.row, args.status, args.reason)
    print(f"Row {row.id}: {row.status}")


def _cmd_capability(engine: TableEngine, args) -> None:
    table = engine.current()
    row = engine.set_capability(table, args.row, args.capability)
    print(f"Row {row.id}: capability → {row.capability_name} ({row.capability_icon})")


def _cmd_verify(engine: TableEngine, args) -> None:
    table = engine.current()
    row = engine.set_verify_result(table, args.row, args.result, args.reason)
    print(f"Row {row.id} verified: {row.verify_result}")


def _cmd_phase(engine: TableEngine, args) -> None:
    table = engine.current()
    engine.set_phase(table, args.phase.upper())
    print(f"Phase set to: {table.phase}")


def _cmd_iterate(engine: TableEngine, args) -> None:
    table = engine.current()
    engine.increment_iteration(table)
    print(f"Now on iteration: {table.iteration}")


def _cmd_show(engine: TableEngine, args) -> None:
    table = engine.current()
    if args.output == "raw":
        print(json.dumps(table.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(render_table(table))


def _cmd_log(engine: TableEngine, args) -> None:
    print(render_log(engine.current()))


def _cmd_summary(engine: TableEngine, args) -> None:
    table = engine.current()
    if args.output == "raw":
        print(json.dumps(summary_payload(table), indent=2))
    else:
        print(render_summary(table), end="")


def _cmd_clear(engine: TableEngine, args) -> None:
    archive_path = engine.store.archive_and_clear()
    if archive_path is None:
        print("No current ISC to clear.")
        return
    print(f"Archived to: {archive_path}")
    print("Current ISC cleared.")


_COMMANDS = {
    "create": _cmd_create,
    "add": _cmd_add,
    "update": _cmd_update,
    "capability": _cmd_capability,
    "verify": _cmd_verify,
    "phase": _cmd_phase,
    "iterate": _cmd_iterate,
    "show": _cmd_show,
    "log": _cmd_log,
    "summary": _cmd_summary,
    "clear": _cmd_clear,
}


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="isc", description="Manage Ideal State Criteria tables")
    parser.add_argument("--work-dir", default=None, help="Directory holding the ISC documents")
    parser.add_argument("--config", default=None, help="YAML configuration file")
    sub = parser.add_subparsers(dest="command", help="Available commands")

    create_parser = sub.add_parser("create", help="Create new ISC table")
    create_parser.add_argument("-r", "--request", required=True, help="Request text")
    create_parser.add_argument("-e", "--effort", default=DEFAULT_EFFORT, help="Effort level")

    add_parser = sub.add_parser("add", help="Add a row to current ISC")
    add_parser.add_argument("-d", "--description", required=True, help="Row description")
    add_parser.add_argument("-s", "--source", default="EXPLICIT",
                            help="Source: EXPLICIT, INFERRED, IMPLICIT")
    add_parser.add_argument("--parallel", action=argparse.BooleanOptionalAction, default=True,
                            help="Row can run in parallel (default: true)")

    update_parser = sub.add_parser("update", help="Update row status")
    update_parser.add_argument("--row", type=int, required=True, help="Row ID")
    update_parser.add_argument("--status", required=True,
                               help="Status: PENDING, ACTIVE, DONE, ADJUSTED, BLOCKED")
    update_parser.add_argument("--reason", default=None, help="Reason for adjustment/block")

    cap_parser = sub.add_parser("capability", help="Set capability for a row")
    cap_parser.add_argument("--row", type=int, required=True, help="Row ID")
    cap_parser.add_argument("-c", "--capability", required=True,
                            help="Capability, e.g. research.perplexity, thinking.ultrathink")

    verify_parser = sub.add_parser("verify", help="Set verification result for a row")
    verify_parser.add_argument("--row", type=int, required=True, help="Row ID")
    verify_parser.add_argument("--result", required=True, help="Result: PASS, ADJUSTED, BLOCKED")
    verify_parser.add_argument("--reason", default=None, help="Reason for adjustment/block")

    phase_parser = sub.add_parser("phase", help="Set current phase")
    phase_parser.add_argument("-p", "--phase", required=True, help="Phase name")

    sub.add_parser("iterate", help="Increment iteration counter")

    show_parser = sub.add_parser("show", help="Display current ISC table")
    show_parser.add_argument("-o", "--output", default="text", choices=["text", "markdown", "raw"])

    sub.add_parser("log", help="Show evolution log")

    summary_parser = sub.add_parser("summary", help="Show status summary")
    summary_parser.add_argument("-o", "--output", default="text", choices=["text", "raw"])

    sub.add_parser("clear", help="Archive and clear current ISC")

    return parser


def run(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the command and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    try:
        config = load_config(
            path=Path(args.config) if args.config else None,
            work_dir=args.work_dir,
        )
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    setup_logging(config.log_format, config.log_level)

    engine = build_engine(config)
    try:
        _COMMANDS[args.command](engine, args)
    except ISCError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        logger.exception("Command %s failed", args.command)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def cli_main():
    # Load .env before anything else so env vars are available immediately
    load_dotenv()
    sys.exit(run())


if __name__ == "__main__":
    cli_main()
