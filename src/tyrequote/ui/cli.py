# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

import pydantic
from dotenv import load_dotenv

from tyrequote.adapters.sheets import parse_quotation
from tyrequote.app import (
    build_app,
    delete_quote,
    export_backup,
    import_backup,
    list_quotes,
    save_quote,
    watch,
)
from tyrequote.common import configure_logging
from tyrequote.config import ConfigurationError
from tyrequote.domain.errors import ValidationError
from tyrequote.domain.sync import SaveResult

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from tyrequote.app import QuoteApp
    from tyrequote.domain.model import Quotation

log = logging.getLogger(__name__)

_UNGATED_COMMANDS = frozenset({"login", "logout"})


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Tyre shop quotations with remote sync")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Work from the local cache only, even if a web app URL is configured",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    listing = subparsers.add_parser("list", help="Refresh and list saved quotations")
    listing.add_argument(
        "--search",
        type=str,
        default="",
        help="Case-insensitive substring of the customer name",
    )
    listing.add_argument("--date", type=str, help="Only quotations dated YYYY-MM-DD")

    save = subparsers.add_parser("save", help="Create or update a quotation from a JSON file")
    save.add_argument("file", type=Path, help="JSON object using the quotation field names")

    delete = subparsers.add_parser("delete", help="Delete a quotation by id")
    delete.add_argument("id", type=str, help="Identifier shown by the list command")

    watch_cmd = subparsers.add_parser("watch", help="Keep syncing in the background")
    watch_cmd.add_argument(
        "--interval",
        type=float,
        help="Seconds between background refreshes (defaults to config)",
    )

    backup = subparsers.add_parser("backup", help="Write a JSON backup file")
    backup.add_argument("--output", type=Path, help="Directory for the backup file")

    restore = subparsers.add_parser("restore", help="Overwrite local data from a backup file")
    restore.add_argument("file", type=Path, help="Backup file to restore")

    login = subparsers.add_parser("login", help="Unlock the tool with the shop passcode")
    login.add_argument("--passcode", type=str, help="Passcode (prompted when omitted)")

    subparsers.add_parser("logout", help="Lock the tool again")

    return parser.parse_args(list(argv))


def _read_quotation(path: Path) -> Quotation:
    try:
        record = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{path} is not valid JSON: {exc.msg}") from exc
    if not isinstance(record, dict):
        raise ValidationError(f"{path} must contain a single JSON object")
    try:
        return parse_quotation(record)
    except pydantic.ValidationError as exc:
        message = f"Invalid quotation in {path}: {exc.error_count()} problem(s)"
        raise ValidationError(message) from exc


def _format_quote(quote: Quotation) -> str:
    total = "options" if quote.grand_total is None else f"{quote.grand_total:,}"
    return (
        f"{quote.date}  #{quote.quote_number or '-':<8} {quote.customer_name or '(no name)':<28}"
        f" {quote.vehicle_no or '':<12} {total:>12}  {quote.status}  [{quote.id}]"
    )


def _run(app: QuoteApp, args: argparse.Namespace) -> None:
    command = args.command
    if command == "list":
        outcome, quotes = asyncio.run(list_quotes(app, term=args.search, date=args.date))
        log.debug("Refresh outcome: %s", outcome)
        for quote in quotes:
            print(_format_quote(quote))
        print(f"{len(quotes)} quotation(s)")
    elif command == "save":
        quotation = _read_quotation(args.file)
        result = asyncio.run(save_quote(app, quotation))
        if result is SaveResult.UPLOAD_FAILED:
            log.warning(app.orchestrator.status().error)
        print(f"Saved {quotation.id} ({result})")
    elif command == "delete":
        if app.orchestrator.find(args.id) is None:
            raise ValueError(f"No quotation with id {args.id}")
        receipt = asyncio.run(delete_quote(app, args.id))
        if receipt is None:
            print(f"Deleted {args.id} locally")
        else:
            print(
                f"Deleted {args.id} (soft delete: {receipt.soft_delete},"
                f" hard delete: {receipt.hard_delete})"
            )
    elif command == "watch":
        asyncio.run(watch(app, interval=args.interval))
    elif command == "backup":
        path = export_backup(app, directory=args.output)
        print(f"Backup written to {path}")
    elif command == "restore":
        restored = import_backup(app, args.file)
        print(f"Restored {len(restored)} quotation(s)")
    else:
        raise ValueError(f"Unsupported command: {command}")


def _authenticate(app: QuoteApp, args: argparse.Namespace) -> None:
    gate = app.gate()
    if args.command == "logout":
        gate.logout()
        print("Logged out")
        return
    passcode = args.passcode if args.passcode is not None else getpass.getpass("Passcode: ")
    if not gate.login(passcode):
        raise ValueError("Incorrect passcode")
    print("Logged in")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        app = build_app(remote=not parsed_args.offline)
        if parsed_args.command in _UNGATED_COMMANDS:
            _authenticate(app, parsed_args)
            return
        if not app.gate().is_authenticated:
            raise ValueError("Locked: run the login command first")  # noqa: TRY301
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run(app, parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
