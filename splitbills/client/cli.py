"""Command-line front-end for the Split Bills API."""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal, InvalidOperation

from splitbills import __version__
from splitbills.balance import Participants
from splitbills.config import get_settings
from splitbills.logging import configure_cli_logging

from .api import ApiError, TransactionApi
from .cache import Notification, TransactionCache
from .view import render_balance, render_card, render_error, render_transactions

DESCRIPTION = "Split Bills: track shared expenses between two people"


def _parse_amount(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a valid number") from exc
    if not amount.is_finite():
        raise argparse.ArgumentTypeError("Amount must be a valid number")
    return amount


def _print_notification(notification: Notification) -> None:
    # failures are re-raised by the cache and reported once by main()
    if not notification.is_error:
        print(f"{notification.title} {notification.description}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="split-bills", description=DESCRIPTION)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--api-url", help="Base URL of the backend (default: SPLITBILLS_API_URL)")
    parser.add_argument("--log-level", default=None, help="Logging level, e.g. DEBUG or WARNING")
    parser.add_argument(
        "--json-logs",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Mirror logs to artifacts/logs/splitbills.log in JSON format",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("list", help="Show every transaction, newest first")
    sub.add_parser("balance", help="Show who owes whom overall")
    sub.add_parser("health", help="Check that the backend and its database respond")

    add = sub.add_parser("add", help="Record a shared expense")
    add.add_argument("payer", help="Who paid")
    add.add_argument("description", help="What was paid for")
    add.add_argument("amount", type=_parse_amount, help="Total amount paid")
    add.add_argument("--paid", action="store_true", help="Record the expense as already settled")

    edit = sub.add_parser("edit", help="Change fields of a transaction")
    edit.add_argument("id", type=int)
    edit.add_argument("--payer")
    edit.add_argument("--description")
    edit.add_argument("--amount", type=_parse_amount)

    for name, help_text in (
        ("pay", "Mark a transaction as settled"),
        ("unpay", "Mark a transaction as pending again"),
        ("delete", "Remove a transaction"),
    ):
        command = sub.add_parser(name, help=help_text)
        command.add_argument("id", type=int)
    return parser


def _handle_list(cache: TransactionCache, participants: Participants) -> None:
    transactions = cache.read()
    print(render_transactions(transactions, participants))
    print()
    print(render_balance(transactions, participants))


def _handle_balance(cache: TransactionCache, participants: Participants) -> None:
    print(render_balance(cache.read(), participants))


def _handle_health(api: TransactionApi) -> None:
    health = api.health_check()
    print(f"API: {health.get('status')} - {health.get('message')}")
    report = api.connectivity_test()
    print(f"Database: {report.get('status')} - {report.get('message')}")


def _handle_add(args: argparse.Namespace, cache: TransactionCache, participants: Participants) -> None:
    transaction = cache.create(args.payer, args.description, args.amount, paid=args.paid)
    print(render_card(transaction, participants))


def _handle_edit(args: argparse.Namespace, cache: TransactionCache, participants: Participants) -> None:
    fields = {
        key: getattr(args, key)
        for key in ("payer", "description", "amount")
        if getattr(args, key) is not None
    }
    if not fields:
        raise ApiError("Nothing to update: pass --payer, --description or --amount")
    print(render_card(cache.update(args.id, **fields), participants))


def run(args: argparse.Namespace, api: TransactionApi, participants: Participants) -> None:
    """Dispatch the parsed command against ``api``."""

    cache = TransactionCache(api, notifier=_print_notification)
    if args.cmd == "list":
        _handle_list(cache, participants)
    elif args.cmd == "balance":
        _handle_balance(cache, participants)
    elif args.cmd == "health":
        _handle_health(api)
    elif args.cmd == "add":
        _handle_add(args, cache, participants)
    elif args.cmd == "edit":
        _handle_edit(args, cache, participants)
    elif args.cmd in {"pay", "unpay"}:
        cache.toggle_paid(args.id, args.cmd == "pay")
    elif args.cmd == "delete":
        cache.delete(args.id)
    else:  # pragma: no cover - argparse restricts choices
        raise ValueError(f"Unknown command {args.cmd}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_cli_logging(json_logs=bool(args.json_logs), level=args.log_level or "WARNING")
    settings = get_settings()
    api = TransactionApi(args.api_url)
    participants = Participants(settings.primary, settings.secondary)
    try:
        run(args, api, participants)
    except ApiError as exc:
        print(render_error(exc), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
