from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from jigorders.app import OrderService
from jigorders.config import configure_logging
from jigorders.domain.model import OrderKind

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

KIND_CHOICES = [kind.value for kind in OrderKind]


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile jig tooling purchase and cutting orders")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create or upgrade the database schema")
    subparsers.add_parser("status", help="Report database connectivity")

    submit = subparsers.add_parser("submit", help="Reconcile a batch of generated orders")
    submit.add_argument("kind", choices=KIND_CHOICES)
    submit.add_argument(
        "payload",
        type=str,
        help='Path to a JSON file with {"orders": [...]}, or "-" for stdin',
    )

    manual = subparsers.add_parser("manual", help="Submit manually entered purchase plans")
    manual.add_argument("payload", type=str, help='Path to a JSON file, or "-" for stdin')

    set_status = subparsers.add_parser("set-status", help="Change the status of one order")
    set_status.add_argument("kind", choices=KIND_CHOICES)
    set_status.add_argument("order_id", type=str)
    set_status.add_argument("status", type=str)

    delete = subparsers.add_parser("delete", help="Delete orders by id")
    delete.add_argument("kind", choices=KIND_CHOICES)
    delete.add_argument("order_ids", nargs="+", type=str)

    listing = subparsers.add_parser("list", help="List orders, newest first")
    listing.add_argument("kind", choices=KIND_CHOICES)
    listing.add_argument("--page", type=int, default=1)
    listing.add_argument("--page-size", type=int, default=20)
    listing.add_argument("--search", type=str, help="Case-insensitive text filter")
    listing.add_argument("--status", dest="status_filter", type=str, help="Only this status")

    summary = subparsers.add_parser("summary", help="Order counts and totals")
    summary.add_argument("kind", choices=KIND_CHOICES)

    return parser.parse_args(list(argv))


def _load_payload(source: str) -> dict[str, Any]:
    try:
        raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read payload {source}: {exc}") from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Payload {source} is not valid JSON: {exc}") from exc
    if isinstance(payload, list):
        payload = {"orders": payload}
    if not isinstance(payload, dict):
        raise ValueError(f"Payload {source} must be a JSON object or array")
    return payload


def _emit(response: dict[str, Any]) -> None:
    print(json.dumps(response, ensure_ascii=False, indent=2))  # noqa: T201


def _dispatch(service: OrderService, args: argparse.Namespace) -> dict[str, Any]:
    if args.command == "init-db":
        return {"success": True}
    if args.command == "status":
        return service.database_status()
    if args.command == "submit":
        return service.submit_orders(args.kind, _load_payload(args.payload))
    if args.command == "manual":
        return service.submit_manual_plans(_load_payload(args.payload))
    if args.command == "set-status":
        return service.update_order_status(args.kind, args.order_id, args.status)
    if args.command == "delete":
        return service.delete_orders(args.kind, args.order_ids)
    if args.command == "list":
        return service.list_orders(
            args.kind,
            page=args.page,
            page_size=args.page_size,
            search=args.search,
            status=args.status_filter,
        )
    if args.command == "summary":
        return service.summarize_orders(args.kind)
    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        service = OrderService.from_environment()
        service.start(prewarm=False)
        try:
            response = _dispatch(service, parsed_args)
        finally:
            service.close()
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)

    _emit(response)
    if not response.get("success"):
        sys.exit(2 if response.get("code") == "VALIDATION_ERROR" else 1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
