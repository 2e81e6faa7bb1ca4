from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from pimsync.adapters.document import DocumentError, load_document
from pimsync.adapters.sqlalchemy import dump_record
from pimsync.app import (
    apply_document,
    destroy_resources,
    import_resource,
    list_state,
    lookup_resource,
    refresh_state,
)
from pimsync.common import configure_logging
from pimsync.config import ConfigurationError
from pimsync.domain.errors import MissingEntityError
from pimsync.domain.lifecycle import UnknownAddressError
from pimsync.domain.model import EntityKind

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from pimsync.domain.model import Record
    from pimsync.domain.ports import StateEntry

log = logging.getLogger(__name__)

_REDACTED_FIELDS = frozenset({"secret"})


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile Bluestone PIM configuration")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply = subparsers.add_parser("apply", help="Apply a desired-state document")
    apply.add_argument("file", help="Path to the JSON document")
    apply.add_argument(
        "--no-prune",
        dest="prune",
        action="store_false",
        help="Keep recorded resources the document no longer lists",
    )
    apply.add_argument(
        "--no-replace",
        dest="allow_replace",
        action="store_false",
        help="Fail instead of recreating resources whose immutable fields changed",
    )

    subparsers.add_parser("refresh", help="Re-read every recorded resource")

    destroy = subparsers.add_parser("destroy", help="Delete recorded resources")
    destroy.add_argument("address", nargs="?", help="Single address to destroy (default: all)")

    import_ = subparsers.add_parser("import", help="Adopt an existing remote resource")
    import_.add_argument("address", help="Address to record it under, e.g. category.shoes")
    import_.add_argument(
        "id",
        help="Remote identifier; '<category id>/<attribute id>' for category attributes",
    )

    lookup = subparsers.add_parser("lookup", help="Print a remote resource without recording it")
    lookup.add_argument("kind", choices=[kind.value for kind in EntityKind])
    lookup.add_argument(
        "id",
        help="Remote identifier; '<category id>/<attribute id>' for category attributes",
    )

    show = subparsers.add_parser("show", help="Print the recorded state")
    show.add_argument("address", nargs="?", help="Single address to show (default: all)")

    return parser.parse_args(list(argv))


def _redacted(kind: EntityKind, record: Record) -> dict[str, object]:
    rendered = json.loads(dump_record(kind, record))
    for name in _REDACTED_FIELDS.intersection(rendered):
        if rendered[name] is not None:
            rendered[name] = "<redacted>"
    return rendered


def _render(entry: StateEntry) -> dict[str, object]:
    return {
        "address": entry.address,
        "kind": entry.kind.value,
        "record": _redacted(entry.kind, entry.record),
    }


def _run(parsed_args: argparse.Namespace) -> None:
    if parsed_args.command == "apply":
        report = apply_document(
            load_document(parsed_args.file),
            prune=parsed_args.prune,
            allow_replace=parsed_args.allow_replace,
        )
        log.info("Apply complete: %s", report.summary())
    elif parsed_args.command == "refresh":
        result = refresh_state()
        log.info(
            "Refresh complete: refreshed=%s, removed=%s",
            len(result.refreshed),
            len(result.removed),
        )
    elif parsed_args.command == "destroy":
        destroyed = destroy_resources(address=parsed_args.address)
        log.info("Destroyed %s resources", len(destroyed))
    elif parsed_args.command == "import":
        record = import_resource(parsed_args.address, parsed_args.id)
        log.info("Imported %s (%s)", parsed_args.address, record.key)
    elif parsed_args.command == "lookup":
        kind = EntityKind(parsed_args.kind)
        found = lookup_resource(kind, parsed_args.id)
        if found is None:
            raise MissingEntityError(f"No {kind} with id {parsed_args.id}").bind(
                kind=kind, key=parsed_args.id, step="read"
            )
        sys.stdout.write(json.dumps(_redacted(kind, found), indent=2) + "\n")
    elif parsed_args.command == "show":
        entries = list_state(address=parsed_args.address)
        if parsed_args.address is not None and not entries:
            raise UnknownAddressError(parsed_args.address)
        sys.stdout.write(json.dumps([_render(entry) for entry in entries], indent=2) + "\n")
    else:
        raise ValueError(f"Unsupported command: {parsed_args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        _run(parsed_args)
    except (DocumentError, ConfigurationError, UnknownAddressError, ValueError):
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Reconciliation failed")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(130)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
