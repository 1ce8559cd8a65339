"""
CLI entry point for gadget-tracker.

The inventory lives in an encrypted export file (JSON envelope with version,
iv and data).  Every invocation decrypts it into a GadgetStore, runs one
subcommand, and re-encrypts the file if the store changed.

Usage
─────
  export GADGET_TRACKER_SECRET=my-super-secret-key

  gadget-tracker add --name "MacBook Pro" --brand Apple --price 2499
  gadget-tracker update --id gadget-3f9a0c1b2d4e --price 2399
  gadget-tracker list
  gadget-tracker find apple
  gadget-tracker history
  gadget-tracker --file ./team.json --secret s3cret total

  # Walk through add / update / export / import without touching any file
  gadget-tracker demo

Subcommands are implemented as standalone functions (cmd_add, cmd_list, …)
so they can be unit-tested without invoking argparse.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from gadget_tracker.exceptions import GadgetTrackerError, ValidationError
from gadget_tracker.store.models import EncryptedExport
from gadget_tracker.store.tracker import GadgetStore

__all__ = [
    "build_parser",
    "load_store",
    "save_store",
    "cmd_add",
    "cmd_update",
    "cmd_delete",
    "cmd_list",
    "cmd_find",
    "cmd_history",
    "cmd_total",
    "cmd_demo",
    "main",
]

logger = logging.getLogger(__name__)

SECRET_ENV_VAR = "GADGET_TRACKER_SECRET"
DEFAULT_FILE   = "~/.gadget-tracker/inventory.json"
DEMO_SECRET    = "my-super-secret-key"

_MUTATING = {"add", "update", "delete"}


# ── Argument parser ────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    """
    Build and return the top-level argument parser.

    Subcommands: add | update | delete | list | find | history | total | demo
    """
    parser = argparse.ArgumentParser(
        prog="gadget-tracker",
        description="Track gadgets in an encrypted inventory file",
    )
    parser.add_argument(
        "--file",
        default=DEFAULT_FILE,
        metavar="PATH",
        help=f"Encrypted inventory file (default: {DEFAULT_FILE})",
    )
    parser.add_argument(
        "--secret",
        default="",
        metavar="SECRET",
        help=f"Encryption secret (or use {SECRET_ENV_VAR} env var)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable verbose debug logging",
    )

    sub = parser.add_subparsers(dest="subcommand")

    # ── add ───────────────────────────────────────────────────────────────
    add = sub.add_parser("add", help="Add a gadget")
    add.add_argument("--name", required=True, metavar="NAME", help="Gadget name")
    add.add_argument("--brand", required=True, metavar="BRAND", help="Gadget brand")
    add.add_argument("--price", required=True, type=float, metavar="PRICE", help="Price (>= 0)")

    # ── update ────────────────────────────────────────────────────────────
    upd = sub.add_parser("update", help="Change fields of an existing gadget")
    upd.add_argument("--id", required=True, metavar="ID", help="Gadget id")
    upd.add_argument("--name", default=None, metavar="NAME", help="New name")
    upd.add_argument("--brand", default=None, metavar="BRAND", help="New brand")
    upd.add_argument("--price", default=None, type=float, metavar="PRICE", help="New price")

    # ── delete ────────────────────────────────────────────────────────────
    dele = sub.add_parser("delete", help="Delete a gadget")
    dele.add_argument("--id", required=True, metavar="ID", help="Gadget id")

    # ── queries ───────────────────────────────────────────────────────────
    sub.add_parser("list", help="List gadgets, most recently added first")
    find = sub.add_parser("find", help="Search gadgets by name or brand")
    find.add_argument("query", metavar="QUERY", help="Case-insensitive substring")
    sub.add_parser("history", help="Show the change log, newest first")
    sub.add_parser("total", help="Print the total value of all gadgets")

    # ── demo ──────────────────────────────────────────────────────────────
    sub.add_parser("demo", help="Run an in-memory add/update/export/import walkthrough")

    return parser


# ── Inventory file helpers ─────────────────────────────────────────────────────


def load_store(path: Path, secret: str) -> GadgetStore:
    """
    Decrypt *path* into a new GadgetStore; a missing file yields an empty store.

    Raises:
        ValidationError: the file is not a valid export envelope.
        DecryptionError: wrong secret or corrupt file.
    """
    store = GadgetStore()
    if not path.exists():
        logger.debug("No inventory at %s; starting empty", path)
        return store
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError(f"{path} is not a JSON export envelope") from exc
    store.import_encrypted(EncryptedExport.from_dict(raw), secret)
    return store


def save_store(store: GadgetStore, path: Path, secret: str) -> None:
    """Encrypt *store* and write the envelope to *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    envelope = store.export_encrypted(secret)
    path.write_text(json.dumps(envelope.to_dict(), indent=2), encoding="utf-8")
    logger.info("Inventory written to %s", path)


# ── Command implementations ───────────────────────────────────────────────────


def cmd_add(store: GadgetStore, name: str, brand: str, price: float) -> None:
    gadget = store.add(name, brand, price)
    print(f"Added {gadget}")


def cmd_update(
    store: GadgetStore,
    gadget_id: str,
    name: Optional[str],
    brand: Optional[str],
    price: Optional[float],
) -> bool:
    """Update a gadget; returns False (and prints a notice) if the id is unknown."""
    gadget = store.update(gadget_id, name=name, brand=brand, price=price)
    if gadget is None:
        print(f"No gadget with id={gadget_id}")
        return False
    print(f"Updated {gadget}")
    return True


def cmd_delete(store: GadgetStore, gadget_id: str) -> bool:
    if not store.delete(gadget_id):
        print(f"No gadget with id={gadget_id}")
        return False
    print(f"Deleted {gadget_id}")
    return True


def cmd_list(store: GadgetStore) -> None:
    """Print all gadgets, newest first."""
    gadgets = store.list()
    if not gadgets:
        print("0 gadgets found.")
        return
    for g in gadgets:
        print(f"[{g.id}]  {g.name:<30} {g.brand:<15} {g.price:>12,.2f}")


def cmd_find(store: GadgetStore, query: str) -> None:
    matches = store.find(query)
    print(f"{len(matches)} gadget(s) matching {query!r}")
    for g in matches:
        print(f"[{g.id}]  {g.name:<30} {g.brand:<15} {g.price:>12,.2f}")


def cmd_history(store: GadgetStore) -> None:
    entries = store.history()
    if not entries:
        print("No history recorded.")
        return
    for entry in entries:
        print(entry)


def cmd_total(store: GadgetStore) -> None:
    print(f"Total value: {store.total_value():,.2f}")


def cmd_demo(secret: str = DEMO_SECRET) -> GadgetStore:
    """
    Walk through a full lifecycle in memory and return the re-imported store.

    add x2 → update the newest gadget's price → list / history →
    export_encrypted → import_encrypted into a fresh store → list.
    """
    tracker = GadgetStore()
    tracker.add("MacBook Pro", "Apple", 2499)
    tracker.add("Surface Pro 9", "Microsoft", 1599)
    tracker.update(tracker.list()[0].id, price=2399)

    print("All gadgets:")
    cmd_list(tracker)
    print("History:")
    cmd_history(tracker)

    envelope = tracker.export_encrypted(secret)
    print(f"Exported: {envelope}")

    tracker2 = GadgetStore()
    tracker2.import_encrypted(envelope, secret)
    print("Imported gadgets:")
    cmd_list(tracker2)
    return tracker2


# ── Entry point ───────────────────────────────────────────────────────────────


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point. Returns exit code."""
    parser = build_parser()
    ns = parser.parse_args(argv)

    level = logging.DEBUG if ns.debug else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")

    if ns.subcommand is None:
        parser.print_help()
        return 0

    try:
        if ns.subcommand == "demo":
            cmd_demo(ns.secret or DEMO_SECRET)
            return 0

        secret = ns.secret or os.environ.get(SECRET_ENV_VAR, "")
        if not secret:
            print(f"Error: no secret given (use --secret or {SECRET_ENV_VAR})", file=sys.stderr)
            return 1

        path = Path(ns.file).expanduser()
        store = load_store(path, secret)
        ok = True

        if ns.subcommand == "add":
            cmd_add(store, ns.name, ns.brand, ns.price)
        elif ns.subcommand == "update":
            ok = cmd_update(store, ns.id, ns.name, ns.brand, ns.price)
        elif ns.subcommand == "delete":
            ok = cmd_delete(store, ns.id)
        elif ns.subcommand == "list":
            cmd_list(store)
        elif ns.subcommand == "find":
            cmd_find(store, ns.query)
        elif ns.subcommand == "history":
            cmd_history(store)
        elif ns.subcommand == "total":
            cmd_total(store)

        if ns.subcommand in _MUTATING and ok:
            save_store(store, path, secret)
    except GadgetTrackerError as exc:
        logger.debug("%s failed", ns.subcommand, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
