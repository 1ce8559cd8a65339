"""
GadgetStore — in-memory gadget inventory with a change log and encrypted snapshots.

Usage::

    store = GadgetStore()

    mac = store.add("MacBook Pro", "Apple", 2499)
    store.update(mac.id, price=2399)
    store.find("apple")          # → [Gadget(...)]

    # Snapshot the whole store (gadgets + history + version)
    envelope = store.export_encrypted(secret)

    # Later, elsewhere: full overwrite of another store's state
    other = GadgetStore()
    other.import_encrypted(envelope, secret)
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from gadget_tracker.exceptions import DecryptionError, ValidationError
from gadget_tracker.store import crypto
from gadget_tracker.store.models import (
    EncryptedExport,
    Gadget,
    HistoryAction,
    HistoryEntry,
    validate_price,
    validate_text,
)

__all__ = ["GadgetStore"]

logger = logging.getLogger(__name__)

_ID_PREFIX = "gadget-"
_ID_BYTES  = 6


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class GadgetStore:
    """
    Dict-backed store of Gadget records keyed by id.

    Every value handed out is a frozen Gadget / HistoryEntry, so callers can
    only change state through add(), update(), delete() and import_encrypted().
    Not thread-safe: a host sharing one store between threads must wrap every
    call in a single lock.
    """

    def __init__(
        self,
        initial_gadgets: Optional[Iterable[Gadget]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._gadgets: dict[str, Gadget] = {}
        self._history: list[HistoryEntry] = []
        self._version: int = 1
        self._clock = clock or _utc_now
        for gadget in initial_gadgets or ():
            if not isinstance(gadget, Gadget):
                raise ValidationError(f"initial gadgets must be Gadget records, got {gadget!r}")
            self._gadgets[gadget.id] = gadget

    # ── Internal helpers ──────────────────────────────────────────────────

    def _generate_id(self) -> str:
        while True:
            gadget_id = _ID_PREFIX + os.urandom(_ID_BYTES).hex()
            if gadget_id not in self._gadgets:
                return gadget_id

    def _record(self, action: HistoryAction, gadget: Gadget) -> None:
        self._history.append(
            HistoryEntry(action=action, gadget=gadget, timestamp=self._clock())
        )

    # ── CRUD ──────────────────────────────────────────────────────────────

    @property
    def version(self) -> int:
        return self._version

    def add(self, name: str, brand: str, price: float) -> Gadget:
        """
        Create and store a new gadget.

        Raises:
            ValidationError: empty name/brand or negative price. Nothing is
                             stored or recorded in that case.
        """
        gadget = Gadget(
            id=self._generate_id(),
            name=validate_text("name", name),
            brand=validate_text("brand", brand),
            price=validate_price(price),
            added_at=self._clock(),
        )
        self._gadgets[gadget.id] = gadget
        self._record(HistoryAction.ADD, gadget)
        logger.debug("Added %s", gadget.id)
        return gadget

    def update(
        self,
        gadget_id: str,
        *,
        name: Optional[str] = None,
        brand: Optional[str] = None,
        price: Optional[float] = None,
    ) -> Optional[Gadget]:
        """
        Change the given fields of an existing gadget.

        Fields left as None keep their current value. All provided fields are
        validated before any is applied.

        Returns:
            The updated Gadget, or None if *gadget_id* is unknown.

        Raises:
            ValidationError: a provided field is invalid; the stored record
                             and the history are left unchanged.
        """
        current = self._gadgets.get(gadget_id)
        if current is None:
            return None

        changes = {}
        if name is not None:
            changes["name"] = validate_text("name", name)
        if brand is not None:
            changes["brand"] = validate_text("brand", brand)
        if price is not None:
            changes["price"] = validate_price(price)

        updated = dataclasses.replace(current, **changes)
        self._gadgets[gadget_id] = updated
        self._record(HistoryAction.UPDATE, updated)
        logger.debug("Updated %s (%s)", gadget_id, ", ".join(changes) or "no fields")
        return updated

    def delete(self, gadget_id: str) -> bool:
        """
        Remove a gadget.

        Returns:
            True if a gadget was removed, False if *gadget_id* is unknown.
        """
        gadget = self._gadgets.pop(gadget_id, None)
        if gadget is None:
            return False
        self._record(HistoryAction.DELETE, gadget)
        logger.debug("Deleted %s", gadget_id)
        return True

    def get(self, gadget_id: str) -> Optional[Gadget]:
        return self._gadgets.get(gadget_id)

    # ── Queries ───────────────────────────────────────────────────────────

    def list(self) -> list[Gadget]:
        """All gadgets, most recently added first."""
        return sorted(self._gadgets.values(), key=lambda g: g.added_at, reverse=True)

    def find(self, query: str) -> list[Gadget]:
        """Gadgets whose name or brand contains *query* (case-insensitive)."""
        q = query.lower()
        return [
            g for g in self._gadgets.values()
            if q in g.name.lower() or q in g.brand.lower()
        ]

    def total_value(self) -> float:
        return sum(g.price for g in self._gadgets.values())

    def history(self) -> list[HistoryEntry]:
        """Change log, newest entry first."""
        return sorted(self._history, key=lambda h: h.timestamp, reverse=True)

    def __len__(self) -> int:
        return len(self._gadgets)

    def __contains__(self, gadget_id: object) -> bool:
        return gadget_id in self._gadgets

    # ── Encrypted export / import ─────────────────────────────────────────

    def _payload(self) -> bytes:
        state = {
            "gadgets": [g.to_dict() for g in self._gadgets.values()],
            "history": [h.to_dict() for h in self._history],
            "version": self._version,
        }
        # ASCII-only JSON: lone surrogates survive as \uXXXX escapes
        return json.dumps(state, separators=(",", ":")).encode("utf-8")

    def export_encrypted(self, secret: str) -> EncryptedExport:
        """
        Serialize gadgets, history and version, then encrypt with AES-256-CBC.

        A new random IV is used on every call, so exporting the same state
        twice yields different ciphertexts.
        """
        iv = crypto.new_iv()
        ciphertext = crypto.encrypt(self._payload(), crypto.derive_key(secret), iv)
        logger.info(
            "Exported %d gadget(s), %d history entr(ies), version %d",
            len(self._gadgets), len(self._history), self._version,
        )
        return EncryptedExport(version=self._version, iv=iv.hex(), data=ciphertext.hex())

    def import_encrypted(self, export: EncryptedExport, secret: str) -> None:
        """
        Replace this store's entire state with the contents of *export*.

        The payload is decrypted and fully converted before anything is
        touched, so a failed import leaves the store exactly as it was.

        Raises:
            DecryptionError: wrong secret, corrupt iv/data, or non-JSON plaintext.
            ValidationError: payload lacks a gadgets/history list or holds
                             malformed records.
        """
        try:
            iv = bytes.fromhex(export.iv)
            ciphertext = bytes.fromhex(export.data)
        except ValueError as exc:
            logger.warning("Import rejected: iv/data is not valid hex")
            raise DecryptionError("export iv/data is not valid hex") from exc

        try:
            plaintext = crypto.decrypt(ciphertext, crypto.derive_key(secret), iv)
        except DecryptionError:
            logger.warning("Import rejected: decryption failed")
            raise

        try:
            parsed = json.loads(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Import rejected: decrypted payload is not JSON")
            raise DecryptionError("decrypted payload is not valid JSON (wrong secret?)") from exc

        if (
            not isinstance(parsed, dict)
            or not isinstance(parsed.get("gadgets"), list)
            or not isinstance(parsed.get("history"), list)
        ):
            logger.warning("Import rejected: payload shape is invalid")
            raise ValidationError("invalid encrypted data: expected gadgets and history lists")

        gadgets = [Gadget.from_dict(g) for g in parsed["gadgets"]]
        history = [HistoryEntry.from_dict(h) for h in parsed["history"]]
        by_id = {g.id: g for g in gadgets}
        if len(by_id) != len(gadgets):
            logger.warning("Import rejected: duplicate gadget ids")
            raise ValidationError("invalid encrypted data: duplicate gadget ids")
        # Falsy versions (absent, null, 0) fall back to 1.
        version = parsed.get("version") or 1
        if isinstance(version, bool) or not isinstance(version, int):
            raise ValidationError(f"payload version must be an integer, got {version!r}")

        self._gadgets = by_id
        self._history = history
        self._version = version
        logger.info(
            "Imported %d gadget(s), %d history entr(ies), version %d",
            len(self._gadgets), len(self._history), self._version,
        )
