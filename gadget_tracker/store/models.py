"""Data models for the store module."""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from gadget_tracker.exceptions import ValidationError

__all__ = [
    "Gadget",
    "HistoryAction",
    "HistoryEntry",
    "EncryptedExport",
    "validate_text",
    "validate_price",
    "as_utc",
    "format_timestamp",
    "parse_timestamp",
]


# ── Field validation ──────────────────────────────────────────────────────────

def validate_text(field_name: str, value: Any) -> str:
    """Return *value* if it is a non-empty string, else raise ValidationError."""
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field_name} must be a non-empty string, got {value!r}")
    return value


def validate_price(value: Any) -> float:
    """Return *value* if it is a finite, non-negative int or float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"price must be an int or float, got {value!r}")
    try:
        as_float = float(value)
    except OverflowError as exc:
        raise ValidationError(f"price is too large, got {value!r}") from exc
    if not math.isfinite(as_float):
        raise ValidationError(f"price must be finite, got {value!r}")
    if value < 0:
        raise ValidationError(f"price cannot be negative, got {value!r}")
    return value


def as_utc(field_name: str, value: Any) -> datetime:
    """Return *value* as an aware datetime; naive values are taken as UTC."""
    if not isinstance(value, datetime):
        raise ValidationError(f"{field_name} must be a datetime, got {value!r}")
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_timestamp(dt: datetime) -> str:
    """ISO-8601 UTC with a trailing 'Z', e.g. 2024-05-01T12:00:00.123456Z."""
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(field_name: str, value: Any) -> datetime:
    """Parse an ISO-8601 string into an aware datetime (naive input = UTC)."""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO-8601 string, got {value!r}")
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(f"{field_name} is not a valid timestamp: {value!r}") from exc
    return as_utc(field_name, dt)


def _require_mapping(what: str, data: Any) -> dict:
    if not isinstance(data, dict):
        raise ValidationError(f"{what} must be an object, got {type(data).__name__}")
    return data


# ── Gadget ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Gadget:
    """
    One tracked inventory item.

    Fields
    ──────
    id        — opaque identifier, e.g. "gadget-3f9a0c1b2d4e"; never changes
    name      — display name, e.g. "MacBook Pro"
    brand     — manufacturer, e.g. "Apple"
    price     — non-negative number
    added_at  — aware UTC timestamp of creation
    """
    id:       str
    name:     str
    brand:    str
    price:    float
    added_at: datetime

    def __post_init__(self) -> None:
        validate_text("id", self.id)
        validate_text("name", self.name)
        validate_text("brand", self.brand)
        validate_price(self.price)
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "added_at", as_utc("added_at", self.added_at))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "price": self.price,
            "addedAt": format_timestamp(self.added_at),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Gadget":
        """Build a Gadget from its payload form, validating every field."""
        data = _require_mapping("gadget", data)
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            brand=data.get("brand"),
            price=data.get("price"),
            added_at=parse_timestamp("addedAt", data.get("addedAt")),
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.brand}) ${self.price:,.2f} [{self.id}]"


# ── History ───────────────────────────────────────────────────────────────────

class HistoryAction(str, Enum):
    """Kind of mutation recorded in the change log."""
    ADD    = "ADD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class HistoryEntry:
    """
    Immutable audit record of one mutation.

    action     — HistoryAction
    gadget     — snapshot of the gadget at the time of the action
    timestamp  — aware UTC time the action was recorded
    """
    action:    HistoryAction
    gadget:    Gadget
    timestamp: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.action, HistoryAction):
            raise ValidationError(f"unknown history action: {self.action!r}")
        if not isinstance(self.gadget, Gadget):
            raise ValidationError(f"history snapshot must be a Gadget, got {self.gadget!r}")
        object.__setattr__(self, "timestamp", as_utc("timestamp", self.timestamp))

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "gadget": self.gadget.to_dict(),
            "timestamp": format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryEntry":
        data = _require_mapping("history entry", data)
        try:
            action = HistoryAction(data.get("action"))
        except ValueError as exc:
            raise ValidationError(f"unknown history action: {data.get('action')!r}") from exc
        return cls(
            action=action,
            gadget=Gadget.from_dict(data.get("gadget")),
            timestamp=parse_timestamp("timestamp", data.get("timestamp")),
        )

    def __str__(self) -> str:
        return f"{format_timestamp(self.timestamp)} {self.action.value:<6} {self.gadget}"


# ── Encrypted export envelope ─────────────────────────────────────────────────

@dataclass(frozen=True)
class EncryptedExport:
    """
    Versioned, encrypted snapshot of a whole GadgetStore.

    version — store version stamp at export time
    iv      — 16-byte AES initialisation vector, hex-encoded (32 chars)
    data    — AES-256-CBC ciphertext of the JSON payload, hex-encoded
    """
    version: int
    iv:      str
    data:    str

    def to_dict(self) -> dict:
        return {"version": self.version, "iv": self.iv, "data": self.data}

    @classmethod
    def from_dict(cls, data: Any) -> "EncryptedExport":
        """Read an envelope previously written with to_dict()."""
        data = _require_mapping("encrypted export", data)
        version = data.get("version")
        if isinstance(version, bool) or not isinstance(version, int):
            raise ValidationError(f"export version must be an integer, got {version!r}")
        for key in ("iv", "data"):
            if not isinstance(data.get(key), str):
                raise ValidationError(f"export field {key!r} must be a hex string")
        return cls(version=version, iv=data["iv"], data=data["data"])

    def __str__(self) -> str:
        return f"EncryptedExport(v{self.version}, {len(self.data) // 2} bytes)"
