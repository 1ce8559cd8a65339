"""
store — in-memory gadget inventory with encrypted export/import.

Public API
──────────
Gadget           — frozen dataclass for one inventory item
HistoryAction    — ADD | UPDATE | DELETE
HistoryEntry     — immutable change-log record
EncryptedExport  — versioned AES-256-CBC envelope of a whole store
GadgetStore      — CRUD, queries, export_encrypted / import_encrypted
"""

from gadget_tracker.store.models import EncryptedExport, Gadget, HistoryAction, HistoryEntry
from gadget_tracker.store.tracker import GadgetStore

__all__ = ["Gadget", "HistoryAction", "HistoryEntry", "EncryptedExport", "GadgetStore"]
