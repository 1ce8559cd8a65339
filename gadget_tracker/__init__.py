"""
gadget_tracker — in-memory gadget inventory with an encrypted export/import.

Quick start::

    from gadget_tracker import GadgetStore

    store = GadgetStore()
    mac = store.add("MacBook Pro", "Apple", 2499)
    store.update(mac.id, price=2399)

    envelope = store.export_encrypted("my-super-secret-key")
    copy = GadgetStore()
    copy.import_encrypted(envelope, "my-super-secret-key")
"""

from gadget_tracker.exceptions import DecryptionError, GadgetTrackerError, ValidationError
from gadget_tracker.store import EncryptedExport, Gadget, GadgetStore, HistoryAction, HistoryEntry

__all__ = [
    "GadgetStore",
    "Gadget",
    "HistoryAction",
    "HistoryEntry",
    "EncryptedExport",
    "GadgetTrackerError",
    "ValidationError",
    "DecryptionError",
]

__version__ = "0.1.0"
