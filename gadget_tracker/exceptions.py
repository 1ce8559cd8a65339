"""
Project-wide custom exception hierarchy.
All modules raise subclasses of GadgetTrackerError — never bare Exception.
"""

__all__ = [
    "GadgetTrackerError",
    "ValidationError",
    "DecryptionError",
]


class GadgetTrackerError(Exception):
    """Root exception for all gadget-tracker errors."""


# ── Store ─────────────────────────────────────────────────────────────────────

class ValidationError(GadgetTrackerError):
    """Raised when gadget fields or an imported payload fail validation."""


class DecryptionError(GadgetTrackerError):
    """Raised when an encrypted export cannot be decrypted (wrong secret or corrupt data)."""
