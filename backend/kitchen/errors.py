"""
Error taxonomy for the kitchen core.

Rules:
- Core operations raise these synchronously, before any state mutation.
- The HTTP layer translates them into the wire error shape.
- TransientDeliveryError never leaves the broadcaster.
"""

from __future__ import annotations


class KitchenError(Exception):
    """Base class for all core kitchen errors."""

    kind: str = "kitchen_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(KitchenError):
    """Malformed or out-of-range input. No state was mutated."""

    kind = "validation_error"


class NotFoundError(KitchenError):
    """Unknown session or appliance id."""

    kind = "not_found"


class DuplicateSessionError(KitchenError):
    """Session id collision on create. The existing session is untouched."""

    kind = "duplicate_session"


class TransientDeliveryError(KitchenError):
    """A single observer could not accept an event (closed or backed up)."""

    kind = "transient_delivery"
