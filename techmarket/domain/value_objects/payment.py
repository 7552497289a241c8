"""
Payment value objects.
"""

from enum import Enum


class PaymentMethod(str, Enum):
    """How the dealer paid into escrow."""

    ONLINE = "online"
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"

    def requires_proof(self) -> bool:
        """Check if a proof reference must accompany the payment."""
        return self == self.CASH


class HoldStatus(str, Enum):
    """Lifecycle of the warranty-held portion of a payment split."""

    HELD = "HELD"
    RELEASED = "RELEASED"
    FORFEITED = "FORFEITED"

    def is_final(self) -> bool:
        return self in [self.RELEASED, self.FORFEITED]
