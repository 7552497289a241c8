"""
Platform commission calculation.
"""

from decimal import ROUND_HALF_UP, Decimal

from techmarket.application.interfaces.services import CommissionCalculatorInterface


class PercentageCommissionCalculator(CommissionCalculatorInterface):
    """Flat percentage of the gross amount."""

    def __init__(self, percent: float):
        self.percent = Decimal(str(percent))

    def commission_for(self, gross_amount: Decimal) -> Decimal:
        if gross_amount <= 0:
            return Decimal("0.00")
        return (gross_amount * self.percent / 100).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
