"""Prorated rent for a partially occupied month (move-in or move-out)."""

from calendar import monthrange
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import NamedTuple

from rentledger.services.errors import ValidationError
from rentledger.services.money import Money


class CalculationType(str, Enum):
    MOVE_IN = "MOVE_IN"
    MOVE_OUT = "MOVE_OUT"


class Prorata(NamedTuple):
    """Prorata quote for one month."""

    monthly_rent: Money
    days_occupied: int
    days_in_month: int
    daily_rate: Money
    percentage: Decimal
    amount: Money
    calculation_type: CalculationType


class ProrataService:
    """Quote the rent owed for part of a month."""

    def calculate(
        self,
        monthly_rent,
        start_date: date,
        end_date: date,
        calculation_type: CalculationType | str = CalculationType.MOVE_IN,
    ) -> Prorata:
        """Prorate monthly_rent over start_date..end_date, both days included.

        Both dates must fall in the same calendar month. The amount is computed
        from the unrounded daily rate and rounded to the cent once.

        Raises:
            ValidationError: If the dates are reversed or span several months
        """
        if start_date > end_date:
            raise ValidationError("Start date must be before or equal to end date")
        if (start_date.year, start_date.month) != (end_date.year, end_date.month):
            raise ValidationError("Prorata dates must fall within a single month")

        rent = Money.of(monthly_rent)
        days_in_month = monthrange(start_date.year, start_date.month)[1]
        days_occupied = (end_date - start_date).days + 1

        percentage = (Decimal(days_occupied) / Decimal(days_in_month) * 100).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

        return Prorata(
            monthly_rent=rent,
            days_occupied=days_occupied,
            days_in_month=days_in_month,
            daily_rate=(rent / days_in_month).round_cents(),
            percentage=percentage,
            amount=(rent * days_occupied / days_in_month).round_cents(),
            calculation_type=CalculationType(calculation_type),
        )


__all__ = ["CalculationType", "Prorata", "ProrataService"]
