"""Immutable domain records handed to the ledger engine.

The engine never touches the ORM: repositories map rows to these records and
the engine only ever sees plain in-memory values. Each record is built through
its ``create`` classmethod, which validates and normalizes the inputs and
raises ``ValidationError`` (or a subclass) on bad data.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from rentledger.services.errors import InvalidAmountError, InvalidChargeShareError, ValidationError
from rentledger.services.money import Money


class DocumentCategory(str, Enum):
    """Categories of building bills that can be passed on as charges."""

    ELECTRICITY = "ELECTRICITY"
    """Common area electricity"""

    WATER = "WATER"
    """Building water bill, shared by metered consumption"""

    CLEANING = "CLEANING"
    GARBAGE_TAX = "GARBAGE_TAX"
    HEATING = "HEATING"
    ELEVATOR = "ELEVATOR"
    COMMON_AREA_MAINTENANCE = "COMMON_AREA_MAINTENANCE"
    PROPERTY_TAX = "PROPERTY_TAX"
    RENOVATION_WORK = "RENOVATION_WORK"
    REPAIR_WORK = "REPAIR_WORK"
    INSURANCE = "INSURANCE"
    OTHER = "OTHER"

    @property
    def is_metered(self) -> bool:
        return self is DocumentCategory.WATER


class PaymentType(str, Enum):
    """What a payment was meant to cover."""

    RENT = "RENT"
    CHARGES = "CHARGES"
    FULL = "FULL"
    PARTIAL = "PARTIAL"


def _non_negative(value, field: str) -> Money:
    money = Money.of(value)
    if money.is_negative():
        raise InvalidAmountError(f"{field} cannot be negative")
    return money


def _decimal(value) -> Decimal | None:
    return Money.of(value).amount if value is not None else None


@dataclass(frozen=True)
class LeaseTerms:
    """Baseline terms of a lease."""

    id: int
    property_id: int
    start_date: date
    end_date: date | None
    rent_amount: Money
    charges_amount: Money
    payment_due_day: int

    @classmethod
    def create(
        cls,
        id: int,
        property_id: int,
        start_date: date,
        rent_amount,
        charges_amount,
        payment_due_day: int = 1,
        end_date: date | None = None,
    ) -> "LeaseTerms":
        if not 1 <= payment_due_day <= 31:
            raise ValidationError("Payment due day must be between 1 and 31")
        if end_date is not None and end_date <= start_date:
            raise ValidationError("End date must be after start date")
        return cls(
            id=id,
            property_id=property_id,
            start_date=start_date,
            end_date=end_date,
            rent_amount=_non_negative(rent_amount, "Rent amount"),
            charges_amount=_non_negative(charges_amount, "Charges amount"),
            payment_due_day=payment_due_day,
        )

    @property
    def total_amount(self) -> Money:
        return self.rent_amount + self.charges_amount


@dataclass(frozen=True)
class RentRevision:
    """Dated change of a lease's rent and charges amounts."""

    id: int
    lease_id: int
    effective_date: date
    rent_amount: Money
    charges_amount: Money
    reason: str | None = None
    created_at: datetime | None = None

    @classmethod
    def create(
        cls,
        id: int,
        lease_id: int,
        effective_date: date,
        rent_amount,
        charges_amount,
        reason: str | None = None,
        created_at: datetime | None = None,
    ) -> "RentRevision":
        return cls(
            id=id,
            lease_id=lease_id,
            effective_date=effective_date,
            rent_amount=_non_negative(rent_amount, "Rent amount"),
            charges_amount=_non_negative(charges_amount, "Charges amount"),
            reason=reason,
            created_at=created_at,
        )

    @property
    def total_amount(self) -> Money:
        return self.rent_amount + self.charges_amount


@dataclass(frozen=True)
class Payment:
    """Money received from the tenant for a lease."""

    id: int
    lease_id: int
    amount: Money
    payment_date: date
    period_start: date | None = None
    period_end: date | None = None
    payment_type: PaymentType = PaymentType.FULL
    notes: str | None = None

    @classmethod
    def create(
        cls,
        id: int,
        lease_id: int,
        amount,
        payment_date: date,
        period_start: date | None = None,
        period_end: date | None = None,
        payment_type: PaymentType | str = PaymentType.FULL,
        notes: str | None = None,
    ) -> "Payment":
        money = Money.of(amount)
        if money.is_negative() or money.is_zero():
            raise InvalidAmountError("Payment amount must be positive")
        if period_start is not None and period_end is not None and period_end <= period_start:
            raise ValidationError("Period end must be after period start")
        return cls(
            id=id,
            lease_id=lease_id,
            amount=money,
            payment_date=payment_date,
            period_start=period_start,
            period_end=period_end,
            payment_type=PaymentType(payment_type),
            notes=notes,
        )

    def covers_month(self, month_start: date, month_end: date) -> bool:
        if self.period_start is None or self.period_end is None:
            return False
        return self.period_start <= month_start and self.period_end >= month_end


@dataclass(frozen=True)
class Charge:
    """Ad hoc billable item on a lease (repairs, damages, fees)."""

    id: int
    lease_id: int
    amount: Money
    charge_date: date
    description: str | None = None

    @classmethod
    def create(
        cls,
        id: int,
        lease_id: int,
        amount,
        charge_date: date,
        description: str | None = None,
    ) -> "Charge":
        return cls(
            id=id,
            lease_id=lease_id,
            amount=_non_negative(amount, "Charge amount"),
            charge_date=charge_date,
            description=description,
        )


@dataclass(frozen=True)
class FinancialDocument:
    """Dated bill received by a building."""

    id: int
    building_id: int
    category: DocumentCategory
    date: date
    amount: Money
    description: str
    included_in_charges: bool = True
    water_consumption: Decimal | None = None

    @classmethod
    def create(
        cls,
        id: int,
        building_id: int,
        category: DocumentCategory | str,
        date: date,
        amount,
        description: str,
        included_in_charges: bool = True,
        water_consumption=None,
    ) -> "FinancialDocument":
        if not description or not description.strip():
            raise ValidationError("Financial document description cannot be empty")
        consumption = _decimal(water_consumption)
        if consumption is not None and consumption < 0:
            raise ValidationError("Water consumption cannot be negative")
        return cls(
            id=id,
            building_id=building_id,
            category=DocumentCategory(category),
            date=date,
            amount=_non_negative(amount, "Financial document amount"),
            description=description.strip(),
            included_in_charges=included_in_charges,
            water_consumption=consumption,
        )


@dataclass(frozen=True)
class PropertyChargeShare:
    """Fixed percentage of a building's category total borne by one property.

    Percentages are kept to two decimals, the precision they are stored with.
    """

    property_id: int
    category: DocumentCategory
    percentage: Decimal

    @classmethod
    def create(cls, property_id: int, category: DocumentCategory | str, percentage) -> "PropertyChargeShare":
        category = DocumentCategory(category)
        if category.is_metered:
            raise InvalidChargeShareError(
                "Water is shared by metered consumption and cannot have a fixed share"
            )
        try:
            value = Money.of(percentage).round_cents().amount
        except InvalidAmountError as e:
            raise InvalidChargeShareError(f"Invalid percentage: {percentage!r}") from e
        if value < 0 or value > 100:
            raise InvalidChargeShareError("Charge share percentage must be between 0 and 100")
        return cls(property_id=property_id, category=category, percentage=value)


@dataclass(frozen=True)
class WaterMeterReading:
    """Cumulative water meter index of a property at a date."""

    id: int
    property_id: int
    reading_date: date
    meter_reading: Decimal

    @classmethod
    def create(cls, id: int, property_id: int, reading_date: date, meter_reading) -> "WaterMeterReading":
        value = _decimal(meter_reading)
        if value is None:
            raise ValidationError("Meter reading is required")
        if value < 0:
            raise ValidationError("Meter reading cannot be negative")
        return cls(id=id, property_id=property_id, reading_date=reading_date, meter_reading=value)


@dataclass(frozen=True)
class PropertyRef:
    """Minimal view of a property: who it is and which building holds it."""

    id: int
    building_id: int | None
    name: str = ""


__all__ = [
    "Charge",
    "DocumentCategory",
    "FinancialDocument",
    "LeaseTerms",
    "Payment",
    "PaymentType",
    "PropertyChargeShare",
    "PropertyRef",
    "RentRevision",
    "WaterMeterReading",
]
