"""Annual regularization of common charges for one property of a building.

Actual charges are the property's share of every building bill of the year
flagged as included in charges:
- Water: share from metered consumption (WaterConsumptionAllocator)
- Every other category: fixed percentage (ChargeShareRegistry)

Balance formula: Provisional - Actual
- Positive balance: tenant paid too much in provisions (refund/credit)
- Negative balance: tenant must pay the shortfall
This is the opposite orientation of the lease balance (Paid - Expected): here
the provisions play the role of "paid" and the actual charges that of "due".
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, NamedTuple

from rentledger.services.charge_share_service import ChargeShareRegistry
from rentledger.services.errors import InvalidAmountError, PropertyNotInBuildingError
from rentledger.services.money import Money
from rentledger.services.records import DocumentCategory, FinancialDocument, PropertyRef
from rentledger.services.water_allocation_service import WaterAllocation, WaterConsumptionAllocator

logger = logging.getLogger(__name__)

FIXED_PERCENTAGE = "FIXED_PERCENTAGE"
MONTHS_PER_YEAR = 12
WATER_CONSUMPTION_TOLERANCE = Decimal("0.01")


class CategoryCharge(NamedTuple):
    """Settlement detail of one document category."""

    category: DocumentCategory
    documents: list[FinancialDocument]
    total_amount: Money
    percentage: Decimal
    property_share: Money
    calculation_method: str
    water: WaterAllocation | None = None


class ChargeSettlementResult(NamedTuple):
    """Charge settlement of one property over one annual period."""

    building_id: int
    property_id: int
    reference_date: date
    period_start: date
    period_end: date
    categories: list[CategoryCharge]
    total_charges_actual: Money
    total_charges_provisional: Money
    balance: Money
    new_monthly_charges: Money
    warnings: list[str]


def one_year_before(value: date) -> date:
    """Same calendar day one year earlier; 29 February maps to 28 February."""
    try:
        return value.replace(year=value.year - 1)
    except ValueError:
        return value.replace(year=value.year - 1, day=28)


def group_by_category(
    documents: Iterable[FinancialDocument],
) -> dict[DocumentCategory, list[FinancialDocument]]:
    grouped: dict[DocumentCategory, list[FinancialDocument]] = {}
    for document in documents:
        grouped.setdefault(document.category, []).append(document)
    # Stable output order: enum declaration order, documents by date
    return {
        category: sorted(grouped[category], key=lambda d: (d.date, d.id))
        for category in DocumentCategory
        if category in grouped
    }


class ChargeSettlementEngine:
    """Compute the annual charge settlement of a property from a building snapshot."""

    def __init__(
        self,
        properties: Iterable[PropertyRef],
        documents: Iterable[FinancialDocument],
        shares: ChargeShareRegistry,
        water: WaterConsumptionAllocator,
        months: int = MONTHS_PER_YEAR,
    ):
        """Initialize with an in-memory snapshot of the building.

        Args:
            properties: Properties of the building (with their building_id)
            documents: Financial documents of the building, any date
            shares: Fixed percentage registry for non-water categories
            water: Water allocator loaded with the building's meter readings
            months: Number of monthly provisions the new charges are spread over
        """
        self.properties = list(properties)
        self.documents = list(documents)
        self.shares = shares
        self.water = water
        self.months = months

    def settle(
        self,
        building_id: int,
        property_id: int,
        reference_date: date,
        provisional_charges_paid,
    ) -> ChargeSettlementResult:
        """Settle the year ending at reference_date for one property.

        Args:
            building_id: Building owning the bills
            property_id: Property to settle
            reference_date: Last day of the annual period
            provisional_charges_paid: Charge provisions paid over the period

        Returns:
            ChargeSettlementResult; data-quality issues are listed in warnings

        Raises:
            PropertyNotInBuildingError: If property_id is not in building_id
            InvalidAmountError: If provisional_charges_paid is negative
        """
        provisional = Money.of(provisional_charges_paid)
        if provisional.is_negative():
            raise InvalidAmountError("Provisional charges paid cannot be negative")

        if not any(p.id == property_id and p.building_id == building_id for p in self.properties):
            raise PropertyNotInBuildingError(property_id, building_id)

        period_start = one_year_before(reference_date)
        period_end = reference_date
        warnings: list[str] = []

        included = [
            d
            for d in self.documents
            if d.building_id == building_id
            and d.included_in_charges
            and period_start <= d.date <= period_end
        ]
        if not included:
            warnings.append(
                f"No bill included in charges for building {building_id} between "
                f"{period_start.isoformat()} and {period_end.isoformat()}"
            )

        grouped = group_by_category(included)
        categories = []
        for category, documents in grouped.items():
            if category.is_metered:
                detail = self._water_charge(
                    building_id, property_id, documents, period_start, period_end, warnings
                )
            else:
                detail = self._fixed_charge(building_id, property_id, category, documents, warnings)
            categories.append(detail)

        total_actual = Money.sum(c.property_share for c in categories)
        balance = provisional - total_actual
        new_monthly = (total_actual / self.months).round_cents()

        logger.info(
            "Charge settlement building=%s property=%s period=%s..%s actual=%s provisional=%s "
            "balance=%s warnings=%d",
            building_id,
            property_id,
            period_start.isoformat(),
            period_end.isoformat(),
            total_actual,
            provisional,
            balance,
            len(warnings),
        )

        return ChargeSettlementResult(
            building_id=building_id,
            property_id=property_id,
            reference_date=reference_date,
            period_start=period_start,
            period_end=period_end,
            categories=categories,
            total_charges_actual=total_actual,
            total_charges_provisional=provisional,
            balance=balance,
            new_monthly_charges=new_monthly,
            warnings=warnings,
        )

    def _fixed_charge(
        self,
        building_id: int,
        property_id: int,
        category: DocumentCategory,
        documents: list[FinancialDocument],
        warnings: list[str],
    ) -> CategoryCharge:
        total = Money.sum(d.amount for d in documents)
        percentage = self.shares.share_for(property_id, category)

        if percentage is None:
            percentage = Decimal(0)
            if not total.is_zero():
                message = (
                    f"No charge share configured for property {property_id} in category "
                    f"{category.value} although bills exist; 0% applied"
                )
                logger.warning(message)
                warnings.append(message)

        warnings.extend(self.shares.check_building(building_id, [category]))

        return CategoryCharge(
            category=category,
            documents=documents,
            total_amount=total,
            percentage=percentage,
            property_share=(total * percentage / 100).round_cents(),
            calculation_method=FIXED_PERCENTAGE,
        )

    def _water_charge(
        self,
        building_id: int,
        property_id: int,
        documents: list[FinancialDocument],
        period_start: date,
        period_end: date,
        warnings: list[str],
    ) -> CategoryCharge:
        total = Money.sum(d.amount for d in documents)
        allocation = self.water.allocate(building_id, property_id, period_start, period_end)
        warnings.extend(allocation.warnings)

        reported = [d.water_consumption for d in documents if d.water_consumption is not None]
        if reported:
            billed = sum(reported, Decimal(0))
            metered = allocation.building_total_consumption
            if abs(billed - metered) > WATER_CONSUMPTION_TOLERANCE:
                message = (
                    f"Water bills of building {building_id} report {billed} m3 but meters "
                    f"of its properties total {metered} m3"
                )
                logger.warning(message)
                warnings.append(message)

        return CategoryCharge(
            category=DocumentCategory.WATER,
            documents=documents,
            total_amount=total,
            percentage=allocation.dynamic_percentage,
            property_share=(total * allocation.dynamic_percentage / 100).round_cents(),
            calculation_method=allocation.calculation_method,
            water=allocation,
        )


__all__ = [
    "CategoryCharge",
    "ChargeSettlementEngine",
    "ChargeSettlementResult",
    "FIXED_PERCENTAGE",
    "group_by_category",
    "one_year_before",
]
