"""Ledger operations exposed to the API layer.

Each call fetches one snapshot from the repository and hands plain records to
the engine; nothing is cached between calls.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import NamedTuple

from rentledger.services.charge_share_service import DEFAULT_TOLERANCE, ChargeShareRegistry
from rentledger.services.errors import (
    LeaseNotFoundError,
    PaymentNotFoundError,
    PropertyNotFoundError,
    PropertyNotInBuildingError,
)
from rentledger.services.lease_balance_service import (
    LeaseBalance,
    LeaseBalanceCalculator,
    PaymentBalance,
    PaymentStatus,
    StatementLine,
)
from rentledger.services.records import DocumentCategory, LeaseTerms, PropertyChargeShare, PropertyRef
from rentledger.services.rent_schedule_service import ApplicableRent, MonthlyRent, RentScheduleResolver
from rentledger.services.repository import LedgerRepository
from rentledger.services.settlement_service import (
    MONTHS_PER_YEAR,
    ChargeSettlementEngine,
    ChargeSettlementResult,
)
from rentledger.services.water_allocation_service import WaterConsumptionAllocator

logger = logging.getLogger(__name__)


class BuildingShares(NamedTuple):
    """Charge shares of a building, per property, with balance warnings."""

    building_id: int
    properties: list[PropertyRef]
    shares: dict[int, dict[DocumentCategory, Decimal]]
    totals: dict[DocumentCategory, Decimal]
    warnings: list[str]


class LedgerService:
    """Application facade over the ledger engine."""

    def __init__(
        self,
        repository: LedgerRepository,
        share_tolerance: Decimal = DEFAULT_TOLERANCE,
        settlement_months: int = MONTHS_PER_YEAR,
    ):
        self.repository = repository
        self.share_tolerance = share_tolerance
        self.settlement_months = settlement_months
        self.resolver = RentScheduleResolver()
        self.calculator = LeaseBalanceCalculator(self.resolver)

    def _get_lease(self, lease_id: int) -> LeaseTerms:
        lease = self.repository.find_lease(lease_id)
        if lease is None:
            raise LeaseNotFoundError(lease_id)
        return lease

    def _get_building_member(self, building_id: int, property_id: int) -> PropertyRef:
        property_ref = self.repository.find_property(property_id)
        if property_ref is None:
            raise PropertyNotFoundError(property_id)
        if property_ref.building_id != building_id:
            raise PropertyNotInBuildingError(property_id, building_id)
        return property_ref

    def get_applicable_rent_for_date(self, lease_id: int, on_date: date) -> ApplicableRent:
        """Rent and charges in force for a lease on a date.

        Raises:
            LeaseNotFoundError: If the lease does not exist
            OutOfRangeDateError: If on_date precedes the lease start
        """
        lease = self._get_lease(lease_id)
        revisions = self.repository.find_revisions_by_lease(lease_id)
        return self.resolver.applicable_rent(lease, revisions, on_date)

    def get_rent_history(self, lease_id: int, start_month: str, end_month: str) -> list[MonthlyRent]:
        lease = self._get_lease(lease_id)
        revisions = self.repository.find_revisions_by_lease(lease_id)
        return self.resolver.rent_history(lease, revisions, start_month, end_month)

    def calculate_lease_balance(
        self,
        lease_id: int,
        reference_date: date,
        include_charges: bool = True,
    ) -> LeaseBalance:
        """Paid minus expected for a lease at a reference date.

        Args:
            lease_id: Lease to compute
            reference_date: Date up to which due months and payments count
            include_charges: Add ad hoc lease charges to the expected total

        Raises:
            LeaseNotFoundError: If the lease does not exist
            OutOfRangeDateError: If reference_date precedes the lease start
        """
        lease = self._get_lease(lease_id)
        revisions = self.repository.find_revisions_by_lease(lease_id)
        payments = self.repository.find_payments_by_lease(lease_id)
        charges = self.repository.find_charges_by_lease(lease_id) if include_charges else []
        return self.calculator.balance(lease, revisions, payments, reference_date, charges)

    def calculate_payment_balance(self, lease_id: int, payment_id: int) -> PaymentBalance:
        """Lease balance just before and just after one payment.

        Raises:
            LeaseNotFoundError: If the lease does not exist
            PaymentNotFoundError: If the payment is not one of the lease's payments
        """
        lease = self._get_lease(lease_id)
        payments = self.repository.find_payments_by_lease(lease_id)
        if not any(p.id == payment_id for p in payments):
            raise PaymentNotFoundError(payment_id)
        revisions = self.repository.find_revisions_by_lease(lease_id)
        charges = self.repository.find_charges_by_lease(lease_id)
        return self.calculator.balance_around_payment(lease, revisions, payments, payment_id, charges)

    def get_statement(self, lease_id: int, reference_date: date) -> list[StatementLine]:
        lease = self._get_lease(lease_id)
        return self.calculator.statement(
            lease,
            self.repository.find_revisions_by_lease(lease_id),
            self.repository.find_payments_by_lease(lease_id),
            reference_date,
            self.repository.find_charges_by_lease(lease_id),
        )

    def check_payment_status(self, lease_id: int, reference_date: date) -> PaymentStatus:
        lease = self._get_lease(lease_id)
        payments = self.repository.find_payments_by_lease(lease_id)
        return self.calculator.payment_status(lease, payments, reference_date)

    def _share_registry(self, building_id: int, properties: list[PropertyRef]) -> ChargeShareRegistry:
        return ChargeShareRegistry(
            properties,
            self.repository.find_shares_by_building(building_id),
            tolerance=self.share_tolerance,
        )

    def calculate_charge_settlement(
        self,
        building_id: int,
        property_id: int,
        reference_date: date,
        provisional_charges_paid,
    ) -> ChargeSettlementResult:
        """Annual charge settlement of one property of a building.

        Raises:
            PropertyNotFoundError: If the property does not exist
            PropertyNotInBuildingError: If the property is in another building
            InvalidAmountError: If provisional_charges_paid is negative
        """
        self._get_building_member(building_id, property_id)
        properties = self.repository.find_properties_by_building(building_id)

        readings = []
        for property_ref in properties:
            readings.extend(self.repository.find_readings_by_property(property_ref.id))

        engine = ChargeSettlementEngine(
            properties=properties,
            documents=self.repository.find_documents_by_building(building_id),
            shares=self._share_registry(building_id, properties),
            water=WaterConsumptionAllocator(properties, readings),
            months=self.settlement_months,
        )
        return engine.settle(building_id, property_id, reference_date, provisional_charges_paid)

    def get_charge_shares(self, building_id: int) -> BuildingShares:
        properties = self.repository.find_properties_by_building(building_id)
        registry = self._share_registry(building_id, properties)
        categories = registry.categories_of(building_id)
        return BuildingShares(
            building_id=building_id,
            properties=properties,
            shares={p.id: registry.shares_for(p.id) for p in properties},
            totals={c: registry.total_for(building_id, c) for c in categories},
            warnings=registry.check_building(building_id, categories),
        )

    def set_charge_share(
        self,
        building_id: int,
        property_id: int,
        category: DocumentCategory | str,
        percentage,
    ) -> PropertyChargeShare:
        """Upsert the share of a property and persist it.

        Raises:
            PropertyNotFoundError: If the property does not exist
            PropertyNotInBuildingError: If the property is in another building
            InvalidChargeShareError: For WATER or a percentage outside 0-100
        """
        self._get_building_member(building_id, property_id)
        properties = self.repository.find_properties_by_building(building_id)
        share = self._share_registry(building_id, properties).set_share(property_id, category, percentage)
        return self.repository.upsert_charge_share(share)


__all__ = ["BuildingShares", "LedgerService"]
