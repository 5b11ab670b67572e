"""Read access to the ledger snapshot, independent of the storage backend.

The engine depends on LedgerRepository only. SqlLedgerRepository maps ORM rows
to immutable records; InMemoryLedgerRepository holds records directly and
backs tests and scripts.
"""

import logging
from decimal import Decimal
from typing import Iterable, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from rentledger.models.financial_document import FinancialDocument as FinancialDocumentRow
from rentledger.models.financial_document import PropertyChargeShare as PropertyChargeShareRow
from rentledger.models.lease import Lease as LeaseRow
from rentledger.models.lease import LeaseCharge as LeaseChargeRow
from rentledger.models.lease import RentRevision as RentRevisionRow
from rentledger.models.payment import Payment as PaymentRow
from rentledger.models.property import Property as PropertyRow
from rentledger.models.water_meter_reading import WaterMeterReading as WaterMeterReadingRow
from rentledger.services.records import (
    Charge,
    DocumentCategory,
    FinancialDocument,
    LeaseTerms,
    Payment,
    PropertyChargeShare,
    PropertyRef,
    RentRevision,
    WaterMeterReading,
)

logger = logging.getLogger(__name__)


class LedgerRepository(Protocol):
    """Capabilities the ledger needs from storage."""

    def find_lease(self, lease_id: int) -> LeaseTerms | None:
        ...

    def find_revisions_by_lease(self, lease_id: int) -> list[RentRevision]:
        ...

    def find_payments_by_lease(self, lease_id: int) -> list[Payment]:
        ...

    def find_charges_by_lease(self, lease_id: int) -> list[Charge]:
        ...

    def find_property(self, property_id: int) -> PropertyRef | None:
        ...

    def find_properties_by_building(self, building_id: int) -> list[PropertyRef]:
        ...

    def find_documents_by_building(self, building_id: int) -> list[FinancialDocument]:
        ...

    def find_shares_by_building(self, building_id: int) -> list[PropertyChargeShare]:
        ...

    def find_readings_by_property(self, property_id: int) -> list[WaterMeterReading]:
        ...

    def upsert_charge_share(self, share: PropertyChargeShare) -> PropertyChargeShare:
        ...


class SqlLedgerRepository:
    """LedgerRepository backed by a SQLAlchemy session."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def find_lease(self, lease_id: int) -> LeaseTerms | None:
        row = self.db.get(LeaseRow, lease_id)
        if row is None:
            return None
        return LeaseTerms.create(
            id=row.id,
            property_id=row.property_id,
            start_date=row.start_date,
            end_date=row.end_date,
            rent_amount=row.rent_amount,
            charges_amount=row.charges_amount,
            payment_due_day=row.payment_due_day,
        )

    def find_revisions_by_lease(self, lease_id: int) -> list[RentRevision]:
        rows = self.db.execute(
            select(RentRevisionRow)
            .where(RentRevisionRow.lease_id == lease_id)
            .order_by(RentRevisionRow.effective_date, RentRevisionRow.id)
        ).scalars()
        return [
            RentRevision.create(
                id=row.id,
                lease_id=row.lease_id,
                effective_date=row.effective_date,
                rent_amount=row.rent_amount,
                charges_amount=row.charges_amount,
                reason=row.reason,
                created_at=row.created_at,
            )
            for row in rows
        ]

    def find_payments_by_lease(self, lease_id: int) -> list[Payment]:
        rows = self.db.execute(
            select(PaymentRow)
            .where(PaymentRow.lease_id == lease_id)
            .order_by(PaymentRow.payment_date, PaymentRow.id)
        ).scalars()
        return [
            Payment.create(
                id=row.id,
                lease_id=row.lease_id,
                amount=row.amount,
                payment_date=row.payment_date,
                period_start=row.period_start,
                period_end=row.period_end,
                payment_type=row.payment_type,
                notes=row.notes,
            )
            for row in rows
        ]

    def find_charges_by_lease(self, lease_id: int) -> list[Charge]:
        rows = self.db.execute(
            select(LeaseChargeRow)
            .where(LeaseChargeRow.lease_id == lease_id)
            .order_by(LeaseChargeRow.charge_date, LeaseChargeRow.id)
        ).scalars()
        return [
            Charge.create(
                id=row.id,
                lease_id=row.lease_id,
                amount=row.amount,
                charge_date=row.charge_date,
                description=row.description,
            )
            for row in rows
        ]

    def find_property(self, property_id: int) -> PropertyRef | None:
        row = self.db.get(PropertyRow, property_id)
        if row is None:
            return None
        return PropertyRef(id=row.id, building_id=row.building_id, name=row.name)

    def find_properties_by_building(self, building_id: int) -> list[PropertyRef]:
        rows = self.db.execute(
            select(PropertyRow).where(PropertyRow.building_id == building_id).order_by(PropertyRow.name)
        ).scalars()
        return [PropertyRef(id=row.id, building_id=row.building_id, name=row.name) for row in rows]

    def find_documents_by_building(self, building_id: int) -> list[FinancialDocument]:
        rows = self.db.execute(
            select(FinancialDocumentRow)
            .where(FinancialDocumentRow.building_id == building_id)
            .order_by(FinancialDocumentRow.document_date, FinancialDocumentRow.id)
        ).scalars()
        return [
            FinancialDocument.create(
                id=row.id,
                building_id=row.building_id,
                category=row.category,
                date=row.document_date,
                amount=row.amount,
                description=row.description,
                included_in_charges=row.included_in_charges,
                water_consumption=row.water_consumption,
            )
            for row in rows
        ]

    def find_shares_by_building(self, building_id: int) -> list[PropertyChargeShare]:
        rows = self.db.execute(
            select(PropertyChargeShareRow)
            .join(PropertyRow, PropertyRow.id == PropertyChargeShareRow.property_id)
            .where(PropertyRow.building_id == building_id)
        ).scalars()
        shares = []
        for row in rows:
            if row.category == DocumentCategory.WATER:
                logger.warning("Ignoring stored water share for property %s", row.property_id)
                continue
            shares.append(PropertyChargeShare.create(row.property_id, row.category, row.percentage))
        return shares

    def find_readings_by_property(self, property_id: int) -> list[WaterMeterReading]:
        rows = self.db.execute(
            select(WaterMeterReadingRow)
            .where(WaterMeterReadingRow.property_id == property_id)
            .order_by(WaterMeterReadingRow.reading_date, WaterMeterReadingRow.id)
        ).scalars()
        return [
            WaterMeterReading.create(
                id=row.id,
                property_id=row.property_id,
                reading_date=row.reading_date,
                meter_reading=row.meter_reading,
            )
            for row in rows
        ]

    def upsert_charge_share(self, share: PropertyChargeShare) -> PropertyChargeShare:
        """Insert or update the (property, category) share row and commit."""
        row = self.db.execute(
            select(PropertyChargeShareRow).where(
                PropertyChargeShareRow.property_id == share.property_id,
                PropertyChargeShareRow.category == share.category,
            )
        ).scalar_one_or_none()

        if row is None:
            row = PropertyChargeShareRow(
                property_id=share.property_id,
                category=share.category,
                percentage=share.percentage,
            )
            self.db.add(row)
        else:
            row.percentage = share.percentage

        self.db.commit()
        logger.info(
            "Charge share set: property=%s category=%s percentage=%s",
            share.property_id,
            share.category.value,
            share.percentage,
        )
        return share


class InMemoryLedgerRepository:
    """LedgerRepository holding records in memory."""

    def __init__(
        self,
        leases: Iterable[LeaseTerms] = (),
        revisions: Iterable[RentRevision] = (),
        payments: Iterable[Payment] = (),
        charges: Iterable[Charge] = (),
        properties: Iterable[PropertyRef] = (),
        documents: Iterable[FinancialDocument] = (),
        shares: Iterable[PropertyChargeShare] = (),
        readings: Iterable[WaterMeterReading] = (),
    ):
        self.leases = {lease.id: lease for lease in leases}
        self.revisions = list(revisions)
        self.payments = list(payments)
        self.charges = list(charges)
        self.properties = {p.id: p for p in properties}
        self.documents = list(documents)
        self.shares: dict[tuple[int, DocumentCategory], Decimal] = {
            (s.property_id, s.category): s.percentage for s in shares
        }
        self.readings = list(readings)

    def find_lease(self, lease_id: int) -> LeaseTerms | None:
        return self.leases.get(lease_id)

    def find_revisions_by_lease(self, lease_id: int) -> list[RentRevision]:
        return [r for r in self.revisions if r.lease_id == lease_id]

    def find_payments_by_lease(self, lease_id: int) -> list[Payment]:
        return [p for p in self.payments if p.lease_id == lease_id]

    def find_charges_by_lease(self, lease_id: int) -> list[Charge]:
        return [c for c in self.charges if c.lease_id == lease_id]

    def find_property(self, property_id: int) -> PropertyRef | None:
        return self.properties.get(property_id)

    def find_properties_by_building(self, building_id: int) -> list[PropertyRef]:
        return [p for p in self.properties.values() if p.building_id == building_id]

    def find_documents_by_building(self, building_id: int) -> list[FinancialDocument]:
        return [d for d in self.documents if d.building_id == building_id]

    def find_shares_by_building(self, building_id: int) -> list[PropertyChargeShare]:
        members = {p.id for p in self.find_properties_by_building(building_id)}
        return [
            PropertyChargeShare(property_id=pid, category=category, percentage=percentage)
            for (pid, category), percentage in self.shares.items()
            if pid in members
        ]

    def find_readings_by_property(self, property_id: int) -> list[WaterMeterReading]:
        return [r for r in self.readings if r.property_id == property_id]

    def upsert_charge_share(self, share: PropertyChargeShare) -> PropertyChargeShare:
        self.shares[(share.property_id, share.category)] = share.percentage
        return share


__all__ = ["InMemoryLedgerRepository", "LedgerRepository", "SqlLedgerRepository"]
