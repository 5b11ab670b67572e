"""Lease, rent revision and ad hoc lease charge ORM models."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class Lease(Base, BaseModel):
    """Model representing a lease signed for a property.

    rent_amount and charges_amount are the baseline terms; later changes are
    stored as RentRevision rows and never overwrite the baseline.
    """

    __tablename__ = "leases"

    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id"),
        nullable=False,
        index=True,
    )

    tenant_name: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    rent_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Baseline monthly rent",
    )
    charges_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Baseline monthly charge provision",
    )
    payment_due_day: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    # Relationships
    property: Mapped["Property"] = relationship(  # noqa: F821
        "Property",
        back_populates="leases",
    )

    revisions: Mapped[list["RentRevision"]] = relationship(
        "RentRevision",
        back_populates="lease",
        order_by="RentRevision.effective_date",
    )

    def __repr__(self) -> str:
        return (
            f"<Lease(id={self.id}, property_id={self.property_id}, "
            f"start_date={self.start_date}, end_date={self.end_date}, "
            f"rent_amount={self.rent_amount}, charges_amount={self.charges_amount})>"
        )


class RentRevision(Base, BaseModel):
    """Dated change of a lease's rent and charges."""

    __tablename__ = "rent_revisions"

    lease_id: Mapped[int] = mapped_column(
        ForeignKey("leases.id"),
        nullable=False,
        index=True,
    )
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    rent_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    charges_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    lease: Mapped["Lease"] = relationship("Lease", back_populates="revisions")

    __table_args__ = (Index("idx_revision_lease_date", "lease_id", "effective_date"),)

    def __repr__(self) -> str:
        return (
            f"<RentRevision(id={self.id}, lease_id={self.lease_id}, "
            f"effective_date={self.effective_date}, rent_amount={self.rent_amount}, "
            f"charges_amount={self.charges_amount})>"
        )


class LeaseCharge(Base, BaseModel):
    """Ad hoc amount billed to a tenant on top of rent (repairs, fees)."""

    __tablename__ = "lease_charges"

    lease_id: Mapped[int] = mapped_column(
        ForeignKey("leases.id"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    charge_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<LeaseCharge(id={self.id}, lease_id={self.lease_id}, amount={self.amount})>"


__all__ = ["Lease", "LeaseCharge", "RentRevision"]
