"""Building bills and per-property charge share ORM models."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, Enum, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rentledger.models import Base, BaseModel
from rentledger.services.records import DocumentCategory


class FinancialDocument(Base, BaseModel):
    """Bill received by a building (electricity, cleaning, water...)."""

    __tablename__ = "financial_documents"

    building_id: Mapped[int] = mapped_column(
        ForeignKey("buildings.id"),
        nullable=False,
        index=True,
    )
    category: Mapped[DocumentCategory] = mapped_column(
        Enum(DocumentCategory),
        nullable=False,
        index=True,
    )
    document_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    included_in_charges: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether the bill is passed on to tenants in the charge settlement",
    )
    water_consumption: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 3),
        nullable=True,
        comment="Building consumption in m3 reported on a water bill",
    )

    __table_args__ = (Index("idx_document_building_date", "building_id", "document_date"),)

    def __repr__(self) -> str:
        return (
            f"<FinancialDocument(id={self.id}, building_id={self.building_id}, "
            f"category={self.category}, document_date={self.document_date}, amount={self.amount})>"
        )


class PropertyChargeShare(Base, BaseModel):
    """Fixed percentage of a category's bills borne by a property."""

    __tablename__ = "property_charge_shares"

    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id"),
        nullable=False,
        index=True,
    )
    category: Mapped[DocumentCategory] = mapped_column(
        Enum(DocumentCategory),
        nullable=False,
    )
    percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)

    __table_args__ = (UniqueConstraint("property_id", "category", name="uq_share_property_category"),)

    def __repr__(self) -> str:
        return (
            f"<PropertyChargeShare(property_id={self.property_id}, category={self.category}, "
            f"percentage={self.percentage})>"
        )


__all__ = ["FinancialDocument", "PropertyChargeShare"]
