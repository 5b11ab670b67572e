"""Property ORM model for rented units, optionally attached to a building."""

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class Property(Base, BaseModel):
    """Model representing a rented unit.

    Properties attached to a building take part in its charge settlement: fixed
    shares through PropertyChargeShare rows, water through their meter readings.
    """

    __tablename__ = "properties"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    building_id: Mapped[int | None] = mapped_column(
        ForeignKey("buildings.id"),
        nullable=True,
        index=True,
        comment="Building sharing common charges with this property",
    )

    # Relationships
    building: Mapped["Building | None"] = relationship(  # noqa: F821
        "Building",
        back_populates="properties",
    )

    leases: Mapped[list["Lease"]] = relationship(  # noqa: F821
        "Lease",
        back_populates="property",
    )

    __table_args__ = (Index("idx_property_building", "building_id", "id"),)

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name={self.name!r}, building_id={self.building_id})>"


__all__ = ["Property"]
