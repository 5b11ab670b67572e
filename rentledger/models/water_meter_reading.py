"""Water meter reading ORM model."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from rentledger.models import Base, BaseModel


class WaterMeterReading(Base, BaseModel):
    """Cumulative water meter index of a property.

    Attributes:
        property_id: Property the meter belongs to
        reading_date: Date the index was read
        meter_reading: Cumulative index in m3
    """

    __tablename__ = "water_meter_readings"

    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id"),
        nullable=False,
        index=True,
    )
    reading_date: Mapped[date] = mapped_column(Date, nullable=False)
    meter_reading: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)

    __table_args__ = (Index("idx_water_reading_property_date", "property_id", "reading_date"),)

    def __repr__(self) -> str:
        return (
            f"<WaterMeterReading(id={self.id}, property_id={self.property_id}, "
            f"reading_date={self.reading_date}, meter_reading={self.meter_reading})>"
        )


__all__ = ["WaterMeterReading"]
