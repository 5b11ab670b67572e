"""Building ORM model: a group of properties sharing common charges."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class Building(Base, BaseModel):
    """Model representing a building whose bills are split across its properties."""

    __tablename__ = "buildings"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    address: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    # Relationships
    properties: Mapped[list["Property"]] = relationship(  # noqa: F821
        "Property",
        back_populates="building",
    )

    def __repr__(self) -> str:
        return f"<Building(id={self.id}, name={self.name!r})>"


__all__ = ["Building"]
