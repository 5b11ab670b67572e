"""Payment ORM model: money received for a lease."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Enum, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from rentledger.models import Base, BaseModel
from rentledger.services.records import PaymentType


class Payment(Base, BaseModel):
    """Payment received from a tenant.

    period_start/period_end describe the rent period the payment was meant for;
    they are informational and never change how the balance is computed.
    """

    __tablename__ = "payments"

    lease_id: Mapped[int] = mapped_column(
        ForeignKey("leases.id"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    period_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    period_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_type: Mapped[PaymentType] = mapped_column(
        Enum(PaymentType),
        nullable=False,
        default=PaymentType.FULL,
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (Index("idx_payment_lease_date", "lease_id", "payment_date"),)

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, lease_id={self.lease_id}, amount={self.amount}, "
            f"payment_date={self.payment_date}, payment_type={self.payment_type})>"
        )


__all__ = ["Payment"]
