"""Lease balance calculation: what the tenant paid against what was due.

Balance formula: Paid - Expected
- Positive balance: tenant has overpaid (credit)
- Negative balance: tenant owes money

Expected amounts are accumulated month by month from the lease start. A month
is either fully due or not due at all; partial months are never prorated here
(see prorata_service for move-in/move-out quotes).
"""

import logging
from calendar import monthrange
from datetime import date, timedelta
from typing import Iterable, NamedTuple, Sequence

from rentledger.services.errors import OutOfRangeDateError, PaymentNotFoundError
from rentledger.services.money import Money
from rentledger.services.records import Charge, LeaseTerms, Payment, RentRevision
from rentledger.services.rent_schedule_service import (
    RentScheduleResolver,
    iter_months,
    month_end,
    month_start,
    sort_revisions,
)

logger = logging.getLogger(__name__)


class LeaseBalance(NamedTuple):
    """Balance of a lease at a reference date."""

    balance: Money
    total_paid: Money
    total_expected: Money


class PaymentBalance(NamedTuple):
    """Lease balance immediately before and after one payment."""

    balance_before: Money
    balance_after: Money
    payment_amount: Money


class StatementLine(NamedTuple):
    """One month of a lease statement."""

    month: str  # YYYY-MM
    amount_due: Money
    charges: Money
    paid: Money
    balance: Money  # running balance at month end


class PaymentStatus(NamedTuple):
    """Whether the rent of the reference month has been paid on time."""

    is_up_to_date: bool
    is_late: bool
    expected_payment_date: date
    last_payment_date: date | None


def expected_payment_date(lease: LeaseTerms, reference_date: date) -> date:
    """Due date of the month containing ``reference_date``.

    A due day beyond the month's length falls on its last day (31 -> 30 April).
    """
    last_day = monthrange(reference_date.year, reference_date.month)[1]
    return date(reference_date.year, reference_date.month, min(lease.payment_due_day, last_day))


def chronological(payments: Iterable[Payment]) -> list[Payment]:
    return sorted(payments, key=lambda p: (p.payment_date, p.id))


class LeaseBalanceCalculator:
    """Compute balances, statements and payment status for a lease."""

    def __init__(self, resolver: RentScheduleResolver | None = None):
        self.resolver = resolver or RentScheduleResolver()

    def _last_due_day(self, lease: LeaseTerms, reference_date: date) -> date:
        if lease.end_date is not None and lease.end_date < reference_date:
            return lease.end_date
        return reference_date

    def _check_range(self, lease: LeaseTerms, reference_date: date) -> None:
        if reference_date < lease.start_date:
            raise OutOfRangeDateError(
                f"Reference date {reference_date.isoformat()} is before lease start "
                f"{lease.start_date.isoformat()}"
            )

    def total_expected(
        self,
        lease: LeaseTerms,
        revisions: Iterable[RentRevision],
        reference_date: date,
        charges: Iterable[Charge] = (),
    ) -> Money:
        """Sum the monthly amounts due up to the month containing reference_date.

        Months after the month of the lease end date are never due.
        """
        self._check_range(lease, reference_date)
        ordered = sort_revisions(revisions)

        total = Money.zero()
        for month in iter_months(lease.start_date, self._last_due_day(lease, reference_date)):
            total += self.resolver.monthly_rent(lease, ordered, month).total_amount

        total += Money.sum(c.amount for c in charges if c.charge_date <= reference_date)
        return total

    def balance(
        self,
        lease: LeaseTerms,
        revisions: Iterable[RentRevision],
        payments: Iterable[Payment],
        reference_date: date,
        charges: Iterable[Charge] = (),
    ) -> LeaseBalance:
        """Calculate the balance of a lease at a reference date.

        Args:
            lease: Lease baseline terms
            revisions: Rent revisions of the lease
            payments: Payments of the lease (any order)
            reference_date: Date up to which payments and due months are counted
            charges: Ad hoc billable items added to the expected total

        Returns:
            LeaseBalance where balance = total_paid - total_expected

        Raises:
            OutOfRangeDateError: If reference_date precedes the lease start
        """
        total_expected = self.total_expected(lease, revisions, reference_date, charges)
        total_paid = Money.sum(p.amount for p in payments if p.payment_date <= reference_date)

        result = LeaseBalance(
            balance=total_paid - total_expected,
            total_paid=total_paid,
            total_expected=total_expected,
        )
        logger.debug(
            "Lease %s balance at %s: paid=%s expected=%s balance=%s",
            lease.id,
            reference_date.isoformat(),
            result.total_paid,
            result.total_expected,
            result.balance,
        )
        return result

    def balance_around_payment(
        self,
        lease: LeaseTerms,
        revisions: Sequence[RentRevision],
        payments: Iterable[Payment],
        payment_id: int,
        charges: Sequence[Charge] = (),
    ) -> PaymentBalance:
        """Balance just before and just after a given payment.

        "Before" is the balance at the end of the day preceding the payment and
        "after" the balance at the end of the payment day, so a payment made on
        the 1st is measured against a balance that does not yet owe that month.
        Nothing is due on days before the lease start. Among several payments
        on the same day, the ones ordered earlier by (payment_date, id) count
        as already received.

        Raises:
            PaymentNotFoundError: If payment_id is not among payments
        """
        ordered = chronological(payments)
        index = next((i for i, p in enumerate(ordered) if p.id == payment_id), None)
        if index is None:
            raise PaymentNotFoundError(payment_id)

        payment = ordered[index]
        day_before = payment.payment_date - timedelta(days=1)
        paid_before = Money.sum(p.amount for p in ordered[:index])

        expected_before = self._expected_or_zero(lease, revisions, day_before, charges)
        expected_after = self._expected_or_zero(lease, revisions, payment.payment_date, charges)

        return PaymentBalance(
            balance_before=paid_before - expected_before,
            balance_after=paid_before + payment.amount - expected_after,
            payment_amount=payment.amount,
        )

    def _expected_or_zero(
        self,
        lease: LeaseTerms,
        revisions: Sequence[RentRevision],
        reference_date: date,
        charges: Sequence[Charge],
    ) -> Money:
        if reference_date < lease.start_date:
            return Money.zero()
        return self.total_expected(lease, revisions, reference_date, charges)

    def statement(
        self,
        lease: LeaseTerms,
        revisions: Iterable[RentRevision],
        payments: Iterable[Payment],
        reference_date: date,
        charges: Iterable[Charge] = (),
    ) -> list[StatementLine]:
        """Month-by-month statement with a running balance.

        The running balance of the last line equals ``balance(...)`` at the end of
        the reference month. Payments made before the lease start are counted in
        the first month.
        """
        self._check_range(lease, reference_date)
        ordered = sort_revisions(revisions)
        payments = list(payments)
        charges = list(charges)
        last_due_day = self._last_due_day(lease, reference_date)
        first_month = month_start(lease.start_date)

        lines = []
        running = Money.zero()
        for month in iter_months(lease.start_date, reference_date):
            end = month_end(month)
            lower = date.min if month == first_month else month

            due = Money.zero()
            if month <= last_due_day:
                due = self.resolver.monthly_rent(lease, ordered, month).total_amount
            month_charges = Money.sum(c.amount for c in charges if lower <= c.charge_date <= end)
            paid = Money.sum(p.amount for p in payments if lower <= p.payment_date <= end)

            running = running + paid - due - month_charges
            lines.append(
                StatementLine(
                    month=f"{month.year:04d}-{month.month:02d}",
                    amount_due=due,
                    charges=month_charges,
                    paid=paid,
                    balance=running,
                )
            )
        return lines

    def payment_status(
        self,
        lease: LeaseTerms,
        payments: Iterable[Payment],
        reference_date: date,
    ) -> PaymentStatus:
        """Check whether the month containing reference_date is paid and on time.

        A payment covers the month when its declared period spans the whole month;
        a payment with no declared period covers the month it was made in.
        """
        first = month_start(reference_date)
        last = month_end(reference_date)
        expected = expected_payment_date(lease, reference_date)

        in_month = [p for p in payments if first <= p.payment_date <= last]
        is_up_to_date = any(
            p.covers_month(first, last) if p.period_start is not None else True for p in in_month
        )

        last_payment_date = None
        is_late = False
        if in_month:
            last_payment_date = max(p.payment_date for p in in_month)
            is_late = last_payment_date > expected
        elif reference_date > expected:
            is_late = True

        return PaymentStatus(
            is_up_to_date=is_up_to_date,
            is_late=is_late,
            expected_payment_date=expected,
            last_payment_date=last_payment_date,
        )


__all__ = [
    "LeaseBalance",
    "LeaseBalanceCalculator",
    "PaymentBalance",
    "PaymentStatus",
    "StatementLine",
    "chronological",
    "expected_payment_date",
]
