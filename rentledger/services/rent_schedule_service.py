"""Resolution of the rent and charges contractually due on a date.

A lease's baseline amounts act as a virtual revision effective at its start
date; every RentRevision supersedes the previous one from its effective date on.
"""

import logging
from calendar import monthrange
from datetime import date, datetime
from typing import Iterable, NamedTuple

from rentledger.services.errors import OutOfRangeDateError, ValidationError
from rentledger.services.money import Money
from rentledger.services.records import LeaseTerms, RentRevision

logger = logging.getLogger(__name__)


class ApplicableRent(NamedTuple):
    """Amounts due under a lease at a given date."""

    rent_amount: Money
    charges_amount: Money
    total_amount: Money
    revision_id: int | None
    is_from_revision: bool


class MonthlyRent(NamedTuple):
    """Amounts due for one calendar month."""

    month: str  # YYYY-MM
    rent_amount: Money
    charges_amount: Money
    total_amount: Money
    revision_id: int | None


def month_start(value: date) -> date:
    return date(value.year, value.month, 1)


def month_end(value: date) -> date:
    return date(value.year, value.month, monthrange(value.year, value.month)[1])


def next_month(value: date) -> date:
    if value.month == 12:
        return date(value.year + 1, 1, 1)
    return date(value.year, value.month + 1, 1)


def iter_months(first: date, last: date) -> Iterable[date]:
    """Yield the first day of every month from ``first``'s month to ``last``'s month."""
    current = month_start(first)
    while current <= last:
        yield current
        current = next_month(current)


def parse_month(value: str) -> date:
    """Parse a YYYY-MM string into the first day of that month."""
    try:
        year, month = (int(part) for part in value.split("-"))
        return date(year, month, 1)
    except ValueError as e:
        raise ValidationError(f"Invalid month {value!r}, expected YYYY-MM") from e


def sort_revisions(revisions: Iterable[RentRevision]) -> list[RentRevision]:
    """Order revisions by effective date, older creations first on equal dates.

    Sorting is stable, so revisions sharing both effective date and creation time
    keep their input order and the last one supplied wins.
    """
    return sorted(revisions, key=_revision_sort_key)


def _revision_sort_key(revision: RentRevision) -> tuple[date, float]:
    # Revisions without a creation time rank as the oldest on their date
    created: datetime | None = revision.created_at
    return revision.effective_date, created.timestamp() if created else float("-inf")


class RentScheduleResolver:
    """Resolve the revision in force for a lease at any date."""

    def applicable_rent(
        self,
        lease: LeaseTerms,
        revisions: Iterable[RentRevision],
        on_date: date,
    ) -> ApplicableRent:
        """Return the amounts due on ``on_date``.

        Args:
            lease: Lease baseline terms
            revisions: Rent revisions of the lease, in any order
            on_date: Date to resolve

        Returns:
            ApplicableRent from the latest revision effective at or before on_date,
            or from the lease baseline when none applies

        Raises:
            OutOfRangeDateError: If on_date precedes the lease start date
        """
        if on_date < lease.start_date:
            raise OutOfRangeDateError(
                f"Date {on_date.isoformat()} is before lease start {lease.start_date.isoformat()}"
            )

        applicable = None
        for revision in sort_revisions(revisions):
            if revision.effective_date <= on_date:
                applicable = revision
            else:
                break

        if applicable is None:
            return ApplicableRent(
                rent_amount=lease.rent_amount,
                charges_amount=lease.charges_amount,
                total_amount=lease.total_amount,
                revision_id=None,
                is_from_revision=False,
            )

        return ApplicableRent(
            rent_amount=applicable.rent_amount,
            charges_amount=applicable.charges_amount,
            total_amount=applicable.total_amount,
            revision_id=applicable.id,
            is_from_revision=True,
        )

    def monthly_rent(
        self,
        lease: LeaseTerms,
        revisions: Iterable[RentRevision],
        month: date,
    ) -> ApplicableRent:
        """Return the amounts due for the calendar month containing ``month``.

        A revision counts for the whole month holding its effective date, so the
        month is resolved at its last day.
        """
        return self.applicable_rent(lease, revisions, month_end(month))

    def rent_history(
        self,
        lease: LeaseTerms,
        revisions: Iterable[RentRevision],
        start_month: str,
        end_month: str,
    ) -> list[MonthlyRent]:
        """List the amounts due month by month between two YYYY-MM months.

        Months entirely before the lease start are skipped.
        """
        first = parse_month(start_month)
        last = parse_month(end_month)
        if last < first:
            raise ValidationError("End month must not precede start month")

        ordered = sort_revisions(revisions)
        history = []
        for current in iter_months(max(first, month_start(lease.start_date)), last):
            due = self.monthly_rent(lease, ordered, current)
            history.append(
                MonthlyRent(
                    month=f"{current.year:04d}-{current.month:02d}",
                    rent_amount=due.rent_amount,
                    charges_amount=due.charges_amount,
                    total_amount=due.total_amount,
                    revision_id=due.revision_id,
                )
            )

        logger.debug("Rent history for lease %s: %d months", lease.id, len(history))
        return history


__all__ = [
    "ApplicableRent",
    "MonthlyRent",
    "RentScheduleResolver",
    "iter_months",
    "month_end",
    "month_start",
    "next_month",
    "parse_month",
    "sort_revisions",
]
