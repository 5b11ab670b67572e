"""Unit tests for lease balance, statement and payment status."""

from datetime import date

import pytest

from rentledger.services.errors import OutOfRangeDateError, PaymentNotFoundError
from rentledger.services.lease_balance_service import (
    LeaseBalanceCalculator,
    expected_payment_date,
)
from rentledger.services.money import Money
from rentledger.services.records import Charge, LeaseTerms, Payment
from rentledger.services.rent_schedule_service import month_end


@pytest.fixture
def calculator():
    return LeaseBalanceCalculator()


class TestLeaseBalance:
    """Test balance = total paid - total expected."""

    def test_fully_paid_through_july(self, calculator, lease, july_revision, paid_through_july):
        """Test six months at 1100 and July at 1150 settle to zero."""
        result = calculator.balance(lease, [july_revision], paid_through_july, date(2024, 7, 31))

        assert result.total_expected == Money.of("7750")
        assert result.total_paid == Money.of("7750")
        assert result.balance == Money.zero()

    def test_missing_payment_gives_negative_balance(self, calculator, lease, july_revision, paid_through_july):
        result = calculator.balance(lease, [july_revision], paid_through_july[:-1], date(2024, 7, 31))

        assert result.balance == Money.of("-1150")
        assert result.balance.is_negative()

    def test_overpayment_gives_credit(self, calculator, lease):
        payments = [Payment.create(1, 1, "1500", date(2024, 1, 2))]

        result = calculator.balance(lease, [], payments, date(2024, 1, 31))

        assert result.balance == Money.of("400")

    def test_whole_month_due_from_its_first_day(self, calculator, lease):
        """Test the reference month is fully due even on its first day."""
        result = calculator.balance(lease, [], [], date(2024, 3, 1))
        assert result.total_expected == Money.of("3300")

    def test_payments_after_reference_date_are_ignored(self, calculator, lease, july_revision, paid_through_july):
        result = calculator.balance(lease, [july_revision], paid_through_july, date(2024, 6, 30))

        assert result.total_paid == Money.of("6600")
        assert result.balance == Money.zero()

    def test_ad_hoc_charges_are_expected(self, calculator, lease, july_revision, paid_through_july):
        charges = [
            Charge.create(1, 1, "50.00", date(2024, 3, 10), "Key replacement"),
            Charge.create(2, 1, "80.00", date(2024, 9, 1), "Future repair"),
        ]

        result = calculator.balance(lease, [july_revision], paid_through_july, date(2024, 7, 31), charges)

        assert result.total_expected == Money.of("7800")
        assert result.balance == Money.of("-50")

    def test_no_month_due_after_lease_end(self, calculator):
        ended = LeaseTerms.create(
            2, 10, date(2024, 1, 1), "1000", "100", end_date=date(2024, 3, 15)
        )

        result = calculator.balance(ended, [], [], date(2024, 7, 31))

        assert result.total_expected == Money.of("3300")

    def test_reference_before_start_raises(self, calculator, lease):
        with pytest.raises(OutOfRangeDateError):
            calculator.balance(lease, [], [], date(2023, 12, 31))

    def test_payments_are_additive(self, calculator, lease, july_revision, paid_through_july):
        """Test adding a payment raises the balance by exactly its amount."""
        reference = date(2024, 7, 31)
        extra = Payment.create(99, 1, "123.45", date(2024, 7, 20))

        without = calculator.balance(lease, [july_revision], paid_through_july, reference)
        with_extra = calculator.balance(lease, [july_revision], [*paid_through_july, extra], reference)

        assert with_extra.balance - without.balance == Money.of("123.45")


class TestPaymentBalance:
    """Test balance immediately before and after a payment."""

    def test_july_payment_clears_the_month(self, calculator, lease, july_revision, paid_through_july):
        result = calculator.balance_around_payment(lease, [july_revision], paid_through_july, 7)

        assert result.balance_before == Money.of("-1150")
        assert result.balance_after == Money.zero()
        assert result.payment_amount == Money.of("1150")

    def test_same_day_payments_get_distinct_views(self, calculator, lease):
        """Test two payments on one day chain their before/after balances."""
        payments = [
            Payment.create(2, 1, "300", date(2024, 1, 3)),
            Payment.create(1, 1, "800", date(2024, 1, 3)),
        ]

        first = calculator.balance_around_payment(lease, [], payments, 1)
        second = calculator.balance_around_payment(lease, [], payments, 2)

        assert first.balance_before == Money.of("-1100")
        assert first.balance_after == Money.of("-300")
        assert second.balance_before == first.balance_after
        assert second.balance_after == Money.zero()

    def test_unknown_payment_raises(self, calculator, lease, paid_through_july):
        with pytest.raises(PaymentNotFoundError):
            calculator.balance_around_payment(lease, [], paid_through_july, 999)

    def test_payment_on_first_of_month_owes_nothing_before(self, calculator, lease, july_revision):
        """Test the month paid on its 1st is not yet due in the "before" figure."""
        payments = [
            Payment.create(i, 1, "1100", date(2024, i, 1)) for i in range(1, 7)
        ] + [Payment.create(7, 1, "1150", date(2024, 7, 1))]

        result = calculator.balance_around_payment(lease, [july_revision], payments, 7)

        june_end = calculator.balance(lease, [july_revision], payments, date(2024, 6, 30))
        july_first = calculator.balance(lease, [july_revision], payments, date(2024, 7, 1))
        assert result.balance_before == june_end.balance == Money.zero()
        assert result.balance_after == july_first.balance == Money.zero()

    def test_first_payment_on_lease_start(self, calculator, lease):
        payments = [Payment.create(1, 1, "1100", date(2024, 1, 1))]

        result = calculator.balance_around_payment(lease, [], payments, 1)

        assert result.balance_before == Money.zero()
        assert result.balance_after == Money.zero()

    def test_payment_before_lease_start_has_nothing_due(self, calculator, lease):
        deposit = Payment.create(1, 1, "1100", date(2023, 12, 20))

        result = calculator.balance_around_payment(lease, [], [deposit], 1)

        assert result.balance_before == Money.zero()
        assert result.balance_after == Money.of("1100")

    def test_matches_balance_on_consecutive_days(self, calculator, lease, july_revision, paid_through_july):
        """Test before/after equal balance() the day before and the day of the payment."""
        charges = [Charge.create(1, 1, "30", date(2024, 7, 2))]

        result = calculator.balance_around_payment(lease, [july_revision], paid_through_july, 7, charges)

        before = calculator.balance(lease, [july_revision], paid_through_july, date(2024, 7, 2), charges)
        after = calculator.balance(lease, [july_revision], paid_through_july, date(2024, 7, 3), charges)
        assert result.balance_before == before.balance
        assert result.balance_after == after.balance


class TestBalanceAdditivity:
    def test_month_end_balances_chain(self, calculator, lease, july_revision, paid_through_july):
        """Test balance(M) = balance(M-1) + payments(M) - due(M) - charges(M) across a revision."""
        charges = [Charge.create(1, 1, "40", date(2024, 3, 14), "Key replacement")]
        month_ends = [month_end(date(2024, m, 1)) for m in range(1, 10)]

        previous = calculator.balance(lease, [july_revision], paid_through_july, month_ends[0], charges)
        for end in month_ends[1:]:
            current = calculator.balance(lease, [july_revision], paid_through_july, end, charges)
            start = end.replace(day=1)
            paid = Money.sum(p.amount for p in paid_through_july if start <= p.payment_date <= end)
            charged = Money.sum(c.amount for c in charges if start <= c.charge_date <= end)
            due = calculator.resolver.monthly_rent(lease, [july_revision], start).total_amount

            assert current.balance == previous.balance + paid - due - charged
            previous = current

        assert previous.balance == Money.of("-2340")


class TestStatement:
    def test_running_balance_matches_balance(self, calculator, lease, july_revision, paid_through_july):
        lines = calculator.statement(lease, [july_revision], paid_through_july[:-1], date(2024, 7, 31))

        assert len(lines) == 7
        assert lines[0].month == "2024-01"
        assert all(line.balance == Money.zero() for line in lines[:6])
        assert lines[-1].amount_due == Money.of("1150")
        assert lines[-1].paid == Money.zero()
        assert lines[-1].balance == Money.of("-1150")

    def test_charges_appear_in_their_month(self, calculator, lease):
        charges = [Charge.create(1, 1, "40", date(2024, 2, 14))]

        lines = calculator.statement(lease, [], [], date(2024, 2, 29), charges)

        assert lines[0].charges == Money.zero()
        assert lines[1].charges == Money.of("40")
        assert lines[1].balance == Money.of("-2240")

    def test_months_after_lease_end_have_nothing_due(self, calculator):
        ended = LeaseTerms.create(2, 10, date(2024, 1, 1), "1000", "100", end_date=date(2024, 1, 31))

        lines = calculator.statement(ended, [], [], date(2024, 3, 10))

        assert [line.amount_due for line in lines] == [Money.of("1100"), Money.zero(), Money.zero()]


class TestPaymentStatus:
    """Test on-time payment status of the reference month."""

    def test_paid_before_due_day(self, calculator, lease, paid_through_july):
        status = calculator.payment_status(lease, paid_through_july, date(2024, 7, 20))

        assert status.is_up_to_date is True
        assert status.is_late is False
        assert status.expected_payment_date == date(2024, 7, 5)
        assert status.last_payment_date == date(2024, 7, 3)

    def test_unpaid_after_due_day_is_late(self, calculator, lease, paid_through_july):
        status = calculator.payment_status(lease, paid_through_july, date(2024, 8, 10))

        assert status.is_up_to_date is False
        assert status.is_late is True
        assert status.last_payment_date is None

    def test_unpaid_before_due_day_is_not_late(self, calculator, lease, paid_through_july):
        status = calculator.payment_status(lease, paid_through_july, date(2024, 8, 2))

        assert status.is_up_to_date is False
        assert status.is_late is False

    def test_paid_after_due_day_is_late(self, calculator, lease):
        payments = [Payment.create(1, 1, "1100", date(2024, 3, 12))]

        status = calculator.payment_status(lease, payments, date(2024, 3, 20))

        assert status.is_up_to_date is True
        assert status.is_late is True

    def test_partial_period_does_not_cover_month(self, calculator, lease):
        payments = [
            Payment.create(
                1, 1, "550", date(2024, 3, 2),
                period_start=date(2024, 3, 1), period_end=date(2024, 3, 15),
            )
        ]

        status = calculator.payment_status(lease, payments, date(2024, 3, 20))

        assert status.is_up_to_date is False

    def test_due_day_clamped_to_month_length(self):
        lease = LeaseTerms.create(1, 10, date(2024, 1, 1), "1000", "100", payment_due_day=31)

        assert expected_payment_date(lease, date(2024, 2, 10)) == date(2024, 2, 29)
        assert expected_payment_date(lease, date(2024, 4, 10)) == date(2024, 4, 30)
