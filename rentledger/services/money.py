"""Fixed-point money value used by every ledger computation."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from rentledger.services.errors import InvalidAmountError

CENT = Decimal("0.01")


@dataclass(frozen=True, order=True)
class Money:
    """Immutable decimal amount.

    Amounts keep their full decimal precision through arithmetic; rounding only
    happens on an explicit ``round_cents()`` call. Build instances with
    ``Money.of`` which accepts Decimal, int, str or float (floats go through
    ``str`` so 0.1 stays 0.1).
    """

    amount: Decimal

    def __post_init__(self):
        if not isinstance(self.amount, Decimal) or not self.amount.is_finite():
            raise InvalidAmountError(f"Invalid money amount: {self.amount!r}")

    @classmethod
    def of(cls, value) -> "Money":
        if isinstance(value, Money):
            return value
        if isinstance(value, bool) or value is None:
            raise InvalidAmountError(f"Invalid money amount: {value!r}")
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise InvalidAmountError(f"Invalid money amount: {value!r}") from e
        return cls(amount)

    @classmethod
    def zero(cls) -> "Money":
        return cls(Decimal(0))

    @classmethod
    def sum(cls, values: Iterable["Money"]) -> "Money":
        total = Decimal(0)
        for value in values:
            total += value.amount
        return cls(total)

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount + other.amount)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount - other.amount)

    def __neg__(self) -> "Money":
        return Money(-self.amount)

    def __mul__(self, factor) -> "Money":
        if isinstance(factor, Money) or isinstance(factor, float):
            return NotImplemented
        return Money(self.amount * Decimal(factor))

    __rmul__ = __mul__

    def __truediv__(self, divisor) -> "Money":
        if isinstance(divisor, Money) or isinstance(divisor, float):
            return NotImplemented
        return Money(self.amount / Decimal(divisor))

    def round_cents(self) -> "Money":
        return Money(self.amount.quantize(CENT, rounding=ROUND_HALF_UP))

    def is_negative(self) -> bool:
        return self.amount < 0

    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self) -> str:
        return str(self.amount)


__all__ = ["CENT", "Money"]
