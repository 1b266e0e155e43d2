from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from dateutil.relativedelta import relativedelta  # type: ignore[import-untyped]

from household_ledger.exceptions import InvalidCurrencyError, InvalidDateRangeError


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CHF = "CHF"
    CAD = "CAD"
    AUD = "AUD"
    CNY = "CNY"
    HKD = "HKD"
    SGD = "SGD"
    NZD = "NZD"
    SEK = "SEK"
    NOK = "NOK"
    DKK = "DKK"
    MXN = "MXN"
    BRL = "BRL"
    INR = "INR"
    KRW = "KRW"
    ZAR = "ZAR"

    @property
    def scale(self) -> int:
        """Number of minor-unit decimal places."""
        if self in (Currency.JPY, Currency.KRW):
            return 0
        return 2


class AssetDirection(str, Enum):
    """Direction of a transaction relative to its account.

    TO means the account pays the partner; FROM means the partner pays the account.
    """

    TO = "to"
    FROM = "from"

    def reverse(self) -> "AssetDirection":
        return AssetDirection.FROM if self is AssetDirection.TO else AssetDirection.TO


class CashType(str, Enum):
    """Classification of a capital distribution against the holding value."""

    LARGE = "large"
    SMALL = "small"


def _as_decimal(value: "Money | Units | Decimal | int | str") -> Decimal:
    if isinstance(value, Money):
        return value.amount
    if isinstance(value, Units):
        return value.value
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True, slots=True)
class Money:
    amount: Decimal
    currency: Currency | str = "GBP"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))

        if isinstance(self.currency, Currency):
            pass
        elif isinstance(self.currency, str):
            try:
                currency_enum = Currency[self.currency]
                object.__setattr__(self, "currency", currency_enum)
            except KeyError:
                raise ValueError(f"Invalid currency: {self.currency}")
        else:
            raise ValueError(f"Invalid currency: {self.currency}")

    def _check_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise InvalidCurrencyError(str(self.currency.value), str(other.currency.value))

    def __add__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor: Decimal | int) -> "Money":
        return Money(self.amount * _as_decimal(factor), self.currency)

    def __neg__(self) -> "Money":
        return Money(-self.amount, self.currency)

    def __abs__(self) -> "Money":
        return Money(abs(self.amount), self.currency)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount == other.amount and self.currency == other.currency

    def __hash__(self) -> int:
        return hash((self.amount, self.currency))

    def __lt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount < other.amount

    def __le__(self, other: "Money") -> bool:
        return self == other or self < other

    def __gt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: "Money") -> bool:
        return self == other or self > other

    def quantized(self) -> "Money":
        """Round to the currency's minor units."""
        exponent = Decimal(1).scaleb(-self.currency.scale)
        return Money(self.amount.quantize(exponent, rounding=ROUND_HALF_UP), self.currency)

    def convert(self, currency: Currency, rate: Decimal) -> "Money":
        """Convert to another currency by multiplying by rate."""
        return Money(self.amount * rate, currency).quantized()

    def at_rate(self, rate: Decimal) -> "Money":
        """Return amount * rate in the same currency."""
        return Money(self.amount * rate, self.currency).quantized()

    def weighted(
        self,
        numerator: "Money | Units | Decimal",
        denominator: "Money | Units | Decimal",
    ) -> "Money":
        """Return amount * numerator / denominator."""
        divisor = _as_decimal(denominator)
        if divisor == 0:
            return Money.zero(self.currency)
        value = self.amount * _as_decimal(numerator) / divisor
        return Money(value, self.currency).quantized()

    def ratio_to(self, other: "Money") -> Decimal:
        """Return self / other as a plain ratio."""
        self._check_currency(other)
        return self.amount / other.amount

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    @property
    def is_positive(self) -> bool:
        return self.amount > Decimal("0")

    @property
    def is_negative(self) -> bool:
        return self.amount < Decimal("0")

    @classmethod
    def zero(cls, currency: Currency | str = "GBP") -> "Money":
        return cls(Decimal("0"), currency)


@dataclass(frozen=True, slots=True)
class Units:
    value: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            object.__setattr__(self, "value", Decimal(str(self.value)))

    def __add__(self, other: "Units") -> "Units":
        return Units(self.value + other.value)

    def __sub__(self, other: "Units") -> "Units":
        return Units(self.value - other.value)

    def __mul__(self, factor: Decimal | int) -> "Units":
        return Units(self.value * _as_decimal(factor))

    def __neg__(self) -> "Units":
        return Units(-self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Units):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __lt__(self, other: "Units") -> bool:
        return self.value < other.value

    def __le__(self, other: "Units") -> bool:
        return self == other or self < other

    def value_at_price(self, price: Money) -> Money:
        """Value of these units at a unit price."""
        return Money(self.value * price.amount, price.currency).quantized()

    @property
    def is_zero(self) -> bool:
        return self.value == Decimal("0")

    @property
    def is_positive(self) -> bool:
        return self.value > Decimal("0")

    @property
    def is_negative(self) -> bool:
        return self.value < Decimal("0")

    @classmethod
    def zero(cls) -> "Units":
        return cls(Decimal("0"))


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive range of dates."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidDateRangeError(self.start, self.end)

    def __contains__(self, value: date) -> bool:
        return self.start <= value <= self.end

    @classmethod
    def for_tax_year(cls, year: int, start_month: int = 4, start_day: int = 6) -> "DateRange":
        """Range of the tax year that starts in the given calendar year."""
        start = date(year, start_month, start_day)
        return cls(start, start + relativedelta(years=1, days=-1))


__all__ = [
    "AssetDirection",
    "CashType",
    "Currency",
    "DateRange",
    "Money",
    "Units",
]
