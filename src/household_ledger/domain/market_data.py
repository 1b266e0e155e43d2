"""Exchange rate and security price records with as-of-date lookup."""

from bisect import bisect_right
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from household_ledger.domain.value_objects import Currency, Money


class ExchangeRateSource(str, Enum):
    """Source of exchange rate data."""

    MANUAL = "manual"
    ECB = "ecb"
    BANK = "bank"
    API = "api"


@dataclass(frozen=True, slots=True)
class ExchangeRate:
    """Immutable exchange rate value object.

    One unit of from_currency is worth rate units of to_currency.
    """

    from_currency: Currency
    to_currency: Currency
    rate: Decimal
    effective_date: date
    id: UUID = field(default_factory=uuid4)
    source: ExchangeRateSource = ExchangeRateSource.MANUAL

    def __post_init__(self) -> None:
        """Validate and coerce currencies and rate."""
        if not isinstance(self.from_currency, Currency):
            object.__setattr__(self, "from_currency", Currency(self.from_currency))
        if not isinstance(self.to_currency, Currency):
            object.__setattr__(self, "to_currency", Currency(self.to_currency))
        if not isinstance(self.rate, Decimal):
            object.__setattr__(self, "rate", Decimal(str(self.rate)))
        if self.rate <= 0:
            raise ValueError(f"Exchange rate must be positive, got {self.rate}")

    @property
    def inverse(self) -> "ExchangeRate":
        """Return the inverse exchange rate (to -> from)."""
        return ExchangeRate(
            from_currency=self.to_currency,
            to_currency=self.from_currency,
            rate=Decimal("1") / self.rate,
            effective_date=self.effective_date,
            source=self.source,
        )

    @property
    def pair(self) -> str:
        """Return currency pair string like 'USD/GBP'."""
        return f"{self.from_currency.value}/{self.to_currency.value}"


@dataclass(frozen=True, slots=True)
class SecurityPrice:
    security_id: UUID
    price_date: date
    price: Money
    id: UUID = field(default_factory=uuid4)


class RateHistory:
    """Exchange rates per currency pair, ordered by effective date."""

    def __init__(self, rates: Iterable[ExchangeRate] = ()) -> None:
        self._dates: dict[tuple[Currency, Currency], list[date]] = defaultdict(list)
        self._rates: dict[tuple[Currency, Currency], list[ExchangeRate]] = defaultdict(list)
        for rate in rates:
            self.add(rate)

    def add(self, rate: ExchangeRate) -> None:
        key = (rate.from_currency, rate.to_currency)
        dates = self._dates[key]
        index = bisect_right(dates, rate.effective_date)
        dates.insert(index, rate.effective_date)
        self._rates[key].insert(index, rate)

    def get_rate(
        self, from_currency: Currency, to_currency: Currency, on_date: date
    ) -> ExchangeRate | None:
        """Latest rate for the pair effective on or before on_date."""
        key = (from_currency, to_currency)
        index = bisect_right(self._dates.get(key, []), on_date)
        if index == 0:
            return None
        return self._rates[key][index - 1]

    def __len__(self) -> int:
        return sum(len(rates) for rates in self._rates.values())


class PriceHistory:
    """Security prices ordered by date."""

    def __init__(self, prices: Iterable[SecurityPrice] = ()) -> None:
        self._dates: dict[UUID, list[date]] = defaultdict(list)
        self._prices: dict[UUID, list[SecurityPrice]] = defaultdict(list)
        for price in prices:
            self.add(price)

    def add(self, price: SecurityPrice) -> None:
        dates = self._dates[price.security_id]
        index = bisect_right(dates, price.price_date)
        dates.insert(index, price.price_date)
        self._prices[price.security_id].insert(index, price)

    def get_latest(self, security_id: UUID, on_date: date) -> SecurityPrice | None:
        """Latest price recorded on or before on_date."""
        index = bisect_right(self._dates.get(security_id, []), on_date)
        if index == 0:
            return None
        return self._prices[security_id][index - 1]

    def __len__(self) -> int:
        return sum(len(prices) for prices in self._prices.values())
