from datetime import date
from decimal import Decimal

from household_ledger.domain.market_data import RateHistory
from household_ledger.domain.value_objects import Currency, DateRange, Money
from household_ledger.exceptions import ExchangeRateNotFoundError
from household_ledger.logging_config import get_logger

logger = get_logger(__name__)


class ExchangeRateMap:
    """Exchange rates into a single reporting currency.

    A rate r for currency C means one unit of C is worth r units of the
    reporting currency, so local = foreign * r and foreign = local / r.
    """

    def __init__(self, history: RateHistory, reporting_currency: Currency) -> None:
        self._history = history
        self._reporting = reporting_currency

    @property
    def reporting_currency(self) -> Currency:
        return self._reporting

    def get_rate_for_date(self, currency: Currency, on_date: date) -> Decimal:
        """Look up the rate for currency, falling back to the inverse pair.

        Raises:
            ExchangeRateNotFoundError: If neither direction has a rate on or before on_date.
        """
        if currency == self._reporting:
            return Decimal("1")

        rate = self._history.get_rate(currency, self._reporting, on_date)
        if rate is not None:
            return rate.rate

        inverse = self._history.get_rate(self._reporting, currency, on_date)
        if inverse is not None:
            logger.debug(
                "exchange_rate_inverse_used",
                pair=inverse.pair,
                on_date=on_date.isoformat(),
            )
            return Decimal("1") / inverse.rate

        raise ExchangeRateNotFoundError(currency.value, self._reporting.value, on_date)

    def get_rates_for_range(
        self, currency: Currency, date_range: DateRange
    ) -> tuple[Decimal, Decimal]:
        return (
            self.get_rate_for_date(currency, date_range.start),
            self.get_rate_for_date(currency, date_range.end),
        )


class CurrencyConverter:
    """Converts money between asset currencies and the reporting currency."""

    def __init__(self, rates: ExchangeRateMap) -> None:
        self._rates = rates

    @property
    def reporting_currency(self) -> Currency:
        return self._rates.reporting_currency

    def rate_for(self, currency: Currency | None, on_date: date) -> Decimal:
        if currency is None:
            return Decimal("1")
        return self._rates.get_rate_for_date(currency, on_date)

    def to_local(self, amount: Money, on_date: date) -> Money:
        if amount.currency == self.reporting_currency:
            return amount
        rate = self._rates.get_rate_for_date(amount.currency, on_date)  # type: ignore[arg-type]
        return amount.convert(self.reporting_currency, rate)

    def convert(self, amount: Money, to_currency: Currency, on_date: date) -> Money:
        """Convert between any two currencies via the reporting currency."""
        if amount.currency == to_currency:
            return amount
        local = self.to_local(amount, on_date)
        if to_currency == self.reporting_currency:
            return local
        rate = self._rates.get_rate_for_date(to_currency, on_date)
        return Money(local.amount / rate, to_currency).quantized()
