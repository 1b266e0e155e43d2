from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Protocol

from household_ledger.domain.assets import Security
from household_ledger.domain.value_objects import Currency, DateRange, Money

if TYPE_CHECKING:
    from household_ledger.analysis.tax_basis import TaxBasisBucketList


class PriceLookup(Protocol):
    """Unit price of a security as of a date, in the security's currency."""

    def get_price_for_date(self, security: Security, on_date: date) -> Money: ...


class RateLookup(Protocol):
    """Rate converting one unit of a currency into the reporting currency."""

    @property
    def reporting_currency(self) -> Currency: ...

    def get_rate_for_date(self, currency: Currency, on_date: date) -> Decimal: ...

    def get_rates_for_range(
        self, currency: Currency, date_range: DateRange
    ) -> tuple[Decimal, Decimal]: ...


class TaxYearCalculator(ABC):
    """Jurisdiction-specific tax year resolution and tax calculation."""

    @abstractmethod
    def find_tax_year_for_range(self, date_range: DateRange) -> Any | None:
        """Return the tax year exactly covering date_range, if there is one."""
        pass

    @abstractmethod
    def analyse_tax_year(self, tax_year: Any, tax_basis: TaxBasisBucketList) -> Any:
        """Calculate the tax due for a tax year from its tax-basis totals."""
        pass
