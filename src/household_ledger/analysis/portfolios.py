"""Portfolio buckets: a cash account plus the holdings of the portfolio."""

from collections.abc import Iterator
from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from household_ledger.analysis.accounts import AccountBucket, AccountKind
from household_ledger.analysis.attributes import AccountAttr, SecurityAttr
from household_ledger.analysis.buckets import BucketList
from household_ledger.analysis.history import BucketHistory
from household_ledger.analysis.securities import SecurityBucket, SecurityBucketList
from household_ledger.analysis.values import BucketValues
from household_ledger.domain.assets import Portfolio, SecurityHolding
from household_ledger.domain.value_objects import DateRange, Money
from household_ledger.exceptions import DataConsistencyError, IllegallyClosedAccountError

if TYPE_CHECKING:
    from household_ledger.analysis.analysis import Analysis

_TOTALLED = (
    SecurityAttr.VALUATION,
    SecurityAttr.VALUEDELTA,
    SecurityAttr.INVESTED,
    SecurityAttr.RESIDUALCOST,
    SecurityAttr.REALISEDGAINS,
    SecurityAttr.GROWTHADJUST,
    SecurityAttr.DIVIDEND,
    SecurityAttr.MARKETGROWTH,
    SecurityAttr.CURRENCYFLUCT,
    SecurityAttr.MARKETPROFIT,
    SecurityAttr.PROFIT,
    SecurityAttr.UNREALISEDGAINS,
)


class PortfolioBucket:
    """Aggregate of a portfolio's cash and holdings.

    The aggregate values are recomputed by calculate_totals() and have no
    history; the cash bucket and each security bucket keep their own.
    """

    def __init__(
        self,
        analysis: "Analysis",
        portfolio: Portfolio | None,
        cash: AccountBucket | None = None,
        securities: SecurityBucketList | None = None,
    ) -> None:
        self._analysis = analysis
        self._portfolio = portfolio
        if cash is None and portfolio is not None:
            cash = AccountBucket(analysis, portfolio, AccountKind.PORTFOLIO_CASH)
        self._cash = cash
        self._securities = securities if securities is not None else SecurityBucketList(analysis)
        self.values: BucketValues[SecurityAttr] = self._zero_values()
        self.base_values: BucketValues[SecurityAttr] = self._zero_values()

    def _zero_values(self) -> BucketValues[SecurityAttr]:
        zero = Money.zero(self._analysis.currency)
        return BucketValues((SecurityAttr.VALUATION,), {attr: zero for attr in _TOTALLED})

    @property
    def portfolio(self) -> Portfolio | None:
        return self._portfolio

    @property
    def key(self) -> UUID | str:
        return self._portfolio.id if self._portfolio is not None else "totals"

    @property
    def name(self) -> str:
        return self._portfolio.name if self._portfolio is not None else "Totals"

    @property
    def cash(self) -> AccountBucket | None:
        return self._cash

    @property
    def securities(self) -> SecurityBucketList:
        return self._securities

    def get_security_bucket(self, holding: SecurityHolding) -> SecurityBucket:
        return self._securities.get_bucket(holding)

    def is_active(self) -> bool:
        cash_active = self._cash is not None and self._cash.is_active()
        return cash_active or any(bucket.is_active() for bucket in self._securities)

    def is_idle(self) -> bool:
        cash_idle = self._cash is None or self._cash.is_idle()
        return cash_idle and all(bucket.is_idle() for bucket in self._securities)

    def derive(
        self, analysis: "Analysis", slicer
    ) -> "PortfolioBucket":
        cash = None
        if self._cash is not None:
            cash = self._cash.derive(analysis, slicer(self._cash.history))
        securities = SecurityBucketList(analysis)
        for bucket in self._securities:
            derived = bucket.derive(analysis, slicer(bucket.history))
            if derived.is_active() or not derived.is_idle():
                securities._buckets[derived.key] = derived
        return PortfolioBucket(analysis, self._portfolio, cash, securities)

    def analyse_securities(self, date_range: DateRange) -> None:
        for bucket in self._securities:
            bucket.adjust_to_base()
            bucket.analyse_bucket(date_range)
        if self._cash is not None:
            self._cash.calculate_fluctuations(date_range)
            self._cash.calculate_delta()
        self._securities.sort()

    def calculate_totals(self) -> None:
        self.values = self._zero_values()
        self.base_values = self._zero_values()
        for bucket in self._securities:
            self._add_security(bucket)
        if self._cash is not None:
            self.add_cash(self._cash)

    def _add_security(self, bucket: SecurityBucket) -> None:
        for attr in _TOTALLED:
            value = bucket.values.get_money_value(attr)
            if value is not None:
                self.values.adjust(attr, value)
        base_valuation = bucket.base_values.get_money_value(SecurityAttr.VALUATION)
        if base_valuation is not None:
            self.base_values.adjust(SecurityAttr.VALUATION, base_valuation)

    def add_cash(self, cash: AccountBucket) -> None:
        for source, target in (
            (AccountAttr.VALUATION, SecurityAttr.VALUATION),
            (AccountAttr.VALUEDELTA, SecurityAttr.VALUEDELTA),
            (AccountAttr.CURRENCYFLUCT, SecurityAttr.CURRENCYFLUCT),
        ):
            value = cash.values.get_money_value(source)
            if value is not None:
                self.values.adjust(target, value)
        base_valuation = cash.base_values.get_money_value(AccountAttr.VALUATION)
        if base_valuation is not None:
            self.base_values.adjust(SecurityAttr.VALUATION, base_valuation)

    def add_values(self, other: "PortfolioBucket") -> None:
        for attr in _TOTALLED:
            self.values.adjust(attr, other.values.get_money_value(attr))
        self.base_values.adjust(
            SecurityAttr.VALUATION, other.base_values.get_money_value(SecurityAttr.VALUATION)
        )

    def get_cash_value(self, *, base: bool = False) -> Money:
        zero = Money.zero(self._analysis.currency)
        if self._cash is None:
            return zero
        values = self._cash.base_values if base else self._cash.values
        return values.get_money_value(AccountAttr.VALUATION) or zero

    def get_non_cash_value(self, *, base: bool = False) -> Money:
        zero = Money.zero(self._analysis.currency)
        total = zero
        for bucket in self._securities:
            values = bucket.base_values if base else bucket.values
            total = total + (values.get_money_value(SecurityAttr.VALUATION) or zero)
        return total

    def __repr__(self) -> str:
        return f"PortfolioBucket({self.name!r})"


class PortfolioBucketList(BucketList[PortfolioBucket]):
    def get_bucket(self, portfolio: Portfolio) -> PortfolioBucket:
        bucket = self._buckets.get(portfolio.id)
        if bucket is None:
            bucket = PortfolioBucket(self._analysis, portfolio)
            self._buckets[portfolio.id] = bucket
        return bucket

    def get_holding_bucket(self, holding: SecurityHolding) -> SecurityBucket:
        return self.get_bucket(holding.portfolio).get_security_bucket(holding)

    def get_cash_bucket(self, portfolio: Portfolio) -> AccountBucket:
        cash = self.get_bucket(portfolio).cash
        if cash is None:
            raise DataConsistencyError(f"Portfolio {portfolio.name} has no cash bucket")
        return cash

    def iter_securities(self) -> Iterator[SecurityBucket]:
        for bucket in self:
            yield from bucket.securities

    def find_holding_bucket(self, holding: SecurityHolding) -> SecurityBucket | None:
        bucket = self._buckets.get(holding.portfolio.id)
        if bucket is None:
            return None
        return bucket.securities.find(holding.id)

    def _derive_from(self, source, slicer) -> None:  # type: ignore[override]
        for bucket in source:
            derived = bucket.derive(self._analysis, slicer)
            if derived.is_active() or not derived.is_idle():
                self._buckets[derived.key] = derived

    def derive_as_of(self, source: "PortfolioBucketList", on_date: date) -> None:  # type: ignore[override]
        self._derive_from(source, lambda history: BucketHistory.as_of_date(history, on_date))

    def derive_for_range(  # type: ignore[override]
        self, source: "PortfolioBucketList", date_range: DateRange
    ) -> None:
        self._derive_from(source, lambda history: BucketHistory.for_range(history, date_range))

    def analyse_securities(self, date_range: DateRange) -> None:
        """Value every holding over the range and total each portfolio."""
        totals = PortfolioBucket(self._analysis, None)
        for bucket in self:
            bucket.analyse_securities(date_range)
            bucket.calculate_totals()
            totals.add_values(bucket)
        self._sort(lambda bucket: bucket.name)
        self.totals = totals

    def mark_active_securities(self) -> None:
        """Flag holdings that still hold units; closed ones must not."""
        for bucket in self:
            for security in bucket.securities:
                if security.is_active():
                    if security.security.closed:
                        raise IllegallyClosedAccountError(security.name)
                    security.is_relevant = True
            cash = bucket.cash
            if cash is not None and cash.is_active():
                if bucket.portfolio is not None and bucket.portfolio.closed:
                    raise IllegallyClosedAccountError(bucket.name)
                cash.is_relevant = True

    def have_foreign_currency(self) -> bool:
        return any(security.is_foreign for security in self.iter_securities()) or any(
            bucket.cash is not None and bucket.cash.is_foreign for bucket in self
        )
