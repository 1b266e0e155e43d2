"""Buckets for security holdings."""

from typing import TYPE_CHECKING
from uuid import UUID

from household_ledger.analysis.attributes import SecurityAttr
from household_ledger.analysis.buckets import Bucket, BucketList
from household_ledger.analysis.history import BucketHistory
from household_ledger.analysis.values import BucketValues
from household_ledger.domain.assets import Portfolio, Security, SecurityHolding
from household_ledger.domain.value_objects import Currency, DateRange, Money, Units

if TYPE_CHECKING:
    from household_ledger.analysis.analysis import Analysis
    from household_ledger.services.transaction_helper import TransactionHelper

_FOREIGN_ATTRS = frozenset(
    {
        SecurityAttr.FOREIGNINVESTED,
        SecurityAttr.FOREIGNVALUE,
        SecurityAttr.FOREIGNVALUEDELTA,
        SecurityAttr.FOREIGNMARKETGROWTH,
    }
)


class SecurityBucket(Bucket[SecurityAttr]):
    """Units, cost basis, investment flows and valuation of one holding."""

    def __init__(
        self,
        analysis: "Analysis",
        holding: SecurityHolding,
        history: BucketHistory[SecurityAttr] | None = None,
    ) -> None:
        self._holding = holding
        self._analysis = analysis
        self.is_relevant = False
        if history is None:
            history = BucketHistory(self._allocate_values())
        super().__init__(analysis, history)

    def _allocate_values(self) -> BucketValues[SecurityAttr]:
        local = Money.zero(self._analysis.currency)
        values: dict[SecurityAttr, object] = {
            SecurityAttr.UNITS: Units.zero(),
            SecurityAttr.RESIDUALCOST: local,
            SecurityAttr.REALISEDGAINS: local,
            SecurityAttr.GROWTHADJUST: local,
            SecurityAttr.INVESTED: local,
            SecurityAttr.DIVIDEND: local,
        }
        if self.is_foreign:
            values[SecurityAttr.FOREIGNINVESTED] = Money.zero(self.currency)
        return BucketValues((SecurityAttr.UNITS,), values)

    @property
    def holding(self) -> SecurityHolding:
        return self._holding

    @property
    def security(self) -> Security:
        return self._holding.security

    @property
    def portfolio(self) -> Portfolio:
        return self._holding.portfolio

    @property
    def key(self) -> UUID:
        return self._holding.id

    @property
    def name(self) -> str:
        return self._holding.name

    @property
    def currency(self) -> Currency:
        return self._holding.currency

    @property
    def is_foreign(self) -> bool:
        return self.currency != self._analysis.currency

    def derive(
        self, analysis: "Analysis", history: BucketHistory[SecurityAttr]
    ) -> "SecurityBucket":
        return SecurityBucket(analysis, self._holding, history)

    def _zero(self, attr: SecurityAttr) -> Money:
        if attr in _FOREIGN_ATTRS:
            return Money.zero(self.currency)
        return Money.zero(self._analysis.currency)

    def get_money(self, attr: SecurityAttr, *, base: bool = False) -> Money:
        values = self.base_values if base else self.values
        return values.get_money_value(attr) or self._zero(attr)

    def get_units(self, *, base: bool = False) -> Units:
        values = self.base_values if base else self.values
        return values.get_units_value(SecurityAttr.UNITS) or Units.zero()

    def adjust_counter(self, attr: SecurityAttr, delta: Money | Units) -> None:
        self.values.adjust(attr, delta)

    def set_value(self, attr: SecurityAttr, value: object) -> None:
        self.values.set_value(attr, value)

    def adjust_for_ni_payments(self, helper: "TransactionHelper") -> None:
        """Accrue national insurance contributions as pension investment."""
        nat_ins = helper.employee_nat_ins + helper.employer_nat_ins
        if nat_ins.is_zero:
            return
        self.adjust_counter(SecurityAttr.RESIDUALCOST, nat_ins)
        self.adjust_counter(SecurityAttr.INVESTED, nat_ins)
        self.register_transaction(helper)

    def adjust_to_base(self) -> None:
        """Rebase flow counters to the analysis start."""
        self.values.adjust_to_base_values(self.base_values)
        self.base_values.reset_base_values()

    def analyse_bucket(self, date_range: DateRange) -> None:
        """Value the holding at both ends of the range and derive profit figures."""
        self._value_asset(self.base_values, date_range.start)
        self._value_asset(self.values, date_range.end)
        self._calculate_deltas()
        self._calculate_profit()
        if self.is_foreign:
            self._calculate_foreign_market_growth(date_range)
        else:
            self._calculate_market_growth()

    def _value_asset(self, values: BucketValues[SecurityAttr], on_date) -> None:
        units = values.get_units_value(SecurityAttr.UNITS) or Units.zero()
        local = self._analysis.currency
        if units.is_zero:
            values.set_value(SecurityAttr.PRICE, None)
            values.set_value(SecurityAttr.VALUATION, Money.zero(local))
            if self.is_foreign:
                values.set_value(SecurityAttr.FOREIGNVALUE, Money.zero(self.currency))
            return

        price = self._analysis.price_map.get_price_for_date(self.security, on_date)
        value = units.value_at_price(price)
        values.set_value(SecurityAttr.PRICE, price)
        if self.is_foreign:
            rate = self._analysis.rate_map.get_rate_for_date(self.currency, on_date)
            values.set_value(SecurityAttr.FOREIGNVALUE, value)
            values.set_value(SecurityAttr.EXCHANGERATE, rate)
            value = value.convert(local, rate)
        values.set_value(SecurityAttr.VALUATION, value)

    def _calculate_deltas(self) -> None:
        delta = self.get_money(SecurityAttr.VALUATION) - self.get_money(
            SecurityAttr.VALUATION, base=True
        )
        self.set_value(SecurityAttr.VALUEDELTA, delta)
        if self.is_foreign:
            foreign_delta = self.get_money(SecurityAttr.FOREIGNVALUE) - self.get_money(
                SecurityAttr.FOREIGNVALUE, base=True
            )
            self.set_value(SecurityAttr.FOREIGNVALUEDELTA, foreign_delta)

    def _calculate_profit(self) -> None:
        profit = (
            self.get_money(SecurityAttr.VALUEDELTA)
            - self.get_money(SecurityAttr.INVESTED)
            + self.get_money(SecurityAttr.DIVIDEND)
            + self.get_money(SecurityAttr.GROWTHADJUST)
        )
        self.set_value(SecurityAttr.PROFIT, profit)
        self.set_value(SecurityAttr.MARKETPROFIT, profit - self.get_money(SecurityAttr.DIVIDEND))
        self.set_value(
            SecurityAttr.UNREALISEDGAINS,
            self.get_money(SecurityAttr.VALUATION) - self.get_money(SecurityAttr.RESIDUALCOST),
        )

    def _calculate_market_growth(self) -> None:
        growth = self.get_money(SecurityAttr.VALUEDELTA) - self.get_money(SecurityAttr.INVESTED)
        self.set_value(SecurityAttr.MARKETGROWTH, growth)

    def _calculate_foreign_market_growth(self, date_range: DateRange) -> None:
        local_growth = self.get_money(SecurityAttr.VALUEDELTA) - self.get_money(
            SecurityAttr.INVESTED
        )
        foreign_growth = self.get_money(SecurityAttr.FOREIGNVALUEDELTA) - self.get_money(
            SecurityAttr.FOREIGNINVESTED
        )
        rate = self._analysis.rate_map.get_rate_for_date(self.currency, date_range.end)
        self.set_value(SecurityAttr.EXCHANGERATE, rate)
        market_growth = foreign_growth.convert(self._analysis.currency, rate)
        self.set_value(SecurityAttr.LOCALMARKETGROWTH, local_growth)
        self.set_value(SecurityAttr.FOREIGNMARKETGROWTH, foreign_growth)
        self.set_value(SecurityAttr.MARKETGROWTH, market_growth)
        self.set_value(SecurityAttr.CURRENCYFLUCT, local_growth - market_growth)


class SecurityBucketList(BucketList[SecurityBucket]):
    """Holdings of a single portfolio."""

    def get_bucket(self, holding: SecurityHolding) -> SecurityBucket:
        bucket = self._buckets.get(holding.id)
        if bucket is None:
            bucket = SecurityBucket(self._analysis, holding)
            self._buckets[holding.id] = bucket
        return bucket

    def sort(self) -> None:
        self._sort(lambda bucket: bucket.security.name)
