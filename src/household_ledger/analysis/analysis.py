"""The Analysis aggregate: every bucket list for one date-range view."""

from __future__ import annotations

from datetime import date
from functools import cached_property
from typing import TYPE_CHECKING, Any

from household_ledger.analysis.accounts import AccountBucketList, AccountKind
from household_ledger.analysis.attributes import AccountAttr, SecurityAttr
from household_ledger.analysis.categories import TransactionCategoryBucketList
from household_ledger.analysis.dilutions import DilutedPriceMap, DilutionEventMap
from household_ledger.analysis.gains import ChargeableGainSliceList
from household_ledger.analysis.payees import PayeeBucketList
from household_ledger.analysis.portfolios import PortfolioBucketList
from household_ledger.analysis.tags import TransactionTagBucketList
from household_ledger.analysis.tax_basis import TaxBasisBucketList
from household_ledger.config import Settings, get_settings
from household_ledger.domain.assets import Asset, Cash, Deposit, Loan
from household_ledger.domain.dataset import ReferenceDataset
from household_ledger.domain.value_objects import Currency, DateRange, Money

if TYPE_CHECKING:
    from household_ledger.services.interfaces import RateLookup, TaxYearCalculator


class Analysis:
    """Root of the bucket tree for one reporting currency and date range.

    A full analysis is filled by TransactionAnalyser. Dated and ranged
    analyses are derived from it with dated() and ranged(), which re-slice
    each bucket history and leave the source untouched.
    """

    def __init__(
        self,
        dataset: ReferenceDataset,
        *,
        currency: Currency,
        date_range: DateRange,
        rate_map: RateLookup,
        settings: Settings | None = None,
        tax_year_calculator: TaxYearCalculator | None = None,
        dilutions: DilutionEventMap | None = None,
        gain_slices: ChargeableGainSliceList | None = None,
    ) -> None:
        self.dataset = dataset
        self.currency = currency
        self.date_range = date_range
        self.rate_map = rate_map
        self.settings = settings or get_settings()
        self.tax_year_calculator = tax_year_calculator
        self.dilutions = dilutions if dilutions is not None else DilutionEventMap()
        self.gain_slices = gain_slices if gain_slices is not None else ChargeableGainSliceList()
        self.price_map = DilutedPriceMap(dataset.prices, self.dilutions)

        self.deposits = AccountBucketList(self, AccountKind.DEPOSIT)
        self.cash = AccountBucketList(self, AccountKind.CASH)
        self.loans = AccountBucketList(self, AccountKind.LOAN)
        self.portfolios = PortfolioBucketList(self)
        self.payees = PayeeBucketList(self)
        self.categories = TransactionCategoryBucketList(self)
        self.tax_basis = TaxBasisBucketList(self)
        self.tags = TransactionTagBucketList(self)

    @property
    def start_date(self) -> date:
        return self.date_range.start

    @property
    def end_date(self) -> date:
        return self.date_range.end

    @property
    def account_lists(self) -> tuple[AccountBucketList, ...]:
        return (self.deposits, self.cash, self.loans)

    def _derived(self, date_range: DateRange, dilutions: DilutionEventMap,
                 gain_slices: ChargeableGainSliceList) -> Analysis:
        return Analysis(
            self.dataset,
            currency=self.currency,
            date_range=date_range,
            rate_map=self.rate_map,
            settings=self.settings,
            tax_year_calculator=self.tax_year_calculator,
            dilutions=dilutions,
            gain_slices=gain_slices,
        )

    @classmethod
    def dated(cls, source: Analysis, on_date: date) -> Analysis:
        """Analysis of everything up to and including on_date."""
        end = max(on_date, source.start_date)
        analysis = source._derived(
            DateRange(source.start_date, end),
            source.dilutions.as_of(on_date),
            source.gain_slices.as_of(on_date),
        )
        for target, origin in analysis._list_pairs(source):
            target.derive_as_of(origin, on_date)
        analysis.produce_totals()
        return analysis

    @classmethod
    def ranged(cls, source: Analysis, date_range: DateRange) -> Analysis:
        """Analysis of the flows within date_range, rebased at its start."""
        analysis = source._derived(
            date_range,
            source.dilutions.as_of(date_range.end),
            source.gain_slices.for_range(date_range),
        )
        for target, origin in analysis._list_pairs(source):
            target.derive_for_range(origin, date_range)
        analysis.produce_totals()
        return analysis

    def _list_pairs(self, source: Analysis) -> list[tuple[Any, Any]]:
        return [
            (self.deposits, source.deposits),
            (self.cash, source.cash),
            (self.loans, source.loans),
            (self.portfolios, source.portfolios),
            (self.payees, source.payees),
            (self.categories, source.categories),
            (self.tax_basis, source.tax_basis),
            (self.tags, source.tags),
        ]

    def account_list_for(self, asset: Asset) -> AccountBucketList:
        if isinstance(asset, Deposit):
            return self.deposits
        if isinstance(asset, Cash):
            return self.cash
        if isinstance(asset, Loan):
            return self.loans
        raise TypeError(f"{type(asset).__name__} is not a plain account")

    def mark_active_accounts(self) -> None:
        for accounts in self.account_lists:
            accounts.mark_active_accounts()
        self.portfolios.mark_active_securities()

    def produce_totals(self) -> None:
        """Run the end-of-period calculations over every bucket list."""
        for accounts in self.account_lists:
            accounts.calculate_fluctuations(self.date_range)
            accounts.produce_totals()

        self.portfolios.analyse_securities(self.date_range)

        zero = Money.zero(self.currency)
        portfolio_totals = self.portfolios.totals
        market_growth = zero
        fluctuation = zero
        if portfolio_totals is not None:
            market_growth = portfolio_totals.values.get_money_value(SecurityAttr.MARKETGROWTH) or zero
            fluctuation = portfolio_totals.values.get_money_value(SecurityAttr.CURRENCYFLUCT) or zero
        for accounts in self.account_lists:
            if accounts.totals is not None:
                fluctuation = fluctuation + (
                    accounts.totals.values.get_money_value(AccountAttr.CURRENCYFLUCT) or zero
                )
        self.categories.analyse_market(market_growth, fluctuation)

        self.payees.produce_totals()
        self.categories.produce_totals()
        self.tax_basis.produce_totals()
        self.tags.produce_totals()

    def get_valuation(self) -> Money:
        """Total value of accounts and portfolios at the end of the range."""
        total = Money.zero(self.currency)
        for accounts in self.account_lists:
            if accounts.totals is not None:
                total = total + accounts.totals.get_valuation()
        if self.portfolios.totals is not None:
            total = total + self.portfolios.totals.values.get_money_value(SecurityAttr.VALUATION)
        return total

    def have_foreign_currency(self) -> bool:
        return any(accounts.have_foreign_currency() for accounts in self.account_lists) or (
            self.portfolios.have_foreign_currency()
        )

    def is_idle(self) -> bool:
        lists = (*self.account_lists, self.payees, self.categories, self.tax_basis, self.tags)
        return all(bucket.is_idle() for bucket_list in lists for bucket in bucket_list) and all(
            bucket.is_idle() for bucket in self.portfolios
        )

    @cached_property
    def tax_year(self) -> Any | None:
        if self.tax_year_calculator is None:
            return None
        return self.tax_year_calculator.find_tax_year_for_range(self.date_range)

    def analyse_tax_year(self) -> Any | None:
        """Tax due for the range, if it is exactly one tax year."""
        if self.tax_year_calculator is None or self.tax_year is None:
            return None
        return self.tax_year_calculator.analyse_tax_year(self.tax_year, self.tax_basis)

    def __repr__(self) -> str:
        return f"Analysis({self.date_range.start.isoformat()}..{self.date_range.end.isoformat()})"
