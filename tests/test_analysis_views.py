"""Tests for dated and ranged analysis views and the analysis manager."""

from datetime import date
from decimal import Decimal

import pytest

from household_ledger.analysis.analysis import Analysis
from household_ledger.analysis.attributes import AccountAttr, SecurityAttr
from household_ledger.domain.categories import TaxBasisClass
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import AssetDirection, DateRange, Units
from household_ledger.services.analysis_manager import AnalysisManager
from household_ledger.services.interfaces import TaxYearCalculator
from household_ledger.services.transaction_analyser import TransactionAnalyser

from conftest import gbp


@pytest.fixture
def salary(current_account, employer, categories) -> Transaction:
    return Transaction(
        transaction_date=date(2024, 1, 5),
        account=current_account,
        partner=employer,
        category=categories["salary"],
        amount=gbp("250.00"),
        direction=AssetDirection.FROM,
    )


@pytest.fixture
def groceries(current_account, shop, categories) -> Transaction:
    return Transaction(
        transaction_date=date(2024, 1, 10),
        account=current_account,
        partner=shop,
        category=categories["groceries"],
        amount=gbp("100.00"),
    )


@pytest.fixture
def full(analyse, salary, groceries) -> Analysis:
    return analyse([salary, groceries])


class TestDatedView:
    def test_dated_view_truncates_history(self, full, current_account, shop, employer):
        dated = Analysis.dated(full, date(2024, 1, 7))

        assert dated.deposits.find(current_account.id).get_valuation() == gbp("1250.00")
        assert dated.payees.find(employer.id).get_income() == gbp("250.00")
        assert dated.payees.find(shop.id) is None
        assert dated.end_date == date(2024, 1, 7)

    def test_dated_view_matches_a_fresh_analysis(
        self, analyse, full, salary, groceries, current_account, employer, categories
    ):
        dated = Analysis.dated(full, date(2024, 1, 7))
        fresh = analyse([salary, groceries], end_date=date(2024, 1, 7))

        assert dated.get_valuation() == fresh.get_valuation()
        assert (
            dated.payees.find(employer.id).get_income()
            == fresh.payees.find(employer.id).get_income()
        )
        assert (
            dated.categories.find(categories["salary"].id).get_income()
            == fresh.categories.find(categories["salary"].id).get_income()
        )

    def test_source_is_untouched(self, full, current_account, shop):
        Analysis.dated(full, date(2024, 1, 7))
        Analysis.ranged(full, DateRange(date(2024, 1, 6), date(2024, 1, 10)))

        assert full.deposits.find(current_account.id).get_valuation() == gbp("1150.00")
        assert full.payees.find(shop.id).get_expense() == gbp("100.00")

    def test_dilution_after_view_date_is_ignored(
        self, analyse, buy, holding, gadget_holding, widgets, categories
    ):
        demerger = Transaction(
            transaction_date=date(2024, 3, 1),
            account=holding,
            partner=gadget_holding,
            category=categories["demerger"],
            amount=gbp("0.00"),
            partner_delta_units=Units(Decimal("50")),
            dilution=Decimal("0.8"),
        )
        analysis = analyse([buy(holding, date(2024, 2, 1), "1000.00", "100"), demerger])

        dated = Analysis.dated(analysis, date(2024, 2, 15))

        assert dated.price_map.get_price_for_date(widgets, date(2024, 3, 5)) == gbp("10.00")
        bucket = dated.portfolios.find_holding_bucket(holding)
        assert bucket.get_money(SecurityAttr.VALUATION) == gbp("1000.00")
        assert analysis.price_map.get_price_for_date(widgets, date(2024, 3, 5)) == gbp("8.00")


class TestRangedView:
    def test_ranged_view_shows_flows_within_range(self, full, current_account, shop, employer):
        ranged = Analysis.ranged(full, DateRange(date(2024, 1, 6), date(2024, 1, 10)))

        bucket = ranged.deposits.find(current_account.id)
        assert bucket.values.get_money_value(AccountAttr.VALUEDELTA) == gbp("-100.00")
        assert bucket.get_valuation() == gbp("1150.00")
        assert ranged.payees.find(shop.id).get_expense() == gbp("100.00")
        assert ranged.payees.find(employer.id).get_income() == gbp("0.00")

    def test_category_rollup_within_range(
        self, analyse, current_account, shop, categories, groceries
    ):
        fuel = Transaction(
            transaction_date=date(2024, 1, 20),
            account=current_account,
            partner=shop,
            category=categories["fuel"],
            amount=gbp("60.00"),
        )
        analysis = analyse([groceries, fuel])

        ranged = Analysis.ranged(analysis, DateRange(date(2024, 1, 15), date(2024, 1, 31)))

        assert ranged.categories.find(categories["household"].id).get_expense() == gbp("60.00")
        assert analysis.categories.find(categories["household"].id).get_expense() == gbp("160.00")

    def test_tax_year_ranges_rebase_at_start(self, analyse, current_account, employer, categories):
        def pay(on_date: date, amount: str) -> Transaction:
            return Transaction(
                transaction_date=on_date,
                account=current_account,
                partner=employer,
                category=categories["salary"],
                amount=gbp(amount),
                direction=AssetDirection.FROM,
            )

        analysis = analyse([pay(date(2024, 5, 1), "250.00"), pay(date(2025, 5, 1), "300.00")])
        manager = AnalysisManager(analysis)

        first = manager.get_tax_year_analysis(2024)
        second = manager.get_tax_year_analysis(2025)

        assert first.date_range == DateRange(date(2024, 4, 6), date(2025, 4, 5))
        assert first.payees.find(employer.id).get_income() == gbp("250.00")
        assert second.payees.find(employer.id).get_income() == gbp("300.00")


class TestAnalysisManager:
    def test_views_are_cached(self, full):
        manager = AnalysisManager(full)

        dated = manager.get_dated_analysis(date(2024, 1, 7))
        date_range = DateRange(date(2024, 1, 6), date(2024, 1, 10))
        ranged = manager.get_ranged_analysis(date_range)

        assert manager.get_dated_analysis(date(2024, 1, 7)) is dated
        assert manager.get_ranged_analysis(date_range) is ranged
        assert manager.analysis is full

    def test_clear_discards_cached_views(self, full):
        manager = AnalysisManager(full)
        dated = manager.get_dated_analysis(date(2024, 1, 7))

        manager.clear()

        assert manager.get_dated_analysis(date(2024, 1, 7)) is not dated


class FixedTaxYears(TaxYearCalculator):
    """Tax years of the default April calendar; tax due is the gross total."""

    def find_tax_year_for_range(self, date_range):
        year = date_range.start.year
        if date_range == DateRange.for_tax_year(year):
            return year
        return None

    def analyse_tax_year(self, tax_year, tax_basis):
        return tax_basis.totals.get_gross()


class TestTaxYearCalculator:
    def test_ranged_tax_year_is_analysed(
        self, dataset, settings, current_account, employer, categories
    ):
        salary = Transaction(
            transaction_date=date(2024, 5, 1),
            account=current_account,
            partner=employer,
            category=categories["salary"],
            amount=gbp("250.00"),
            direction=AssetDirection.FROM,
        )
        analyser = TransactionAnalyser(
            dataset, settings=settings, tax_year_calculator=FixedTaxYears()
        )
        manager = AnalysisManager(analyser.analyse([salary]))

        view = manager.get_tax_year_analysis(2024)

        assert view.tax_year == 2024
        assert view.analyse_tax_year() == gbp("250.00")
        assert manager.get_dated_analysis(date(2024, 6, 1)).analyse_tax_year() is None


class TestTaxBasisViews:
    def test_basis_netting_to_zero_survives_in_dated_view(
        self, analyse, current_account, shop, categories
    ):
        def shopping(on_date: date, direction: AssetDirection) -> Transaction:
            return Transaction(
                transaction_date=on_date,
                account=current_account,
                partner=shop,
                category=categories["groceries"],
                amount=gbp("100.00"),
                direction=direction,
            )

        transactions = [
            shopping(date(2024, 1, 5), AssetDirection.TO),
            shopping(date(2024, 1, 20), AssetDirection.FROM),
        ]
        full = analyse(transactions)

        dated = Analysis.dated(full, date(2024, 1, 10))
        fresh = analyse(transactions, end_date=date(2024, 1, 10))

        assert full.tax_basis.get_amount_for_tax_basis(TaxBasisClass.EXPENSE).is_zero
        assert dated.tax_basis.find_basis(TaxBasisClass.EXPENSE) is not None
        assert dated.tax_basis.get_amount_for_tax_basis(
            TaxBasisClass.EXPENSE
        ) == fresh.tax_basis.get_amount_for_tax_basis(TaxBasisClass.EXPENSE) == gbp("-100.00")

    def test_idle_zero_basis_is_pruned(self, analyse, salary):
        analysis = analyse([salary])

        assert analysis.tax_basis.find_basis(TaxBasisClass.EXPENSE) is None
        assert analysis.tax_basis.find_basis(TaxBasisClass.SALARY) is not None
