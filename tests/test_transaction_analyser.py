"""Tests for account, payee, category and tax basis analysis."""

from datetime import date
from decimal import Decimal

import pytest

from household_ledger.analysis.attributes import AccountAttr, SecurityAttr, TaxBasisAttr
from household_ledger.domain.assets import Deposit, DepositType, Payee, Security, SecurityType
from household_ledger.domain.categories import (
    CategoryClass,
    TaxBasisClass,
    TransactionCategory,
    TransactionTag,
)
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import AssetDirection, Currency, Money
from household_ledger.exceptions import (
    IllegallyClosedAccountError,
    InvalidAssetPairError,
    TransactionOrderError,
)
from household_ledger.services.transaction_analyser import TransactionAnalyser

from conftest import gbp, usd


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


class TestAccountsAndPayees:
    """Salary in, groceries out."""

    def test_account_balance(self, analyse, current_account, salary, groceries):
        analysis = analyse([salary, groceries])

        bucket = analysis.deposits.find(current_account.id)
        assert bucket.get_valuation() == gbp("1150.00")
        assert bucket.values.get_money_value(AccountAttr.VALUEDELTA) == gbp("150.00")
        assert bucket.base_values.get_money_value(AccountAttr.VALUATION) == gbp("1000.00")

    def test_payee_income_and_expense(self, analyse, employer, shop, salary, groceries):
        analysis = analyse([salary, groceries])

        assert analysis.payees.find(employer.id).get_income() == gbp("250.00")
        assert analysis.payees.find(shop.id).get_expense() == gbp("100.00")
        assert analysis.payees.totals.get_income() == gbp("250.00")
        assert analysis.payees.totals.get_expense() == gbp("100.00")

    def test_category_income_and_expense(self, analyse, categories, salary, groceries):
        analysis = analyse([salary, groceries])

        assert analysis.categories.find(categories["salary"].id).get_income() == gbp("250.00")
        assert analysis.categories.find(categories["groceries"].id).get_expense() == gbp("100.00")

    def test_tax_basis(self, analyse, salary, groceries):
        analysis = analyse([salary, groceries])

        assert analysis.tax_basis.get_amount_for_tax_basis(TaxBasisClass.SALARY) == gbp("250.00")
        assert analysis.tax_basis.get_amount_for_tax_basis(TaxBasisClass.EXPENSE) == gbp("-100.00")
        assert analysis.tax_basis.totals.get_gross() == gbp("150.00")

    def test_valuation_covers_every_account(self, analyse, salary, groceries):
        analysis = analyse([salary, groceries])

        assert analysis.get_valuation() == gbp("1150.00")

    def test_refund_reduces_expense(self, analyse, current_account, shop, categories, groceries):
        refund = Transaction(
            transaction_date=date(2024, 1, 12),
            account=current_account,
            partner=shop,
            category=categories["groceries"],
            amount=gbp("30.00"),
            direction=AssetDirection.FROM,
        )

        analysis = analyse([groceries, refund])

        assert analysis.payees.find(shop.id).get_expense() == gbp("70.00")

    def test_transactions_are_processed_in_date_order(
        self, analyse, current_account, salary, groceries
    ):
        analysis = analyse([groceries, salary])

        bucket = analysis.deposits.find(current_account.id)
        entries = bucket.history.entries
        assert [entry.transaction_date for entry in entries] == [date(2024, 1, 5), date(2024, 1, 10)]

    def test_deleted_and_late_transactions_are_skipped(
        self, analyse, current_account, salary, groceries
    ):
        groceries.deleted = True
        late = Transaction(
            transaction_date=date(2024, 2, 1),
            account=current_account,
            partner=salary.partner,
            category=salary.category,
            amount=gbp("999.00"),
            direction=AssetDirection.FROM,
        )

        analysis = analyse([salary, groceries, late], end_date=date(2024, 1, 31))

        assert analysis.deposits.find(current_account.id).get_valuation() == gbp("1250.00")
        assert analysis.end_date == date(2024, 1, 31)

    def test_analysis_property_requires_a_run(self, dataset, settings):
        analyser = TransactionAnalyser(dataset, settings=settings)

        with pytest.raises(RuntimeError):
            analyser.analysis

    def test_processing_requires_a_run(self, dataset, settings, salary):
        analyser = TransactionAnalyser(dataset, settings=settings)

        with pytest.raises(RuntimeError, match="has not been run"):
            analyser.process_transaction(salary)


class TestTaxAndNationalInsurance:
    def test_tax_credit_on_salary(self, analyse, dataset, current_account, employer, categories):
        salary = Transaction(
            transaction_date=date(2024, 4, 30),
            account=current_account,
            partner=employer,
            category=categories["salary"],
            amount=gbp("2000.00"),
            direction=AssetDirection.FROM,
            tax_credit=gbp("500.00"),
            employee_nat_ins=gbp("150.00"),
        )

        analysis = analyse([salary])

        assert analysis.payees.find(employer.id).get_income() == gbp("2650.00")
        assert analysis.payees.tax_man.get_expense() == gbp("500.00")
        tax_credit = analysis.categories.find(
            dataset.category_for_class(CategoryClass.TAXCREDIT).id
        )
        assert tax_credit.get_expense() == gbp("500.00")
        nat_ins = analysis.categories.find(
            dataset.category_for_class(CategoryClass.EMPLOYEENATINS).id
        )
        assert nat_ins.get_income() == gbp("150.00")

        salary_basis = analysis.tax_basis.find_basis(TaxBasisClass.SALARY)
        assert salary_basis.values.get_money_value(TaxBasisAttr.GROSS) == gbp("2650.00")
        assert salary_basis.values.get_money_value(TaxBasisAttr.NETT) == gbp("2000.00")
        assert salary_basis.values.get_money_value(TaxBasisAttr.TAXCREDIT) == gbp("500.00")
        assert analysis.tax_basis.get_amount_for_tax_basis(TaxBasisClass.TAXPAID) == gbp("-500.00")

    def test_no_tax_man_bucket_without_tax_credit(self, analyse, dataset, salary, groceries):
        analysis = analyse([salary, groceries])

        assert analysis.payees.find(dataset.tax_man.id) is None

    @pytest.fixture
    def state_pension(self, dataset, portfolio):
        security = Security(name="State Pension", security_type=SecurityType.STATE_PENSION)
        dataset.state_pension = dataset.holding(portfolio, security)
        return dataset.state_pension

    def test_nat_ins_accrues_to_state_pension(
        self, analyse, state_pension, current_account, employer, categories
    ):
        salary = Transaction(
            transaction_date=date(2024, 4, 30),
            account=current_account,
            partner=employer,
            category=categories["salary"],
            amount=gbp("2000.00"),
            direction=AssetDirection.FROM,
            employee_nat_ins=gbp("150.00"),
            employer_nat_ins=gbp("200.00"),
        )

        analysis = analyse([salary])

        bucket = analysis.portfolios.find_holding_bucket(state_pension)
        assert bucket.get_money(SecurityAttr.INVESTED) == gbp("350.00")
        assert bucket.get_money(SecurityAttr.RESIDUALCOST) == gbp("350.00")

    def test_state_pension_untouched_without_nat_ins(
        self, analyse, state_pension, salary, groceries
    ):
        analysis = analyse([salary, groceries])

        assert analysis.portfolios.find_holding_bucket(state_pension) is None


class TestInterest:
    """Interest is paid by the account's parent under a detailed category."""

    @pytest.fixture
    def interest(self, current_account, categories) -> Transaction:
        return Transaction(
            transaction_date=date(2024, 1, 31),
            account=current_account,
            partner=current_account,
            category=categories["interest"],
            amount=gbp("20.00"),
            tax_credit=gbp("5.00"),
        )

    def test_parent_payee_receives_income(self, analyse, bank, interest):
        analysis = analyse([interest])

        assert analysis.payees.find(bank.id).get_income() == gbp("25.00")

    def test_account_is_credited(self, analyse, current_account, interest):
        analysis = analyse([interest])

        assert analysis.deposits.find(current_account.id).get_valuation() == gbp("1020.00")

    def test_detailed_category_is_used(self, analyse, dataset, categories, interest):
        analysis = analyse([interest])

        taxed = dataset.category_for_class(CategoryClass.TAXEDINTEREST)
        assert analysis.categories.find(taxed.id).get_income() == gbp("25.00")
        assert analysis.categories.find(categories["interest"].id) is None

    def test_tax_basis_keeps_per_account_figures(self, analyse, current_account, interest):
        analysis = analyse([interest])

        basis = analysis.tax_basis.find_basis(TaxBasisClass.TAXEDINTEREST)
        assert basis.get_gross() == gbp("25.00")
        assert basis.accounts[current_account.id].get_gross() == gbp("25.00")
        assert basis.values.get_money_value(TaxBasisAttr.NETT) == gbp("20.00")

    def test_tax_free_account_uses_tax_free_basis(self, analyse, dataset, bank, categories):
        isa = Deposit(
            name="Cash ISA",
            deposit_type=DepositType.SAVINGS,
            parent=bank,
            is_tax_free=True,
        )
        interest = Transaction(
            transaction_date=date(2024, 1, 31),
            account=isa,
            partner=isa,
            category=categories["interest"],
            amount=gbp("12.00"),
        )

        analysis = analyse([interest])

        assert analysis.tax_basis.get_amount_for_tax_basis(TaxBasisClass.TAXFREE) == gbp("12.00")
        tax_free = dataset.category_for_class(CategoryClass.TAXFREEINTEREST)
        assert analysis.categories.find(tax_free.id).get_income() == gbp("12.00")

    def test_interest_without_parent_is_rejected(self, analyse, categories):
        orphan = Deposit(name="Orphan Savings")
        interest = Transaction(
            transaction_date=date(2024, 1, 31),
            account=orphan,
            partner=orphan,
            category=categories["interest"],
            amount=gbp("1.00"),
        )

        with pytest.raises(InvalidAssetPairError):
            analyse([interest])


class TestCategoryRollup:
    def test_children_roll_up_into_parent(
        self, analyse, current_account, shop, categories, groceries
    ):
        fuel = Transaction(
            transaction_date=date(2024, 1, 11),
            account=current_account,
            partner=shop,
            category=categories["fuel"],
            amount=gbp("60.00"),
        )

        analysis = analyse([groceries, fuel])

        household = analysis.categories.find(categories["household"].id)
        assert household.get_expense() == gbp("160.00")
        assert household.get_profit() == gbp("-160.00")
        assert analysis.categories.totals.get_expense() == gbp("160.00")

    def test_parent_with_direct_transactions_adds_children(
        self, analyse, current_account, shop, categories, groceries
    ):
        direct = Transaction(
            transaction_date=date(2024, 1, 11),
            account=current_account,
            partner=shop,
            category=categories["household"],
            amount=gbp("15.00"),
        )

        analysis = analyse([groceries, direct])

        assert analysis.categories.find(categories["household"].id).get_expense() == gbp("115.00")
        assert analysis.categories.totals.get_expense() == gbp("115.00")

    def test_three_level_rollup(self, analyse, dataset, current_account, shop, categories):
        car = TransactionCategory("Car", CategoryClass.EXPENSE, parent=categories["fuel"])
        dataset.categories.append(car)
        transaction = Transaction(
            transaction_date=date(2024, 1, 11),
            account=current_account,
            partner=shop,
            category=car,
            amount=gbp("45.00"),
        )

        analysis = analyse([transaction])

        assert analysis.categories.find(categories["fuel"].id).get_expense() == gbp("45.00")
        assert analysis.categories.find(categories["household"].id).get_expense() == gbp("45.00")
        assert analysis.categories.totals.get_expense() == gbp("45.00")


class TestAutoExpenseCash:
    """Cash accounts with an auto expense book spending as it is moved in."""

    def test_withdrawal_is_expensed(
        self, analyse, current_account, wallet, categories
    ):
        withdrawal = Transaction(
            transaction_date=date(2024, 2, 1),
            account=current_account,
            partner=wallet,
            category=categories["transfer"],
            amount=gbp("40.00"),
        )

        analysis = analyse([withdrawal])

        assert analysis.deposits.find(current_account.id).get_valuation() == gbp("960.00")
        assert analysis.payees.find(wallet.auto_payee.id).get_expense() == gbp("40.00")
        assert analysis.categories.find(categories["groceries"].id).get_expense() == gbp("40.00")
        assert analysis.tax_basis.get_amount_for_tax_basis(TaxBasisClass.EXPENSE) == gbp("-40.00")

        cash = analysis.cash.find(wallet.id)
        assert cash.get_valuation().is_zero
        assert len(cash.history) == 1


class TestPeerToPeer:
    def test_bad_debt_goes_to_counter(self, analyse, dataset, categories):
        lender = Payee(name="Lending Platform")
        p2p = Deposit(
            name="P2P Loans",
            deposit_type=DepositType.PEER2PEER,
            parent=lender,
            opening_balance=gbp("500.00"),
        )
        dataset.deposits.append(p2p)
        bad_debt = TransactionCategory("Bad Debt", CategoryClass.BADDEBTCAPITAL)
        transaction = Transaction(
            transaction_date=date(2024, 3, 1),
            account=p2p,
            partner=lender,
            category=bad_debt,
            amount=gbp("100.00"),
        )

        analysis = analyse([transaction])

        bucket = analysis.deposits.find(p2p.id)
        assert bucket.values.get_money_value(AccountAttr.BADDEBTCAPITAL) == gbp("100.00")
        assert bucket.get_valuation() == gbp("500.00")
        assert analysis.payees.find(lender.id).get_expense() == gbp("100.00")


class TestForeignAccounts:
    def test_opening_balance_revalued_at_end_rate(self, dataset, settings):
        from household_ledger.domain.market_data import ExchangeRate

        dollars = Deposit(name="Dollar Account", currency=Currency.USD, opening_balance=usd("1000.00"))
        dataset.deposits.append(dollars)
        dataset.start_date = date(2024, 1, 1)
        dataset.rates.add(ExchangeRate(Currency.USD, Currency.GBP, Decimal("0.90"), date(2024, 6, 1)))

        analysis = TransactionAnalyser(dataset, settings=settings).analyse(
            [], end_date=date(2024, 6, 30)
        )

        bucket = analysis.deposits.find(dollars.id)
        assert bucket.is_foreign
        assert bucket.get_valuation() == gbp("900.00")
        assert bucket.values.get_money_value(AccountAttr.FOREIGNVALUE) == usd("1000.00")
        assert bucket.values.get_money_value(AccountAttr.CURRENCYFLUCT) == gbp("100.00")
        assert bucket.values.get_money_value(AccountAttr.VALUEDELTA) == gbp("100.00")
        assert analysis.have_foreign_currency()

        fluctuation = analysis.categories.find(
            dataset.category_for_class(CategoryClass.CURRENCYFLUCTUATION).id
        )
        assert fluctuation.get_income() == gbp("100.00")
        assert analysis.tax_basis.get_amount_for_tax_basis(TaxBasisClass.MARKET) == gbp("100.00")

    def test_foreign_spending_is_localised(self, dataset, analyse, shop, categories):
        dollars = Deposit(name="Dollar Account", currency=Currency.USD, opening_balance=usd("500.00"))
        dataset.deposits.append(dollars)
        spend = Transaction(
            transaction_date=date(2024, 3, 1),
            account=dollars,
            partner=shop,
            category=categories["groceries"],
            amount=usd("100.00"),
        )

        analysis = analyse([spend])

        bucket = analysis.deposits.find(dollars.id)
        assert bucket.values.get_money_value(AccountAttr.FOREIGNVALUE) == usd("400.00")
        assert bucket.get_valuation() == gbp("320.00")
        assert analysis.payees.find(shop.id).get_expense() == gbp("80.00")


class TestTags:
    def test_tagged_transactions_are_counted(self, analyse, salary, groceries):
        holiday = TransactionTag("Holiday")
        salary.tags.append(holiday)
        groceries.tags.append(holiday)

        analysis = analyse([salary, groceries])

        bucket = analysis.tags.find(holiday.id)
        assert bucket.transaction_count == 2


class TestDataConsistency:
    def test_payee_to_payee_is_invalid(self, analyse, employer, shop, categories):
        transaction = Transaction(
            transaction_date=date(2024, 1, 5),
            account=shop,
            partner=employer,
            category=categories["groceries"],
            amount=gbp("1.00"),
        )

        with pytest.raises(InvalidAssetPairError) as exc_info:
            analyse([transaction])

        assert exc_info.value.context["transaction_id"] == str(transaction.id)
        assert exc_info.value.error_code == "INVALID_ASSET_PAIR"

    def test_closed_account_with_balance_is_rejected(self, analyse, current_account):
        current_account.closed = True

        with pytest.raises(IllegallyClosedAccountError, match="Current Account"):
            analyse([])

    def test_closed_account_emptied_is_allowed(
        self, analyse, current_account, shop, categories
    ):
        current_account.closed = True
        emptied = Transaction(
            transaction_date=date(2024, 1, 5),
            account=current_account,
            partner=shop,
            category=categories["groceries"],
            amount=gbp("1000.00"),
        )

        analysis = analyse([emptied])

        assert analysis.deposits.find(current_account.id).get_valuation() == Money.zero(
            Currency.GBP
        )

    def test_registration_out_of_order_is_rejected(self, analyse, dataset, settings, salary, groceries):
        analyser = TransactionAnalyser(dataset, settings=settings)
        analyser.analyse([groceries])

        with pytest.raises(TransactionOrderError):
            analyser.process_transaction(salary)


class TestDeltaIdempotence:
    """Recalculating deltas on an analysed bucket changes nothing."""

    def test_account_delta_is_repeatable(self, analyse, current_account, salary, groceries):
        analysis = analyse([salary, groceries])
        bucket = analysis.deposits.find(current_account.id)
        first = bucket.values.get_money_value(AccountAttr.VALUEDELTA)

        bucket.calculate_delta()

        assert bucket.values.get_money_value(AccountAttr.VALUEDELTA) == first == gbp("150.00")
        assert bucket.get_valuation() == gbp("1150.00")

    def test_category_delta_is_repeatable(self, analyse, categories, salary, groceries):
        analysis = analyse([salary, groceries])
        bucket = analysis.categories.find(categories["groceries"].id)
        first = (bucket.get_expense(), bucket.get_profit())

        bucket.calculate_delta()
        bucket.calculate_delta()

        assert (bucket.get_expense(), bucket.get_profit()) == first
        assert first == (gbp("100.00"), gbp("-100.00"))
