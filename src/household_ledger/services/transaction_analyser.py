"""Transaction analyser: dispatches ledger transactions into analysis buckets."""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from household_ledger.analysis.accounts import AccountBucket
from household_ledger.analysis.analysis import Analysis
from household_ledger.analysis.attributes import AccountAttr, SecurityAttr
from household_ledger.analysis.securities import SecurityBucket
from household_ledger.config import Settings, get_settings
from household_ledger.domain.assets import (
    Asset,
    Cash,
    Deposit,
    Loan,
    Payee,
    Portfolio,
    SecurityHolding,
)
from household_ledger.domain.categories import CategoryClass
from household_ledger.domain.dataset import ReferenceDataset
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import CashType, DateRange, Money, Units
from household_ledger.exceptions import (
    DataConsistencyError,
    HouseholdLedgerError,
    InvalidAssetPairError,
)
from household_ledger.logging_config import LogContext, get_logger
from household_ledger.services.corporate_actions import (
    CorporateActionProcessor,
    classify_distribution,
)
from household_ledger.services.currency import CurrencyConverter, ExchangeRateMap
from household_ledger.services.interfaces import TaxYearCalculator
from household_ledger.services.transaction_helper import TransactionHelper

logger = get_logger(__name__)

_XFER_OUT_CLASSES = frozenset(
    {
        CategoryClass.TRANSFER,
        CategoryClass.SECURITYCLOSURE,
        CategoryClass.EXPENSE,
        CategoryClass.INHERITED,
        CategoryClass.OTHERINCOME,
    }
)

_XFER_IN_CLASSES = frozenset(
    {
        CategoryClass.STOCKRIGHTSISSUE,
        CategoryClass.TRANSFER,
        CategoryClass.EXPENSE,
        CategoryClass.INHERITED,
        CategoryClass.OTHERINCOME,
        CategoryClass.PENSIONCONTRIB,
    }
)

_STOCK_XFER_CLASSES = frozenset(
    {
        CategoryClass.TRANSFER,
        CategoryClass.EXPENSE,
        CategoryClass.INHERITED,
        CategoryClass.OTHERINCOME,
    }
)

# Income booked against the paying account; the account's parent holds the money.
_PARENT_DEBIT_CLASSES = frozenset(
    {
        CategoryClass.INTEREST,
        CategoryClass.LOYALTYBONUS,
        CategoryClass.LOANINTERESTEARNED,
        CategoryClass.CASHBACK,
    }
)

_PARENT_CREDIT_CLASSES = frozenset(
    {CategoryClass.WRITEOFF, CategoryClass.LOANINTERESTCHARGED}
)


class TransactionAnalyser:
    """Builds a full Analysis from a reference dataset and its transactions.

    Transactions are processed in date order. Each one is resolved into a
    TransactionHelper and dispatched on its debit/credit pair and category;
    every bucket it touches records a snapshot against the transaction.
    """

    def __init__(
        self,
        dataset: ReferenceDataset,
        settings: Settings | None = None,
        tax_year_calculator: TaxYearCalculator | None = None,
    ) -> None:
        self._dataset = dataset
        self._settings = settings or get_settings()
        self._tax_year_calculator = tax_year_calculator
        self._analysis: Analysis | None = None
        self._converter: CurrencyConverter | None = None
        self._actions: CorporateActionProcessor | None = None

    @property
    def analysis(self) -> Analysis:
        if self._analysis is None:
            raise RuntimeError("analyse() has not been run")
        return self._analysis

    @property
    def converter(self) -> CurrencyConverter:
        if self._converter is None:
            raise RuntimeError("analyse() has not been run")
        return self._converter

    @property
    def actions(self) -> CorporateActionProcessor:
        if self._actions is None:
            raise RuntimeError("analyse() has not been run")
        return self._actions

    def analyse(
        self, transactions: Iterable[Transaction], *, end_date: date | None = None
    ) -> Analysis:
        """Run every transaction through the bucket tree.

        Args:
            transactions: Ledger transactions, in any order.
            end_date: Last date to include. Defaults to the last transaction date.

        Returns:
            The full analysis, with totals produced.

        Raises:
            InvalidAssetPairError: If a transaction cannot be dispatched.
            IllegallyClosedAccountError: If a closed account still holds value.
            LookupMissError: If a required price or exchange rate is missing.
        """
        live: list[Transaction] = []
        for transaction in transactions:
            if transaction.deleted:
                logger.debug("transaction_skipped", transaction_id=str(transaction.id))
                continue
            if end_date is not None and transaction.transaction_date > end_date:
                continue
            live.append(transaction)
        live.sort(key=lambda transaction: transaction.transaction_date)

        date_range = self._date_range(live, end_date)
        currency = self._dataset.reporting_currency or self._settings.default_currency
        rate_map = ExchangeRateMap(self._dataset.rates, currency)
        self._converter = CurrencyConverter(rate_map)
        self._analysis = Analysis(
            self._dataset,
            currency=currency,
            date_range=date_range,
            rate_map=rate_map,
            settings=self._settings,
            tax_year_calculator=self._tax_year_calculator,
        )
        self._actions = CorporateActionProcessor(self._analysis)

        logger.info(
            "analysis_started",
            transactions=len(live),
            currency=currency.value,
            start=date_range.start.isoformat(),
            end=date_range.end.isoformat(),
        )

        try:
            self._set_opening_balances()
            for transaction in live:
                with LogContext(transaction_id=str(transaction.id)):
                    self.process_transaction(transaction)
            self._analysis.mark_active_accounts()
            self._analysis.produce_totals()
        except HouseholdLedgerError as e:
            logger.error("analysis_failed", error_code=e.error_code, error=e.message)
            raise

        logger.info(
            "analysis_completed",
            transactions=len(live),
            valuation=str(self._analysis.get_valuation().amount),
        )
        return self._analysis

    def _date_range(self, transactions: list[Transaction], end_date: date | None) -> DateRange:
        if self._dataset.start_date is not None:
            start = self._dataset.start_date
        elif transactions:
            start = transactions[0].transaction_date
        else:
            start = end_date or date.today()

        if end_date is not None:
            end = end_date
        elif transactions:
            end = transactions[-1].transaction_date
        else:
            end = start
        return DateRange(start, max(start, end))

    def _set_opening_balances(self) -> None:
        analysis = self.analysis
        for account in self._dataset.accounts_with_opening_balance():
            balance = account.opening_balance
            if balance is None:
                continue
            if account.currency == analysis.currency:
                rate = Decimal("1")
            else:
                rate = analysis.rate_map.get_rate_for_date(account.currency, analysis.start_date)
            analysis.account_list_for(account).get_bucket(account).set_opening_balance(
                balance, rate
            )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def process_transaction(self, transaction: Transaction) -> None:
        helper = TransactionHelper(transaction, self.converter)
        self.analysis.tags.process_transaction(helper)
        self._record_dilution(helper)

        debit = helper.debit_asset
        credit = helper.credit_asset
        if isinstance(debit, SecurityHolding):
            self._process_debit_security(helper, debit, credit)
        elif isinstance(credit, SecurityHolding):
            self._process_credit_security(helper, debit, credit)
        elif (
            isinstance(debit, Portfolio)
            and isinstance(credit, Portfolio)
            and helper.category_class == CategoryClass.PORTFOLIOXFER
            and debit.id != credit.id
        ):
            self._process_portfolio_xfer(helper, debit, credit)
        else:
            self._process_accounts(helper, debit, credit)

    def _invalid(self, helper: TransactionHelper) -> InvalidAssetPairError:
        return InvalidAssetPairError(
            helper.category_class.value,
            type(helper.debit_asset).__name__,
            type(helper.credit_asset).__name__,
            helper.transaction.id,
        )

    def _record_dilution(self, helper: TransactionHelper) -> None:
        dilution = helper.dilution
        if dilution is None:
            return
        holding = next(
            (
                asset
                for asset in (helper.debit_asset, helper.credit_asset)
                if isinstance(asset, SecurityHolding)
            ),
            None,
        )
        if holding is None:
            return
        self.analysis.dilutions.record(holding.security, helper.transaction_date, dilution)
        logger.debug(
            "dilution_recorded",
            security=holding.security.name,
            factor=str(dilution),
            on_date=helper.transaction_date.isoformat(),
        )

    def _account_bucket(self, asset: Asset, helper: TransactionHelper) -> AccountBucket:
        if isinstance(asset, Portfolio):
            return self.analysis.portfolios.get_cash_bucket(asset)
        if isinstance(asset, (Deposit, Cash, Loan)):
            return self.analysis.account_list_for(asset).get_bucket(asset)
        raise self._invalid(helper)

    def _adjust_categories(self, helper: TransactionHelper) -> None:
        if not helper.category_class.is_transfer:
            self.analysis.categories.adjust_categories(helper, helper.category)

    # ------------------------------------------------------------------
    # Accounts and payees
    # ------------------------------------------------------------------

    def _process_accounts(self, helper: TransactionHelper, debit: Asset, credit: Asset) -> None:
        """Standard movement between accounts and payees."""
        analysis = self.analysis
        if isinstance(debit, Payee) and isinstance(credit, Payee):
            raise self._invalid(helper)

        category = helper.category
        category_class = helper.category_class
        child: Asset | None = None
        if category_class in _PARENT_DEBIT_CLASSES:
            if category_class in (CategoryClass.INTEREST, CategoryClass.LOYALTYBONUS):
                if isinstance(debit, Deposit):
                    category = self._dataset.category_for_class(
                        debit.detailed_class(category_class)
                    )
                if debit != credit:
                    child = debit
            debit = self._parent_of(debit, helper)
        elif category_class in _PARENT_CREDIT_CLASSES:
            credit = self._parent_of(credit, helper)

        if isinstance(debit, Cash) and debit.is_auto_expense:
            self._adjust_auto_expense(helper, debit, is_expense=False)
        elif isinstance(debit, Payee):
            analysis.payees.get_bucket(debit).adjust_for_debit(helper)
        else:
            self._account_bucket(debit, helper).adjust_for_debit(helper)

        if isinstance(credit, Cash) and credit.is_auto_expense:
            self._adjust_auto_expense(helper, credit, is_expense=True)
        elif isinstance(credit, Payee):
            analysis.payees.get_bucket(credit).adjust_for_credit(helper)
        else:
            self._account_bucket(credit, helper).adjust_for_credit(helper)

        if child is not None:
            self._account_bucket(child, helper).register_transaction(helper)

        self._adjust_tax_man(helper)
        self._adjust_state_pension(helper)

        if not category_class.is_transfer:
            analysis.categories.adjust_categories(helper, category)

    def _parent_of(self, asset: Asset, helper: TransactionHelper) -> Payee:
        parent = getattr(asset, "parent", None)
        if parent is None:
            raise self._invalid(helper)
        return parent

    def _adjust_tax_man(self, helper: TransactionHelper) -> None:
        if not helper.tax_credit.is_zero:
            self.analysis.payees.tax_man.adjust_for_tax_payments(helper)

    def _adjust_state_pension(self, helper: TransactionHelper) -> None:
        """Accrue national insurance on the state pension holding, when the dataset has one."""
        state_pension = self._dataset.state_pension
        if state_pension is None:
            return
        if (helper.employee_nat_ins + helper.employer_nat_ins).is_zero:
            return
        self.analysis.portfolios.get_holding_bucket(state_pension).adjust_for_ni_payments(helper)

    def _adjust_auto_expense(self, helper: TransactionHelper, cash: Cash, *, is_expense: bool) -> None:
        """Book an auto-expense cash movement straight to its payee and category."""
        analysis = self.analysis
        if cash.auto_payee is None or cash.auto_expense is None:
            raise DataConsistencyError(
                f"Cash account {cash.name} has no auto-expense payee and category",
                context={"transaction_id": str(helper.transaction.id)},
            )
        amount = helper.local_amount
        payee = analysis.payees.get_bucket(cash.auto_payee)
        category = analysis.categories.get_bucket(cash.auto_expense)
        if is_expense:
            payee.add_expense(amount, helper)
            category.add_expense(amount, helper)
        else:
            payee.subtract_expense(amount, helper)
            category.subtract_expense(amount, helper)
        analysis.tax_basis.adjust_auto_expense(helper, is_expense)
        analysis.cash.get_bucket(cash).register_transaction(helper)

    # ------------------------------------------------------------------
    # Securities
    # ------------------------------------------------------------------

    def _process_debit_security(
        self, helper: TransactionHelper, holding: SecurityHolding, credit: Asset
    ) -> None:
        if isinstance(credit, SecurityHolding):
            self._process_security_pair(helper, holding, credit)
            return

        category_class = helper.category_class
        if category_class == CategoryClass.STOCKRIGHTSISSUE:
            self._process_xfer_out(helper, holding, credit)
        elif category_class == CategoryClass.DIVIDEND:
            self._process_dividend(helper, holding, credit)
        elif category_class == CategoryClass.PORTFOLIOXFER:
            if not isinstance(credit, Portfolio):
                raise self._invalid(helper)
            source = self.analysis.portfolios.get_holding_bucket(holding)
            if source.is_active():
                target = self._dataset.holding(credit, holding.security)
                self._transfer_holding(
                    helper, source, self.analysis.portfolios.get_holding_bucket(target)
                )
        elif category_class in _XFER_OUT_CLASSES:
            if holding.security.is_life_bond:
                self._process_chargeable_gain(helper, holding, credit)
            else:
                self._process_xfer_out(helper, holding, credit)
        else:
            raise self._invalid(helper)

    def _process_security_pair(
        self, helper: TransactionHelper, debit: SecurityHolding, credit: SecurityHolding
    ) -> None:
        category_class = helper.category_class
        if category_class in (CategoryClass.STOCKSPLIT, CategoryClass.UNITSADJUST):
            self.actions.adjust_units(helper, debit)
        elif category_class == CategoryClass.STOCKDEMERGER:
            self.actions.demerge(helper, debit, credit)
        elif category_class in (CategoryClass.SECURITYREPLACE, CategoryClass.STOCKTAKEOVER):
            self.actions.take_over(helper, debit, credit)
        elif category_class == CategoryClass.DIVIDEND:
            self._process_dividend(helper, debit, credit)
        elif category_class in _STOCK_XFER_CLASSES:
            self._debit_xfer_out(helper, debit)
            self._credit_xfer_in(helper, credit)
        else:
            raise self._invalid(helper)

    def _process_credit_security(
        self, helper: TransactionHelper, debit: Asset, holding: SecurityHolding
    ) -> None:
        if helper.category_class not in _XFER_IN_CLASSES:
            raise self._invalid(helper)

        analysis = self.analysis
        self._credit_xfer_in(helper, holding)
        self._adjust_tax_man(helper)
        if isinstance(debit, Payee):
            analysis.payees.get_bucket(debit).adjust_for_debit(helper)
        else:
            self._account_bucket(debit, helper).adjust_for_debit(helper)
        self._adjust_categories(helper)

    def _price(self, holding: SecurityHolding, on_date: date) -> Money:
        return self.analysis.price_map.get_price_for_date(holding.security, on_date)

    def _credit_xfer_in(self, helper: TransactionHelper, holding: SecurityHolding) -> None:
        """Acquire units in a holding at the credited amount."""
        bucket = self.analysis.portfolios.get_holding_bucket(holding)
        rate = helper.credit_exchange_rate
        amount = helper.credit_amount
        if bucket.is_foreign:
            bucket.adjust_counter(SecurityAttr.FOREIGNINVESTED, amount)
            amount = helper.local_amount

        bucket.adjust_counter(SecurityAttr.RESIDUALCOST, amount)
        bucket.adjust_counter(SecurityAttr.INVESTED, amount)

        delta_units = helper.credit_units
        auto_units = holding.security.auto_units
        if auto_units is not None and bucket.get_units().is_zero:
            delta_units = Units(auto_units)
        if delta_units is not None:
            bucket.adjust_counter(SecurityAttr.UNITS, delta_units)

        bucket.adjust_for_ni_payments(helper)

        price = self._price(holding, helper.transaction_date)
        value = bucket.get_units().value_at_price(price)
        if bucket.is_foreign:
            value = value.convert(self.analysis.currency, rate)

        snapshot = bucket.register_transaction(helper)
        snapshot.set_value(SecurityAttr.PRICE, price)
        snapshot.set_value(SecurityAttr.VALUATION, value)
        snapshot.set_value(SecurityAttr.CASHINVESTED, amount)
        if bucket.is_foreign:
            snapshot.set_value(SecurityAttr.EXCHANGERATE, rate)

    def _process_xfer_out(
        self, helper: TransactionHelper, holding: SecurityHolding, credit: Asset
    ) -> None:
        self._debit_xfer_out(helper, holding)
        self._account_bucket(credit, helper).adjust_for_credit(helper)
        self._adjust_categories(helper)

    def _debit_xfer_out(self, helper: TransactionHelper, holding: SecurityHolding) -> None:
        """Dispose of units, or take a capital distribution when no units are given.

        The allowable cost of a disposal is the cost weighted by the units
        sold. A capital distribution either reduces the cost directly (small)
        or is treated as a part disposal against the remaining value (large).
        """
        analysis = self.analysis
        bucket = analysis.portfolios.get_holding_bucket(holding)
        rate = helper.debit_exchange_rate
        amount = helper.debit_amount
        if bucket.is_foreign:
            bucket.adjust_counter(SecurityAttr.FOREIGNINVESTED, -amount)
            amount = helper.local_amount
        bucket.adjust_counter(SecurityAttr.INVESTED, -amount)

        price = self._price(holding, helper.transaction_date)
        units = bucket.get_units()
        cost = bucket.get_money(SecurityAttr.RESIDUALCOST)
        allowed_cost = amount
        cost_dilution: Decimal | None = None
        consideration: Money | None = None

        if helper.category_class == CategoryClass.SECURITYCLOSURE:
            delta_units = units
        else:
            delta_units = helper.debit_units
        is_distribution = delta_units is None

        if delta_units is not None:
            allowed_cost = cost.weighted(delta_units, units)
            bucket.adjust_counter(SecurityAttr.UNITS, -delta_units)
            remaining = bucket.get_units()
            if not units.is_zero:
                cost_dilution = remaining.value / units.value
            units = remaining

        value = units.value_at_price(price)
        if bucket.is_foreign:
            value = value.convert(analysis.currency, rate)

        cash_type: CashType | None = None
        if is_distribution:
            cash_type = classify_distribution(amount, value, analysis.settings)
            if cash_type == CashType.LARGE:
                consideration = amount + value
                allowed_cost = cost.weighted(amount, consideration)
                cost_dilution = value.ratio_to(consideration)
            else:
                allowed_cost = min(amount, cost)

        if not allowed_cost.is_zero:
            bucket.adjust_counter(SecurityAttr.RESIDUALCOST, -allowed_cost)

        gain = amount - allowed_cost
        if not gain.is_zero:
            bucket.adjust_counter(SecurityAttr.REALISEDGAINS, gain)
            analysis.categories.adjust_standard_gain(helper, holding, gain)

        snapshot = bucket.register_transaction(helper)
        snapshot.set_value(SecurityAttr.PRICE, price)
        snapshot.set_value(SecurityAttr.VALUATION, value)
        snapshot.set_value(SecurityAttr.RETURNEDCASH, amount)
        snapshot.set_value(SecurityAttr.ALLOWEDCOST, allowed_cost)
        if cost_dilution is not None:
            snapshot.set_value(SecurityAttr.COSTDILUTION, cost_dilution)
        if consideration is not None:
            snapshot.set_value(SecurityAttr.CONSIDERATION, consideration)
        if not gain.is_zero:
            snapshot.set_value(SecurityAttr.CAPITALGAIN, gain)
        if bucket.is_foreign:
            snapshot.set_value(SecurityAttr.EXCHANGERATE, rate)
        if cash_type is not None:
            snapshot.set_value(SecurityAttr.CASHTYPE, cash_type)

    def _process_dividend(
        self, helper: TransactionHelper, holding: SecurityHolding, credit: Asset
    ) -> None:
        """Dividend paid out to an account, or re-invested when credited to a holding."""
        analysis = self.analysis
        category = self._dataset.category_for_class(holding.dividend_class())
        payer = holding.parent or self._dataset.tax_man
        analysis.payees.get_bucket(payer).adjust_for_debit(helper)

        bucket = analysis.portfolios.get_holding_bucket(holding)
        reinvested = isinstance(credit, SecurityHolding)
        amount = helper.debit_amount
        tax_credit = helper.tax_credit
        if bucket.is_foreign:
            if reinvested:
                bucket.adjust_counter(SecurityAttr.FOREIGNINVESTED, amount)
                bucket.set_value(SecurityAttr.EXCHANGERATE, helper.credit_exchange_rate)
            amount = helper.local_amount

        if reinvested:
            bucket.adjust_counter(SecurityAttr.RESIDUALCOST, amount)
            bucket.adjust_counter(SecurityAttr.INVESTED, amount)
            if helper.account_delta_units is not None:
                bucket.adjust_counter(SecurityAttr.UNITS, helper.account_delta_units)
            if not tax_credit.is_zero:
                bucket.adjust_counter(SecurityAttr.DIVIDEND, tax_credit)
        else:
            bucket.adjust_counter(SecurityAttr.DIVIDEND, amount + tax_credit)
            self._account_bucket(credit, helper).adjust_for_credit(helper)

        bucket.register_transaction(helper)
        self._adjust_tax_man(helper)
        analysis.categories.adjust_categories(helper, category)

    def _process_chargeable_gain(
        self, helper: TransactionHelper, holding: SecurityHolding, credit: Asset
    ) -> None:
        """Withdrawal from a life bond: cost is reduced first, any excess is a chargeable gain."""
        analysis = self.analysis
        bucket = analysis.portfolios.get_holding_bucket(holding)
        amount = helper.debit_amount
        if bucket.is_foreign:
            bucket.set_value(SecurityAttr.EXCHANGERATE, helper.debit_exchange_rate)
            bucket.adjust_counter(SecurityAttr.FOREIGNINVESTED, -amount)
            amount = helper.local_amount
        bucket.adjust_counter(SecurityAttr.INVESTED, -amount)

        cost = bucket.get_money(SecurityAttr.RESIDUALCOST)
        reduction = amount
        delta_units = helper.debit_units
        if delta_units is not None:
            reduction = cost.weighted(delta_units, bucket.get_units())
            bucket.adjust_counter(SecurityAttr.UNITS, -delta_units)
        if reduction > cost:
            reduction = cost

        if not reduction.is_zero:
            bucket.adjust_counter(SecurityAttr.RESIDUALCOST, -reduction)
        delta_gains = amount - reduction
        if not delta_gains.is_zero:
            bucket.adjust_counter(SecurityAttr.REALISEDGAINS, delta_gains)
        bucket.register_transaction(helper)

        if holding.parent is not None:
            analysis.payees.get_bucket(holding.parent).adjust_for_tax_credit(helper)
        else:
            analysis.payees.tax_man.adjust_for_tax_credit(helper)
        self._account_bucket(credit, helper).adjust_for_credit(helper)

        gain = analysis.categories.adjust_chargeable_gain(helper, reduction)
        self._adjust_tax_man(helper)
        analysis.tax_basis.record_chargeable_gain(helper.transaction, gain)
        logger.debug(
            "chargeable_gain_recorded",
            holding=holding.name,
            gain=str(gain.amount),
            years=helper.transaction.years or 1,
        )

    # ------------------------------------------------------------------
    # Portfolio transfers
    # ------------------------------------------------------------------

    def _process_portfolio_xfer(
        self, helper: TransactionHelper, source: Portfolio, target: Portfolio
    ) -> None:
        """Move cash and every active holding from one portfolio to another."""
        portfolios = self.analysis.portfolios
        source_bucket = portfolios.get_bucket(source)
        target_bucket = portfolios.get_bucket(target)

        source_cash = portfolios.get_cash_bucket(source)
        if source_cash.is_active():
            self._move_cash(helper, source_cash, portfolios.get_cash_bucket(target))

        for security in source_bucket.securities:
            if not security.is_active():
                continue
            holding = self._dataset.holding(target, security.security)
            self._transfer_holding(helper, security, target_bucket.get_security_bucket(holding))

        logger.debug("portfolio_transferred", source=source.name, target=target.name)

    def _move_cash(
        self, helper: TransactionHelper, source: AccountBucket, target: AccountBucket
    ) -> None:
        converter = self.converter
        on_date = helper.transaction_date
        local_currency = self.analysis.currency
        if source.is_foreign:
            amount = source.values.get_money_value(AccountAttr.FOREIGNVALUE) or Money.zero(
                source.currency
            )
            local = source.values.get_money_value(AccountAttr.LOCALVALUE) or Money.zero(
                local_currency
            )
        else:
            amount = source.get_valuation()
            local = amount

        target.adjust_value(
            converter.convert(amount, target.currency, on_date),
            local,
            converter.rate_for(target.currency, on_date),
        )
        target.register_transaction(helper)
        source.adjust_value(-amount, -local, converter.rate_for(source.currency, on_date))
        source.register_transaction(helper)

    def _transfer_holding(
        self, helper: TransactionHelper, source: SecurityBucket, target: SecurityBucket
    ) -> None:
        """Move a whole holding between portfolios, carrying its cost and gains."""
        analysis = self.analysis
        on_date = helper.transaction_date
        units = source.get_units()
        cost = source.get_money(SecurityAttr.RESIDUALCOST)
        invested = source.get_money(SecurityAttr.INVESTED)
        gains = source.get_money(SecurityAttr.REALISEDGAINS)

        price = self._price(source.holding, on_date)
        foreign_value = units.value_at_price(price)
        value = foreign_value
        rate: Decimal | None = None
        if source.is_foreign:
            rate = analysis.rate_map.get_rate_for_date(source.currency, on_date)
            value = foreign_value.convert(analysis.currency, rate)

        profit = value - cost
        source.adjust_counter(SecurityAttr.GROWTHADJUST, profit)
        target.adjust_counter(SecurityAttr.GROWTHADJUST, -profit)

        target.adjust_counter(SecurityAttr.UNITS, units)
        target.adjust_counter(SecurityAttr.RESIDUALCOST, cost)
        target.adjust_counter(SecurityAttr.INVESTED, invested)
        target.adjust_counter(SecurityAttr.REALISEDGAINS, gains)
        if source.is_foreign:
            foreign_invested = source.get_money(SecurityAttr.FOREIGNINVESTED)
            target.adjust_counter(SecurityAttr.FOREIGNINVESTED, foreign_invested)
            source.adjust_counter(SecurityAttr.FOREIGNINVESTED, -foreign_invested)

        snapshot = target.register_transaction(helper)
        snapshot.set_value(SecurityAttr.PRICE, price)
        snapshot.set_value(SecurityAttr.VALUATION, value)
        snapshot.set_value(SecurityAttr.XFERREDCOST, cost)
        snapshot.set_value(SecurityAttr.XFERREDVALUE, value)
        if rate is not None:
            snapshot.set_value(SecurityAttr.FOREIGNVALUE, foreign_value)
            snapshot.set_value(SecurityAttr.EXCHANGERATE, rate)

        source.adjust_counter(SecurityAttr.UNITS, -units)
        source.adjust_counter(SecurityAttr.RESIDUALCOST, -cost)
        source.adjust_counter(SecurityAttr.INVESTED, -invested)
        source.adjust_counter(SecurityAttr.REALISEDGAINS, -gains)

        snapshot = source.register_transaction(helper)
        snapshot.set_value(SecurityAttr.PRICE, price)
        snapshot.set_value(SecurityAttr.VALUATION, Money.zero(analysis.currency))
        snapshot.set_value(SecurityAttr.XFERREDCOST, cost)
        snapshot.set_value(SecurityAttr.XFERREDVALUE, value)
        if rate is not None:
            snapshot.set_value(SecurityAttr.EXCHANGERATE, rate)
