"""Per-transaction view with debit/credit resolved and every amount converted."""

from datetime import date
from decimal import Decimal

from household_ledger.domain.assets import AccountAsset, Asset, Payee
from household_ledger.domain.categories import CategoryClass, TransactionCategory
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import AssetDirection, Currency, Money, Units
from household_ledger.services.currency import CurrencyConverter


class TransactionHelper:
    """Resolved figures for one transaction.

    Amounts named debit/credit are in the currency of that side's asset.
    Anything named local, and the tax credit, national insurance, deemed
    benefit and withheld figures, are in the reporting currency. Exchange
    rates convert one unit of an asset's currency into the reporting
    currency.
    """

    def __init__(self, transaction: Transaction, converter: CurrencyConverter) -> None:
        self.transaction = transaction
        self._converter = converter
        self.category: TransactionCategory = transaction.category

        on_date = transaction.transaction_date
        local_currency = converter.reporting_currency
        account_currency = self._currency_of(transaction.account, transaction.amount)
        account_rate = converter.rate_for(account_currency, on_date)

        self.local_amount = self._localise(transaction.amount, account_rate)

        if transaction.partner_amount is not None:
            partner_amount = transaction.partner_amount
        else:
            partner_currency = self._currency_of(transaction.partner, transaction.amount)
            partner_amount = converter.convert(transaction.amount, partner_currency, on_date)

        if transaction.direction == AssetDirection.TO:
            self.debit_amount, self.credit_amount = transaction.amount, partner_amount
        else:
            self.debit_amount, self.credit_amount = partner_amount, transaction.amount

        self.debit_exchange_rate = converter.rate_for(self.debit_asset.currency, on_date)
        self.credit_exchange_rate = converter.rate_for(self.credit_asset.currency, on_date)

        zero = Money.zero(local_currency)
        self.tax_credit = self._local_or_zero(transaction.tax_credit, account_rate, zero)
        self.employer_nat_ins = self._local_or_zero(transaction.employer_nat_ins, account_rate, zero)
        self.employee_nat_ins = self._local_or_zero(transaction.employee_nat_ins, account_rate, zero)
        self.deemed_benefit = self._local_or_zero(transaction.deemed_benefit, account_rate, zero)
        self.withheld = self._local_or_zero(transaction.withheld, account_rate, zero)

        self.returned_cash_account: AccountAsset | None = transaction.returned_cash_account
        if transaction.returned_cash is not None:
            self.returned_cash = transaction.returned_cash
            cash_currency = (
                self.returned_cash_account.currency
                if self.returned_cash_account is not None
                else transaction.returned_cash.currency
            )
            self.returned_cash_exchange_rate = converter.rate_for(cash_currency, on_date)
            self.local_returned_cash = self._localise(
                transaction.returned_cash, self.returned_cash_exchange_rate
            )
        else:
            self.returned_cash = zero
            self.returned_cash_exchange_rate = Decimal("1")
            self.local_returned_cash = zero

    def _currency_of(self, asset: Asset, fallback: Money) -> Currency:
        currency = asset.currency
        return currency if currency is not None else fallback.currency  # type: ignore[return-value]

    def _localise(self, amount: Money, rate: Decimal) -> Money:
        if amount.currency == self._converter.reporting_currency:
            return amount
        return amount.convert(self._converter.reporting_currency, rate)

    def _local_or_zero(self, amount: Money | None, rate: Decimal, zero: Money) -> Money:
        if amount is None:
            return zero
        return self._localise(amount, rate)

    @property
    def transaction_date(self) -> date:
        return self.transaction.transaction_date

    @property
    def direction(self) -> AssetDirection:
        return self.transaction.direction

    @property
    def category_class(self) -> CategoryClass:
        return self.category.category_class

    @property
    def debit_asset(self) -> Asset:
        return self.transaction.debit

    @property
    def credit_asset(self) -> Asset:
        return self.transaction.credit

    @property
    def account_delta_units(self) -> Units | None:
        return self.transaction.account_delta_units

    @property
    def partner_delta_units(self) -> Units | None:
        return self.transaction.partner_delta_units

    @property
    def debit_units(self) -> Units | None:
        if self.direction == AssetDirection.TO:
            return self.transaction.account_delta_units
        return self.transaction.partner_delta_units

    @property
    def credit_units(self) -> Units | None:
        if self.direction == AssetDirection.TO:
            return self.transaction.partner_delta_units
        return self.transaction.account_delta_units

    @property
    def dilution(self) -> Decimal | None:
        return self.transaction.dilution

    @property
    def is_payee_debit(self) -> bool:
        return isinstance(self.debit_asset, Payee)

    def to_foreign(self, local: Money, currency: Currency, rate: Decimal) -> Money:
        """Express a reporting-currency amount in an asset currency."""
        if currency == local.currency:
            return local
        return Money(local.amount / rate, currency).quantized()

    def __repr__(self) -> str:
        return (
            f"TransactionHelper({self.transaction_date.isoformat()}, "
            f"{self.category.name!r}, {self.local_amount.amount})"
        )
