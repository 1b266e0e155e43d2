"""Buckets for deposits, cash, loans and portfolio cash."""

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from household_ledger.analysis.attributes import AccountAttr
from household_ledger.analysis.buckets import Bucket, BucketList
from household_ledger.analysis.history import BucketHistory
from household_ledger.analysis.values import BucketValues
from household_ledger.domain.assets import AccountAsset, Cash, Deposit
from household_ledger.domain.categories import CategoryClass
from household_ledger.domain.value_objects import Currency, DateRange, Money
from household_ledger.exceptions import IllegallyClosedAccountError

if TYPE_CHECKING:
    from household_ledger.analysis.analysis import Analysis
    from household_ledger.services.transaction_helper import TransactionHelper


class AccountKind(str, Enum):
    DEPOSIT = "deposit"
    CASH = "cash"
    LOAN = "loan"
    PORTFOLIO_CASH = "portfolio_cash"


def _allocate_values(bucket: "AccountBucket") -> BucketValues[AccountAttr]:
    local = bucket.analysis.currency
    if bucket.is_foreign:
        return BucketValues(
            (AccountAttr.VALUATION, AccountAttr.FOREIGNVALUE),
            {
                AccountAttr.VALUATION: Money.zero(local),
                AccountAttr.FOREIGNVALUE: Money.zero(bucket.currency),
                AccountAttr.LOCALVALUE: Money.zero(local),
            },
        )
    return BucketValues((AccountAttr.VALUATION,), {AccountAttr.VALUATION: Money.zero(local)})


def _standard_debit(bucket: "AccountBucket", helper: "TransactionHelper") -> None:
    bucket.adjust_value(-helper.debit_amount, -helper.local_amount, helper.debit_exchange_rate)
    bucket.register_transaction(helper)


def _standard_credit(bucket: "AccountBucket", helper: "TransactionHelper") -> None:
    bucket.adjust_value(helper.credit_amount, helper.local_amount, helper.credit_exchange_rate)
    bucket.register_transaction(helper)


_BAD_DEBT_COUNTERS = {
    CategoryClass.BADDEBTCAPITAL: AccountAttr.BADDEBTCAPITAL,
    CategoryClass.BADDEBTINTEREST: AccountAttr.BADDEBTINTEREST,
}


def _deposit_debit(bucket: "AccountBucket", helper: "TransactionHelper") -> None:
    account = bucket.account
    counter = _BAD_DEBT_COUNTERS.get(helper.category_class)
    if counter is not None and isinstance(account, Deposit) and account.is_peer2peer:
        bucket.values.adjust(counter, helper.debit_amount)
        bucket.register_transaction(helper)
        return
    _standard_debit(bucket, helper)


def _record_only(bucket: "AccountBucket", helper: "TransactionHelper") -> None:
    bucket.register_transaction(helper)


def _cash_debit(bucket: "AccountBucket", helper: "TransactionHelper") -> None:
    account = bucket.account
    if isinstance(account, Cash) and account.is_auto_expense:
        _record_only(bucket, helper)
    else:
        _standard_debit(bucket, helper)


def _cash_credit(bucket: "AccountBucket", helper: "TransactionHelper") -> None:
    account = bucket.account
    if isinstance(account, Cash) and account.is_auto_expense:
        _record_only(bucket, helper)
    else:
        _standard_credit(bucket, helper)


@dataclass(frozen=True)
class AccountCapabilities:
    """Behaviour that differs between kinds of account."""

    allocate_values: Callable[["AccountBucket"], BucketValues[AccountAttr]]
    adjust_for_debit: Callable[["AccountBucket", "TransactionHelper"], None]
    adjust_for_credit: Callable[["AccountBucket", "TransactionHelper"], None]


CAPABILITIES: dict[AccountKind, AccountCapabilities] = {
    AccountKind.DEPOSIT: AccountCapabilities(_allocate_values, _deposit_debit, _standard_credit),
    AccountKind.CASH: AccountCapabilities(_allocate_values, _cash_debit, _cash_credit),
    AccountKind.LOAN: AccountCapabilities(_allocate_values, _standard_debit, _standard_credit),
    AccountKind.PORTFOLIO_CASH: AccountCapabilities(
        _allocate_values, _standard_debit, _standard_credit
    ),
}


class AccountBucket(Bucket[AccountAttr]):
    """Valuation of a single account, in local and (if foreign) account currency.

    Passing account=None builds the totals bucket of a list, which has no
    history of its own and only ever receives add_values().
    """

    def __init__(
        self,
        analysis: "Analysis",
        account: AccountAsset | None,
        kind: AccountKind,
        history: BucketHistory[AccountAttr] | None = None,
    ) -> None:
        self._account = account
        self._kind = kind
        self._capabilities = CAPABILITIES[kind]
        self._analysis = analysis
        self.is_relevant = False
        if history is None:
            history = BucketHistory(self._capabilities.allocate_values(self))
        super().__init__(analysis, history)

    @property
    def account(self) -> AccountAsset | None:
        return self._account

    @property
    def kind(self) -> AccountKind:
        return self._kind

    @property
    def key(self) -> UUID | str:
        return self._account.id if self._account is not None else "totals"

    @property
    def name(self) -> str:
        return self._account.name if self._account is not None else "Totals"

    @property
    def currency(self) -> Currency:
        if self._account is None:
            return self._analysis.currency
        return self._account.currency

    @property
    def is_foreign(self) -> bool:
        return self.currency != self._analysis.currency

    def derive(
        self, analysis: "Analysis", history: BucketHistory[AccountAttr]
    ) -> "AccountBucket":
        return AccountBucket(analysis, self._account, self._kind, history)

    def adjust_for_debit(self, helper: "TransactionHelper") -> None:
        self._capabilities.adjust_for_debit(self, helper)

    def adjust_for_credit(self, helper: "TransactionHelper") -> None:
        self._capabilities.adjust_for_credit(self, helper)

    def adjust_for_returned_cash_credit(self, helper: "TransactionHelper") -> None:
        self.adjust_value(
            helper.returned_cash,
            helper.local_returned_cash,
            helper.returned_cash_exchange_rate,
        )
        self.register_transaction(helper)

    def adjust_value(self, amount: Money, local: Money, rate: Decimal) -> None:
        """Apply a signed movement expressed in account and local currency."""
        if amount.is_zero:
            return
        values = self.values
        if self.is_foreign:
            values.adjust(AccountAttr.FOREIGNVALUE, amount)
            values.adjust(AccountAttr.LOCALVALUE, local)
            self._revalue(values, rate)
        else:
            values.adjust(AccountAttr.VALUATION, amount)

    def _revalue(self, values: BucketValues[AccountAttr], rate: Decimal) -> None:
        foreign = values.get_money_value(AccountAttr.FOREIGNVALUE) or Money.zero(self.currency)
        valuation = foreign.convert(self._analysis.currency, rate)
        local = values.get_money_value(AccountAttr.LOCALVALUE) or Money.zero(valuation.currency)
        values.set_value(AccountAttr.VALUATION, valuation)
        values.set_value(AccountAttr.EXCHANGERATE, rate)
        values.set_value(AccountAttr.CURRENCYFLUCT, valuation - local)

    def set_opening_balance(self, balance: Money, rate: Decimal) -> None:
        """Add an opening balance to both base and live values."""
        local = balance.convert(self._analysis.currency, rate) if self.is_foreign else balance
        for values in (self.base_values, self.values):
            if self.is_foreign:
                values.adjust(AccountAttr.FOREIGNVALUE, balance)
                values.adjust(AccountAttr.LOCALVALUE, local)
                self._revalue(values, rate)
            else:
                values.adjust(AccountAttr.VALUATION, balance)

    def calculate_fluctuations(self, date_range: DateRange) -> None:
        """Revalue foreign balances at the rates of the range boundaries."""
        if not self.is_foreign:
            return
        rates = self._analysis.rate_map
        base = self.base_values
        base_foreign = base.get_money_value(AccountAttr.FOREIGNVALUE)
        if base_foreign is not None and not base_foreign.is_zero:
            start_rate = rates.get_rate_for_date(self.currency, date_range.start)
            base.set_value(AccountAttr.VALUATION, base_foreign.convert(self._analysis.currency, start_rate))
            base.set_value(AccountAttr.EXCHANGERATE, start_rate)

        values = self.values
        end_rate = rates.get_rate_for_date(self.currency, date_range.end)
        foreign = values.get_money_value(AccountAttr.FOREIGNVALUE) or Money.zero(self.currency)
        valuation = foreign.convert(self._analysis.currency, end_rate)
        values.set_value(AccountAttr.VALUATION, valuation)
        values.set_value(AccountAttr.EXCHANGERATE, end_rate)

        zero = Money.zero(self._analysis.currency)
        base_valuation = base.get_money_value(AccountAttr.VALUATION) or zero
        local_flow = (values.get_money_value(AccountAttr.LOCALVALUE) or zero) - (
            base.get_money_value(AccountAttr.LOCALVALUE) or zero
        )
        values.set_value(AccountAttr.CURRENCYFLUCT, valuation - base_valuation - local_flow)

    def calculate_delta(self) -> None:
        """Record the change in valuation and rebase flow counters; repeatable."""
        zero = Money.zero(self._analysis.currency)
        valuation = self.values.get_money_value(AccountAttr.VALUATION) or zero
        base_valuation = self.base_values.get_money_value(AccountAttr.VALUATION) or zero
        self.values.set_value(AccountAttr.VALUEDELTA, valuation - base_valuation)
        self.values.adjust_to_base_values(self.base_values)
        self.base_values.reset_base_values()

    def add_values(self, other: "AccountBucket") -> None:
        """Accumulate another bucket's local figures into this totals bucket."""
        for attr in (AccountAttr.VALUATION, AccountAttr.VALUEDELTA, AccountAttr.CURRENCYFLUCT):
            value = other.values.get_money_value(attr)
            if value is not None:
                self.values.adjust(attr, value)
        base_valuation = other.base_values.get_money_value(AccountAttr.VALUATION)
        if base_valuation is not None:
            self.base_values.adjust(AccountAttr.VALUATION, base_valuation)

    def get_valuation(self) -> Money:
        return self.values.get_money_value(AccountAttr.VALUATION) or Money.zero(
            self._analysis.currency
        )


class AccountBucketList(BucketList[AccountBucket]):
    """Buckets for every account of one kind."""

    def __init__(self, analysis: "Analysis", kind: AccountKind) -> None:
        super().__init__(analysis)
        self._kind = kind

    @property
    def kind(self) -> AccountKind:
        return self._kind

    def get_bucket(self, account: AccountAsset) -> AccountBucket:
        bucket = self._buckets.get(account.id)
        if bucket is None:
            bucket = AccountBucket(self._analysis, account, self._kind)
            self._buckets[account.id] = bucket
        return bucket

    def calculate_fluctuations(self, date_range: DateRange) -> None:
        for bucket in self:
            bucket.calculate_fluctuations(date_range)

    def produce_totals(self) -> None:
        totals = AccountBucket(self._analysis, None, self._kind)
        for bucket in self:
            bucket.calculate_delta()
            totals.add_values(bucket)
        self._sort(lambda bucket: bucket.name)
        self.totals = totals

    def mark_active_accounts(self) -> None:
        """Flag accounts that still hold value; closed ones must not."""
        for bucket in self:
            if bucket.is_active():
                if bucket.account is not None and bucket.account.closed:
                    raise IllegallyClosedAccountError(bucket.name)
                bucket.is_relevant = True

    def have_foreign_currency(self) -> bool:
        return any(bucket.is_foreign for bucket in self)
