"""Income and expense per payee."""

from typing import TYPE_CHECKING
from uuid import UUID

from household_ledger.analysis.attributes import PayeeAttr
from household_ledger.analysis.buckets import Bucket, BucketList
from household_ledger.analysis.history import BucketHistory
from household_ledger.analysis.values import BucketValues
from household_ledger.domain.assets import Payee
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import Money

if TYPE_CHECKING:
    from household_ledger.analysis.analysis import Analysis
    from household_ledger.services.transaction_helper import TransactionHelper


class PayeeBucket(Bucket[PayeeAttr]):
    def __init__(
        self,
        analysis: "Analysis",
        payee: Payee | None,
        history: BucketHistory[PayeeAttr] | None = None,
    ) -> None:
        self._payee = payee
        if history is None:
            zero = Money.zero(analysis.currency)
            history = BucketHistory(
                BucketValues(
                    (PayeeAttr.INCOME, PayeeAttr.EXPENSE),
                    {PayeeAttr.INCOME: zero, PayeeAttr.EXPENSE: zero},
                )
            )
        super().__init__(analysis, history)

    @property
    def payee(self) -> Payee | None:
        return self._payee

    @property
    def key(self) -> UUID | str:
        return self._payee.id if self._payee is not None else "totals"

    @property
    def name(self) -> str:
        return self._payee.name if self._payee is not None else "Totals"

    def derive(self, analysis: "Analysis", history: BucketHistory[PayeeAttr]) -> "PayeeBucket":
        return PayeeBucket(analysis, self._payee, history)

    def _register(self, helper: "TransactionHelper | Transaction | None") -> None:
        if helper is not None:
            self.register_transaction(helper)

    def adjust_for_debit(self, helper: "TransactionHelper") -> None:
        """The payee paid the ledger: income, or a refund of expense."""
        amount = helper.local_amount
        if helper.category_class.is_income:
            income = (
                amount
                + helper.tax_credit
                + helper.employee_nat_ins
                + helper.employer_nat_ins
                + helper.deemed_benefit
                + helper.withheld
            )
            self.values.adjust(PayeeAttr.INCOME, income)
        else:
            self.values.adjust(PayeeAttr.EXPENSE, -amount)
        self.register_transaction(helper)

    def adjust_for_credit(self, helper: "TransactionHelper") -> None:
        """The ledger paid the payee: expense, or income given back."""
        amount = helper.local_amount + helper.tax_credit
        if helper.category_class.is_expense:
            self.values.adjust(PayeeAttr.EXPENSE, amount)
        else:
            self.values.adjust(PayeeAttr.INCOME, -amount)
        self.register_transaction(helper)

    def adjust_for_tax_credit(self, helper: "TransactionHelper") -> None:
        tax_credit = helper.tax_credit
        if helper.category_class.is_expense:
            self.values.adjust(PayeeAttr.EXPENSE, tax_credit)
        else:
            self.values.adjust(PayeeAttr.INCOME, tax_credit)
        self.register_transaction(helper)

    def adjust_for_tax_payments(self, helper: "TransactionHelper") -> None:
        """Tax authority side of a tax credit; only registers when there is one."""
        tax_credit = helper.tax_credit
        if tax_credit.is_zero:
            return
        if helper.category_class.is_expense:
            self.values.adjust(PayeeAttr.INCOME, tax_credit)
        else:
            self.values.adjust(PayeeAttr.EXPENSE, tax_credit)
        self.register_transaction(helper)

    def add_income(self, value: Money, helper: "TransactionHelper | None" = None) -> None:
        self.values.adjust(PayeeAttr.INCOME, value)
        self._register(helper)

    def subtract_income(self, value: Money, helper: "TransactionHelper | None" = None) -> None:
        self.values.adjust(PayeeAttr.INCOME, -value)
        self._register(helper)

    def add_expense(self, value: Money, helper: "TransactionHelper | None" = None) -> None:
        self.values.adjust(PayeeAttr.EXPENSE, value)
        self._register(helper)

    def subtract_expense(self, value: Money, helper: "TransactionHelper | None" = None) -> None:
        self.values.adjust(PayeeAttr.EXPENSE, -value)
        self._register(helper)

    def calculate_delta(self) -> None:
        """Rebase to the period start and record income less expense."""
        self.values.adjust_to_base_values(self.base_values)
        self.base_values.reset_base_values()
        zero = Money.zero(self._analysis.currency)
        income = self.values.get_money_value(PayeeAttr.INCOME) or zero
        expense = self.values.get_money_value(PayeeAttr.EXPENSE) or zero
        self.values.set_value(PayeeAttr.PROFIT, income - expense)

    def add_values(self, other: "PayeeBucket") -> None:
        for attr in (PayeeAttr.INCOME, PayeeAttr.EXPENSE):
            value = other.values.get_money_value(attr)
            if value is not None:
                self.values.adjust(attr, value)

    def get_income(self) -> Money:
        return self.values.get_money_value(PayeeAttr.INCOME) or Money.zero(self._analysis.currency)

    def get_expense(self) -> Money:
        return self.values.get_money_value(PayeeAttr.EXPENSE) or Money.zero(
            self._analysis.currency
        )


class PayeeBucketList(BucketList[PayeeBucket]):
    def get_bucket(self, payee: Payee) -> PayeeBucket:
        bucket = self._buckets.get(payee.id)
        if bucket is None:
            bucket = PayeeBucket(self._analysis, payee)
            self._buckets[payee.id] = bucket
        return bucket

    @property
    def tax_man(self) -> PayeeBucket:
        return self.get_bucket(self._analysis.dataset.tax_man)

    def produce_totals(self) -> None:
        totals = PayeeBucket(self._analysis, None)
        for bucket in self:
            bucket.calculate_delta()
            totals.add_values(bucket)
        totals.calculate_delta()
        self._sort(lambda bucket: bucket.name)
        self.totals = totals
