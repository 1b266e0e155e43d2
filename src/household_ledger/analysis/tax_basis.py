"""Gross, nett and tax-credit totals per tax basis."""

from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from household_ledger.analysis.attributes import TaxBasisAttr
from household_ledger.analysis.buckets import Bucket, BucketList
from household_ledger.analysis.history import BucketHistory
from household_ledger.analysis.values import BucketValues
from household_ledger.domain.assets import Asset
from household_ledger.domain.categories import CategoryClass, TaxBasisClass, TransactionCategory
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import AssetDirection, Money

if TYPE_CHECKING:
    from household_ledger.analysis.analysis import Analysis
    from household_ledger.services.transaction_helper import TransactionHelper


class TaxBasisAdjust(str, Enum):
    """Which totals an adjustment applies to."""

    STANDARD = "standard"
    NETT = "nett"
    GROSS = "gross"


INCOME_BASES: dict[CategoryClass, TaxBasisClass] = {
    CategoryClass.TAXEDINCOME: TaxBasisClass.SALARY,
    CategoryClass.GROSSINCOME: TaxBasisClass.SALARY,
    CategoryClass.OTHERINCOME: TaxBasisClass.OTHERINCOME,
    CategoryClass.INTEREST: TaxBasisClass.TAXEDINTEREST,
    CategoryClass.TAXEDINTEREST: TaxBasisClass.TAXEDINTEREST,
    CategoryClass.TAXEDLOYALTYBONUS: TaxBasisClass.TAXEDINTEREST,
    CategoryClass.GROSSINTEREST: TaxBasisClass.UNTAXEDINTEREST,
    CategoryClass.GROSSLOYALTYBONUS: TaxBasisClass.UNTAXEDINTEREST,
    CategoryClass.PEER2PEERINTEREST: TaxBasisClass.PEER2PEERINTEREST,
    CategoryClass.DIVIDEND: TaxBasisClass.DIVIDEND,
    CategoryClass.SHAREDIVIDEND: TaxBasisClass.DIVIDEND,
    CategoryClass.UNITTRUSTDIVIDEND: TaxBasisClass.UNITTRUSTDIVIDEND,
    CategoryClass.FOREIGNDIVIDEND: TaxBasisClass.FOREIGNDIVIDEND,
    CategoryClass.RENTALINCOME: TaxBasisClass.RENTALINCOME,
    CategoryClass.ROOMRENTALINCOME: TaxBasisClass.ROOMRENTAL,
    CategoryClass.TAXFREEINTEREST: TaxBasisClass.TAXFREE,
    CategoryClass.TAXFREEDIVIDEND: TaxBasisClass.TAXFREE,
    CategoryClass.LOANINTERESTEARNED: TaxBasisClass.TAXFREE,
    CategoryClass.INHERITED: TaxBasisClass.TAXFREE,
    CategoryClass.CASHBACK: TaxBasisClass.TAXFREE,
    CategoryClass.LOYALTYBONUS: TaxBasisClass.TAXFREE,
    CategoryClass.TAXFREELOYALTYBONUS: TaxBasisClass.TAXFREE,
    CategoryClass.GIFTEDINCOME: TaxBasisClass.TAXFREE,
    CategoryClass.PENSIONCONTRIB: TaxBasisClass.TAXFREE,
}

EXPENSE_BASES: dict[CategoryClass, TaxBasisClass] = {
    CategoryClass.INCOMETAX: TaxBasisClass.TAXPAID,
    CategoryClass.BADDEBTCAPITAL: TaxBasisClass.CAPITALGAINS,
    CategoryClass.BADDEBTINTEREST: TaxBasisClass.PEER2PEERINTEREST,
    CategoryClass.EXPENSE: TaxBasisClass.EXPENSE,
    CategoryClass.LOCALTAXES: TaxBasisClass.EXPENSE,
    CategoryClass.WRITEOFF: TaxBasisClass.EXPENSE,
    CategoryClass.LOANINTERESTCHARGED: TaxBasisClass.EXPENSE,
    CategoryClass.TAXRELIEF: TaxBasisClass.EXPENSE,
    CategoryClass.RECOVEREDEXPENSES: TaxBasisClass.EXPENSE,
    CategoryClass.RENTALEXPENSE: TaxBasisClass.RENTALINCOME,
}


class TaxBasisBucket(Bucket[TaxBasisAttr]):
    """Totals for one tax basis, optionally broken down by originating account.

    Expense bases (tax paid, expense, virtual) accumulate expenses as
    negative amounts so that the totals bucket nets everything.
    """

    def __init__(
        self,
        analysis: "Analysis",
        tax_basis: TaxBasisClass | None,
        history: BucketHistory[TaxBasisAttr] | None = None,
        account: Asset | None = None,
    ) -> None:
        self._tax_basis = tax_basis
        self._account = account
        self.accounts: dict[UUID, TaxBasisBucket] = {}
        if history is None:
            zero = Money.zero(analysis.currency)
            history = BucketHistory(
                BucketValues(
                    (TaxBasisAttr.GROSS, TaxBasisAttr.NETT, TaxBasisAttr.TAXCREDIT),
                    {
                        TaxBasisAttr.GROSS: zero,
                        TaxBasisAttr.NETT: zero,
                        TaxBasisAttr.TAXCREDIT: zero,
                    },
                )
            )
        super().__init__(analysis, history)

    @property
    def tax_basis(self) -> TaxBasisClass | None:
        return self._tax_basis

    @property
    def account(self) -> Asset | None:
        return self._account

    @property
    def key(self) -> UUID | str:
        if self._account is not None:
            return self._account.id
        return self._tax_basis.value if self._tax_basis is not None else "totals"

    @property
    def name(self) -> str:
        if self._account is not None:
            return self._account.name
        return self._tax_basis.name if self._tax_basis is not None else "Totals"

    @property
    def is_expense(self) -> bool:
        return self._tax_basis is not None and self._tax_basis.is_expense

    def derive(
        self, analysis: "Analysis", history: BucketHistory[TaxBasisAttr], slicer=None
    ) -> "TaxBasisBucket":
        derived = TaxBasisBucket(analysis, self._tax_basis, history, self._account)
        if slicer is not None:
            for key, child in self.accounts.items():
                sub = child.derive(analysis, slicer(child.history))
                if sub.is_active() or not sub.is_idle():
                    derived.accounts[key] = sub
        return derived

    def _account_bucket(self, helper: "TransactionHelper") -> "TaxBasisBucket | None":
        if self._account is not None or self._tax_basis is None:
            return None
        if not self._tax_basis.analysed_by_account:
            return None
        account = helper.transaction.account
        bucket = self.accounts.get(account.id)
        if bucket is None:
            bucket = TaxBasisBucket(self._analysis, self._tax_basis, account=account)
            self.accounts[account.id] = bucket
        return bucket

    def _apply(
        self,
        helper: "TransactionHelper | None",
        gross: Money | None,
        nett: Money | None,
        tax_credit: Money | None = None,
    ) -> None:
        targets: list[TaxBasisBucket] = [self]
        if helper is not None:
            child = self._account_bucket(helper)
            if child is not None:
                targets.append(child)
        for target in targets:
            if gross is not None:
                target.values.adjust(TaxBasisAttr.GROSS, gross)
            if nett is not None:
                target.values.adjust(TaxBasisAttr.NETT, nett)
            if tax_credit is not None:
                target.values.adjust(TaxBasisAttr.TAXCREDIT, tax_credit)
            if helper is not None:
                target.register_transaction(helper)

    def add_income_transaction(self, helper: "TransactionHelper") -> None:
        amount = helper.local_amount
        gross = (
            amount
            + helper.tax_credit
            + helper.employee_nat_ins
            + helper.deemed_benefit
            + helper.withheld
        )
        nett = amount + helper.withheld
        tax_credit = helper.tax_credit

        direction = helper.direction
        if helper.category_class.is_switch_direction:
            direction = direction.reverse()
        if direction == AssetDirection.TO:
            gross, nett, tax_credit = -gross, -nett, -tax_credit
        self._apply(helper, gross, nett, tax_credit)

    def add_expense_transaction(self, helper: "TransactionHelper") -> None:
        gross = helper.local_amount + helper.tax_credit
        nett = gross
        tax_credit = helper.tax_credit
        if helper.direction == AssetDirection.TO:
            gross, nett, tax_credit = -gross, -nett, -tax_credit
        self._apply(helper, gross, nett, tax_credit)

    def adjust_value(
        self,
        helper: "TransactionHelper | None",
        value: Money,
        mode: TaxBasisAdjust = TaxBasisAdjust.STANDARD,
    ) -> None:
        if self.is_expense:
            value = -value
        gross = value if mode in (TaxBasisAdjust.STANDARD, TaxBasisAdjust.GROSS) else None
        nett = value if mode in (TaxBasisAdjust.STANDARD, TaxBasisAdjust.NETT) else None
        self._apply(helper, gross, nett)

    def calculate_delta(self) -> None:
        for bucket in (self, *self.accounts.values()):
            bucket.values.adjust_to_base_values(bucket.base_values)
            bucket.base_values.reset_base_values()

    def add_values(self, other: "TaxBasisBucket") -> None:
        for attr in (TaxBasisAttr.GROSS, TaxBasisAttr.NETT, TaxBasisAttr.TAXCREDIT):
            value = other.values.get_money_value(attr)
            if value is not None:
                self.values.adjust(attr, value)

    def get_gross(self) -> Money:
        return self.values.get_money_value(TaxBasisAttr.GROSS) or Money.zero(
            self._analysis.currency
        )


class TaxBasisBucketList(BucketList[TaxBasisBucket]):
    def get_bucket(self, tax_basis: TaxBasisClass) -> TaxBasisBucket:
        bucket = self._buckets.get(tax_basis.value)
        if bucket is None:
            bucket = TaxBasisBucket(self._analysis, tax_basis)
            self._buckets[tax_basis.value] = bucket
        return bucket

    def find_basis(self, tax_basis: TaxBasisClass) -> TaxBasisBucket | None:
        return self._buckets.get(tax_basis.value)

    def _derive_from(self, source, slicer) -> None:  # type: ignore[override]
        for bucket in source:
            derived = bucket.derive(self._analysis, slicer(bucket.history), slicer)
            if derived.is_active() or not derived.is_idle():
                self._buckets[derived.key] = derived

    def adjust_basis(self, helper: "TransactionHelper", category: TransactionCategory) -> None:
        """Book the transaction against the basis its category maps to."""
        category_class = category.category_class
        income_basis = INCOME_BASES.get(category_class)
        if income_basis is not None:
            self.get_bucket(income_basis).add_income_transaction(helper)
            return
        expense_basis = EXPENSE_BASES.get(category_class)
        if expense_basis is not None:
            self.get_bucket(expense_basis).add_expense_transaction(helper)

    def adjust_value(
        self,
        helper: "TransactionHelper | None",
        tax_basis: TaxBasisClass,
        value: Money,
        mode: TaxBasisAdjust = TaxBasisAdjust.STANDARD,
    ) -> None:
        self.get_bucket(tax_basis).adjust_value(helper, value, mode)

    def adjust_gross_value(
        self, helper: "TransactionHelper", tax_basis: TaxBasisClass, value: Money
    ) -> None:
        self.adjust_value(helper, tax_basis, value, TaxBasisAdjust.GROSS)

    def adjust_nett_value(
        self, helper: "TransactionHelper", tax_basis: TaxBasisClass, value: Money
    ) -> None:
        self.adjust_value(helper, tax_basis, value, TaxBasisAdjust.NETT)

    def adjust_auto_expense(self, helper: "TransactionHelper", is_expense: bool) -> None:
        value = helper.local_amount if is_expense else -helper.local_amount
        self.adjust_value(helper, TaxBasisClass.EXPENSE, value)

    def adjust_market(self, income: Money, expense: Money) -> None:
        """Add market growth of the period; not tied to any transaction."""
        value = income - expense
        if not value.is_zero:
            self.adjust_value(None, TaxBasisClass.MARKET, value)

    def record_chargeable_gain(self, transaction: Transaction, gain: Money) -> None:
        self._analysis.gain_slices.add_transaction(transaction, gain)

    def produce_totals(self) -> None:
        totals = TaxBasisBucket(self._analysis, None)
        for bucket in self:
            bucket.calculate_delta()
        self.prune()
        for bucket in self:
            totals.add_values(bucket)
        self._sort(lambda bucket: list(TaxBasisClass).index(bucket.tax_basis))
        self.totals = totals

    def prune(self) -> None:
        """Drop bases with no value and no recorded transactions.

        A basis that nets to zero but has history is kept so that views
        sliced from this analysis can still see its earlier values.
        """
        for key, bucket in list(self._buckets.items()):
            if not bucket.is_active() and bucket.is_idle():
                del self._buckets[key]
                continue
            for sub_key, sub in list(bucket.accounts.items()):
                if not sub.is_active() and sub.is_idle():
                    del bucket.accounts[sub_key]

    def get_amount_for_tax_basis(self, tax_basis: TaxBasisClass) -> Money:
        bucket = self._buckets.get(tax_basis.value)
        if bucket is None:
            return Money.zero(self._analysis.currency)
        return bucket.get_gross()
