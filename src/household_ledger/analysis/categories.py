"""Income and expense per transaction category, rolled up the category tree."""

from typing import TYPE_CHECKING
from uuid import UUID

from household_ledger.analysis.attributes import CategoryAttr
from household_ledger.analysis.buckets import Bucket, BucketList
from household_ledger.analysis.history import BucketHistory
from household_ledger.analysis.tax_basis import TaxBasisAdjust
from household_ledger.analysis.values import BucketValues
from household_ledger.domain.assets import SecurityHolding
from household_ledger.domain.categories import CategoryClass, TaxBasisClass, TransactionCategory
from household_ledger.domain.value_objects import AssetDirection, Money

if TYPE_CHECKING:
    from household_ledger.analysis.analysis import Analysis
    from household_ledger.services.transaction_helper import TransactionHelper


class TransactionCategoryBucket(Bucket[CategoryAttr]):
    def __init__(
        self,
        analysis: "Analysis",
        category: TransactionCategory | None,
        history: BucketHistory[CategoryAttr] | None = None,
    ) -> None:
        self._category = category
        if history is None:
            zero = Money.zero(analysis.currency)
            history = BucketHistory(
                BucketValues(
                    (CategoryAttr.INCOME, CategoryAttr.EXPENSE),
                    {CategoryAttr.INCOME: zero, CategoryAttr.EXPENSE: zero},
                )
            )
        super().__init__(analysis, history)

    @property
    def category(self) -> TransactionCategory | None:
        return self._category

    @property
    def key(self) -> UUID | str:
        return self._category.id if self._category is not None else "totals"

    @property
    def name(self) -> str:
        return self._category.full_name if self._category is not None else "Totals"

    def derive(
        self, analysis: "Analysis", history: BucketHistory[CategoryAttr]
    ) -> "TransactionCategoryBucket":
        return TransactionCategoryBucket(analysis, self._category, history)

    def adjust_values(self, helper: "TransactionHelper") -> None:
        """Book the local amount of a transaction as income or expense."""
        if self._category is None:
            raise ValueError("The totals bucket does not take transactions")
        category_class = self._category.category_class
        amount = helper.local_amount + helper.tax_credit
        direction = helper.direction

        if category_class.is_expense:
            attr = CategoryAttr.INCOME if direction == AssetDirection.FROM else CategoryAttr.EXPENSE
        else:
            amount = amount + helper.withheld
            if category_class.is_switch_direction:
                direction = direction.reverse()
            attr = CategoryAttr.EXPENSE if direction == AssetDirection.TO else CategoryAttr.INCOME
        self.values.adjust(attr, amount)
        self.register_transaction(helper)

    def _adjust(
        self, attr: CategoryAttr, value: Money, helper: "TransactionHelper | None"
    ) -> None:
        self.values.adjust(attr, value)
        if helper is not None:
            self.register_transaction(helper)

    def add_income(self, value: Money, helper: "TransactionHelper | None" = None) -> None:
        self._adjust(CategoryAttr.INCOME, value, helper)

    def subtract_income(self, value: Money, helper: "TransactionHelper | None" = None) -> None:
        self._adjust(CategoryAttr.INCOME, -value, helper)

    def add_expense(self, value: Money, helper: "TransactionHelper | None" = None) -> None:
        self._adjust(CategoryAttr.EXPENSE, value, helper)

    def subtract_expense(self, value: Money, helper: "TransactionHelper | None" = None) -> None:
        self._adjust(CategoryAttr.EXPENSE, -value, helper)

    def calculate_delta(self) -> None:
        """Rebase to the period start and record income less expense."""
        self.values.adjust_to_base_values(self.base_values)
        self.base_values.reset_base_values()
        zero = Money.zero(self._analysis.currency)
        income = self.values.get_money_value(CategoryAttr.INCOME) or zero
        expense = self.values.get_money_value(CategoryAttr.EXPENSE) or zero
        self.values.set_value(CategoryAttr.PROFIT, income - expense)

    def add_values(self, other: "TransactionCategoryBucket") -> None:
        for attr in (CategoryAttr.INCOME, CategoryAttr.EXPENSE):
            value = other.values.get_money_value(attr)
            if value is not None:
                self.values.adjust(attr, value)

    def get_income(self) -> Money:
        return self.values.get_money_value(CategoryAttr.INCOME) or Money.zero(
            self._analysis.currency
        )

    def get_expense(self) -> Money:
        return self.values.get_money_value(CategoryAttr.EXPENSE) or Money.zero(
            self._analysis.currency
        )

    def get_profit(self) -> Money:
        return self.values.get_money_value(CategoryAttr.PROFIT) or (
            self.get_income() - self.get_expense()
        )


class TransactionCategoryBucketList(BucketList[TransactionCategoryBucket]):
    """Category buckets, plus the singular categories the analysis maintains."""

    def get_bucket(self, category: TransactionCategory) -> TransactionCategoryBucket:
        bucket = self._buckets.get(category.id)
        if bucket is None:
            bucket = TransactionCategoryBucket(self._analysis, category)
            self._buckets[category.id] = bucket
        return bucket

    def get_class_bucket(self, category_class: CategoryClass) -> TransactionCategoryBucket:
        return self.get_bucket(self._analysis.dataset.category_for_class(category_class))

    def adjust_categories(self, helper: "TransactionHelper", category: TransactionCategory) -> None:
        """Book a transaction against its category and the tax/NI categories it implies."""
        tax_basis = self._analysis.tax_basis
        category_class = category.category_class

        tax_credit = helper.tax_credit
        if not tax_credit.is_zero:
            if category_class == CategoryClass.LOANINTERESTCHARGED:
                self.get_class_bucket(CategoryClass.TAXRELIEF).add_income(tax_credit, helper)
                tax_basis.adjust_value(helper, TaxBasisClass.VIRTUAL, -tax_credit)
            else:
                self.get_class_bucket(CategoryClass.TAXCREDIT).add_expense(tax_credit, helper)
                tax_basis.adjust_gross_value(helper, TaxBasisClass.TAXPAID, tax_credit)

        is_pension = category_class == CategoryClass.PENSIONCONTRIB
        bucket = self.get_bucket(category)

        employee_nat_ins = helper.employee_nat_ins
        if not employee_nat_ins.is_zero:
            target = bucket if is_pension else self.get_class_bucket(CategoryClass.EMPLOYEENATINS)
            target.add_income(employee_nat_ins, None if target is bucket else helper)
            tax_basis.adjust_nett_value(helper, TaxBasisClass.VIRTUAL, -employee_nat_ins)

        employer_nat_ins = helper.employer_nat_ins
        if not employer_nat_ins.is_zero:
            target = bucket if is_pension else self.get_class_bucket(CategoryClass.EMPLOYERNATINS)
            target.add_income(employer_nat_ins, None if target is bucket else helper)
            tax_basis.adjust_value(helper, TaxBasisClass.TAXFREE, employer_nat_ins)

        deemed_benefit = helper.deemed_benefit
        if not deemed_benefit.is_zero:
            self.get_class_bucket(CategoryClass.DEEMEDBENEFIT).add_income(deemed_benefit, helper)
            self.get_class_bucket(CategoryClass.WITHHELD).add_expense(deemed_benefit, helper)
            tax_basis.adjust_gross_value(helper, TaxBasisClass.VIRTUAL, deemed_benefit)

        withheld = helper.withheld
        if not withheld.is_zero:
            self.get_class_bucket(CategoryClass.WITHHELD).add_expense(withheld, helper)
            tax_basis.adjust_value(helper, TaxBasisClass.VIRTUAL, withheld)

        bucket.adjust_values(helper)
        tax_basis.adjust_basis(helper, category)

    def adjust_standard_gain(
        self, helper: "TransactionHelper", holding: SecurityHolding, gain: Money
    ) -> None:
        """Book a realised capital gain (or loss) on a holding."""
        tax_free = holding.portfolio.is_tax_free or not holding.security.is_capital_gains
        category_class = CategoryClass.TAXFREEGAIN if tax_free else CategoryClass.CAPITALGAIN
        bucket = self.get_class_bucket(category_class)
        if gain.is_positive:
            bucket.add_income(gain, helper)
        else:
            bucket.subtract_expense(gain, helper)
        basis = TaxBasisClass.TAXFREE if tax_free else TaxBasisClass.CAPITALGAINS
        self._analysis.tax_basis.adjust_value(helper, basis, gain, TaxBasisAdjust.STANDARD)

    def adjust_chargeable_gain(self, helper: "TransactionHelper", reduction: Money) -> Money:
        """Book a life-bond chargeable gain and return the gain amount."""
        tax_basis = self._analysis.tax_basis
        bucket = self.get_class_bucket(CategoryClass.CHARGEABLEGAIN)
        bucket.subtract_income(reduction)
        bucket.adjust_values(helper)
        gain = helper.local_amount - reduction

        tax_credit = helper.tax_credit
        if not tax_credit.is_zero:
            self.get_class_bucket(CategoryClass.TAXCREDIT).add_expense(tax_credit, helper)
            tax_basis.adjust_gross_value(helper, TaxBasisClass.TAXPAID, tax_credit)
            tax_basis.adjust_gross_value(helper, TaxBasisClass.VIRTUAL, -tax_credit)

        tax_basis.adjust_value(helper, TaxBasisClass.CHARGEABLEGAINS, gain)
        return gain

    def analyse_market(self, market_growth: Money, currency_fluctuation: Money) -> None:
        """Book the period's market growth and currency fluctuation."""
        income = Money.zero(self._analysis.currency)
        expense = Money.zero(self._analysis.currency)
        for category_class, value in (
            (CategoryClass.MARKETGROWTH, market_growth),
            (CategoryClass.CURRENCYFLUCTUATION, currency_fluctuation),
        ):
            if value.is_zero:
                continue
            bucket = self.get_class_bucket(category_class)
            if value.is_positive:
                bucket.add_income(value)
                income = income + value
            else:
                bucket.subtract_expense(value)
                expense = expense - value
        self._analysis.tax_basis.adjust_market(income, expense)

    def produce_totals(self) -> None:
        """Roll every bucket up into its ancestors, deepest first, then total."""
        for bucket in self:
            bucket.calculate_delta()

        parents: dict[UUID, TransactionCategoryBucket] = {}
        pending = list(self)
        while pending:
            deepest = max(bucket.category.depth for bucket in pending if bucket.category)
            level = [b for b in pending if b.category is not None and b.category.depth == deepest]
            pending = [b for b in pending if b not in level]
            if deepest == 0:
                break
            for bucket in level:
                parent = bucket.category.parent if bucket.category is not None else None
                if parent is None:
                    continue
                target = self._buckets.get(parent.id) or parents.get(parent.id)
                if target is None:
                    target = TransactionCategoryBucket(self._analysis, parent)
                    parents[parent.id] = target
                    pending.append(target)
                target.add_values(bucket)

        self._buckets.update(parents)
        for bucket in self:
            bucket.calculate_delta()

        totals = TransactionCategoryBucket(self._analysis, None)
        for bucket in self:
            if bucket.category is not None and bucket.category.parent is None:
                totals.add_values(bucket)
        totals.calculate_delta()
        self._sort(lambda bucket: bucket.name)
        self.totals = totals
