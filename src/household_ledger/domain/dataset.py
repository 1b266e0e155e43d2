"""Reference data consumed by an analysis."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from household_ledger.domain.assets import (
    Cash,
    Deposit,
    Loan,
    Payee,
    PayeeType,
    Portfolio,
    Security,
    SecurityHolding,
)
from household_ledger.domain.categories import CategoryClass, TransactionCategory, TransactionTag
from household_ledger.domain.market_data import PriceHistory, RateHistory
from household_ledger.domain.value_objects import Currency


@dataclass
class ReferenceDataset:
    """Assets, categories and market data that transactions refer to.

    Singular categories (tax credit, capital gains, market growth, ...) are
    created on first request when the dataset does not define them, and the
    same instance is returned afterwards so every analysis built from this
    dataset keys them identically.
    """

    payees: list[Payee] = field(default_factory=list)
    deposits: list[Deposit] = field(default_factory=list)
    cash: list[Cash] = field(default_factory=list)
    loans: list[Loan] = field(default_factory=list)
    portfolios: list[Portfolio] = field(default_factory=list)
    securities: list[Security] = field(default_factory=list)
    categories: list[TransactionCategory] = field(default_factory=list)
    tags: list[TransactionTag] = field(default_factory=list)
    prices: PriceHistory = field(default_factory=PriceHistory)
    rates: RateHistory = field(default_factory=RateHistory)
    reporting_currency: Currency | None = None
    start_date: date | None = None
    state_pension: SecurityHolding | None = None
    tax_authority: Payee | None = None
    _holdings: dict[UUID, SecurityHolding] = field(default_factory=dict, init=False, repr=False)
    _singular: dict[CategoryClass, TransactionCategory] = field(
        default_factory=dict, init=False, repr=False
    )

    def holding(self, portfolio: Portfolio, security: Security) -> SecurityHolding:
        """Return the cached holding of a security within a portfolio."""
        candidate = SecurityHolding(portfolio, security)
        return self._holdings.setdefault(candidate.id, candidate)

    def find_category_by_class(self, category_class: CategoryClass) -> TransactionCategory | None:
        for category in self.categories:
            if category.category_class == category_class:
                return category
        return self._singular.get(category_class)

    def category_for_class(self, category_class: CategoryClass) -> TransactionCategory:
        """Find the category of a class, creating a top-level one if absent."""
        category = self.find_category_by_class(category_class)
        if category is None:
            category = TransactionCategory(category_class.label, category_class)
            self._singular[category_class] = category
        return category

    @property
    def tax_man(self) -> Payee:
        """The payee that receives tax and national insurance."""
        if self.tax_authority is None:
            self.tax_authority = next(
                (payee for payee in self.payees if payee.payee_type == PayeeType.TAXMAN),
                None,
            ) or Payee("TaxMan", PayeeType.TAXMAN)
        return self.tax_authority

    def accounts_with_opening_balance(self) -> Iterator[Deposit | Cash | Loan]:
        for account in [*self.deposits, *self.cash, *self.loans]:
            if account.opening_balance is not None and not account.opening_balance.is_zero:
                yield account
