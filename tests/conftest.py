from collections.abc import Callable, Iterable
from datetime import date
from decimal import Decimal

import pytest

from household_ledger.analysis.analysis import Analysis
from household_ledger.config import Environment, Settings
from household_ledger.domain.assets import (
    Cash,
    Deposit,
    DepositType,
    Payee,
    PayeeType,
    Portfolio,
    Security,
    SecurityHolding,
    SecurityType,
)
from household_ledger.domain.categories import CategoryClass, TransactionCategory
from household_ledger.domain.dataset import ReferenceDataset
from household_ledger.domain.market_data import ExchangeRate, SecurityPrice
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import AssetDirection, Currency, Money, Units
from household_ledger.services.transaction_analyser import TransactionAnalyser


def gbp(amount: str | int) -> Money:
    return Money(Decimal(str(amount)), Currency.GBP)


def usd(amount: str | int) -> Money:
    return Money(Decimal(str(amount)), Currency.USD)


@pytest.fixture
def settings() -> Settings:
    return Settings(environment=Environment.TESTING)


@pytest.fixture
def bank() -> Payee:
    return Payee(name="Big Bank", payee_type=PayeeType.INSTITUTION)


@pytest.fixture
def employer() -> Payee:
    return Payee(name="Acme Ltd", payee_type=PayeeType.EMPLOYER)


@pytest.fixture
def shop() -> Payee:
    return Payee(name="Corner Shop")


@pytest.fixture
def broker() -> Payee:
    return Payee(name="Dealing Co", payee_type=PayeeType.INSTITUTION)


@pytest.fixture
def widget_issuer() -> Payee:
    return Payee(name="Widget plc", payee_type=PayeeType.MARKET)


@pytest.fixture
def current_account(bank: Payee) -> Deposit:
    return Deposit(
        name="Current Account",
        currency=Currency.GBP,
        deposit_type=DepositType.CHECKING,
        parent=bank,
        opening_balance=gbp("1000.00"),
    )


@pytest.fixture
def portfolio(broker: Payee) -> Portfolio:
    return Portfolio(name="Dealing Account", currency=Currency.GBP, parent=broker)


@pytest.fixture
def second_portfolio(broker: Payee) -> Portfolio:
    return Portfolio(name="Share Account", currency=Currency.GBP, parent=broker)


@pytest.fixture
def widgets(widget_issuer: Payee) -> Security:
    return Security(
        name="Widget plc",
        currency=Currency.GBP,
        security_type=SecurityType.SHARES,
        parent=widget_issuer,
        symbol="WDG",
    )


@pytest.fixture
def gadgets(widget_issuer: Payee) -> Security:
    return Security(
        name="Gadget plc",
        currency=Currency.GBP,
        security_type=SecurityType.SHARES,
        parent=widget_issuer,
        symbol="GDG",
    )


@pytest.fixture
def us_stock() -> Security:
    return Security(
        name="Example Corp",
        currency=Currency.USD,
        security_type=SecurityType.SHARES,
        symbol="EXC",
    )


@pytest.fixture
def categories() -> dict[str, TransactionCategory]:
    household = TransactionCategory("Household", CategoryClass.EXPENSE)
    return {
        "salary": TransactionCategory("Salary", CategoryClass.TAXEDINCOME),
        "household": household,
        "groceries": TransactionCategory("Groceries", CategoryClass.EXPENSE, parent=household),
        "fuel": TransactionCategory("Fuel", CategoryClass.EXPENSE, parent=household),
        "expense": TransactionCategory("Expense", CategoryClass.EXPENSE),
        "transfer": TransactionCategory("Transfer", CategoryClass.TRANSFER),
        "interest": TransactionCategory("Interest", CategoryClass.INTEREST),
        "dividend": TransactionCategory("Dividend", CategoryClass.DIVIDEND),
        "split": TransactionCategory("Stock Split", CategoryClass.STOCKSPLIT),
        "demerger": TransactionCategory("De-merger", CategoryClass.STOCKDEMERGER),
        "takeover": TransactionCategory("Takeover", CategoryClass.STOCKTAKEOVER),
        "closure": TransactionCategory("Closure", CategoryClass.SECURITYCLOSURE),
        "portfolio_xfer": TransactionCategory("Portfolio Transfer", CategoryClass.PORTFOLIOXFER),
        "income_tax": TransactionCategory("Income Tax", CategoryClass.INCOMETAX),
    }


@pytest.fixture
def dataset(
    bank: Payee,
    employer: Payee,
    shop: Payee,
    broker: Payee,
    widget_issuer: Payee,
    current_account: Deposit,
    portfolio: Portfolio,
    second_portfolio: Portfolio,
    widgets: Security,
    gadgets: Security,
    us_stock: Security,
    categories: dict[str, TransactionCategory],
) -> ReferenceDataset:
    data = ReferenceDataset(
        payees=[bank, employer, shop, broker, widget_issuer],
        deposits=[current_account],
        portfolios=[portfolio, second_portfolio],
        securities=[widgets, gadgets, us_stock],
        categories=list(categories.values()),
        reporting_currency=Currency.GBP,
    )
    for security, price in ((widgets, "10.00"), (gadgets, "25.00"), (us_stock, "10.00")):
        data.prices.add(SecurityPrice(security.id, date(2024, 1, 1), Money(Decimal(price), security.currency)))
    data.rates.add(ExchangeRate(Currency.USD, Currency.GBP, Decimal("0.80"), date(2024, 1, 1)))
    return data


@pytest.fixture
def holding(dataset: ReferenceDataset, portfolio: Portfolio, widgets: Security) -> SecurityHolding:
    return dataset.holding(portfolio, widgets)


@pytest.fixture
def gadget_holding(
    dataset: ReferenceDataset, portfolio: Portfolio, gadgets: Security
) -> SecurityHolding:
    return dataset.holding(portfolio, gadgets)


@pytest.fixture
def wallet(categories: dict[str, TransactionCategory]) -> Cash:
    return Cash(
        name="Wallet",
        currency=Currency.GBP,
        auto_expense=categories["groceries"],
        auto_payee=Payee(name="Cash Spending"),
    )


@pytest.fixture
def analyse(
    dataset: ReferenceDataset, settings: Settings
) -> Callable[..., Analysis]:
    """Run the analyser over transactions against the shared dataset."""

    def _analyse(transactions: Iterable[Transaction], end_date: date | None = None) -> Analysis:
        analyser = TransactionAnalyser(dataset, settings=settings)
        return analyser.analyse(transactions, end_date=end_date)

    return _analyse


@pytest.fixture
def buy(
    current_account: Deposit, categories: dict[str, TransactionCategory]
) -> Callable[..., Transaction]:
    """Purchase of units paid from the current account."""

    def _buy(
        holding: SecurityHolding,
        on_date: date,
        cost: str,
        units: str,
        partner_amount: Money | None = None,
    ) -> Transaction:
        return Transaction(
            transaction_date=on_date,
            account=current_account,
            partner=holding,
            category=categories["transfer"],
            amount=gbp(cost),
            direction=AssetDirection.TO,
            partner_amount=partner_amount,
            partner_delta_units=Units(Decimal(units)),
        )

    return _buy
