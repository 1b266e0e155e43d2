from household_ledger.domain.assets import (
    Cash,
    Deposit,
    DepositType,
    Loan,
    Payee,
    PayeeType,
    Portfolio,
    Security,
    SecurityHolding,
    SecurityType,
)
from household_ledger.domain.categories import (
    CategoryClass,
    TaxBasisClass,
    TransactionCategory,
    TransactionTag,
)
from household_ledger.domain.dataset import ReferenceDataset
from household_ledger.domain.market_data import (
    ExchangeRate,
    PriceHistory,
    RateHistory,
    SecurityPrice,
)
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import (
    AssetDirection,
    CashType,
    Currency,
    DateRange,
    Money,
    Units,
)

__all__ = [
    "AssetDirection",
    "Cash",
    "CashType",
    "CategoryClass",
    "Currency",
    "DateRange",
    "Deposit",
    "DepositType",
    "ExchangeRate",
    "Loan",
    "Money",
    "Payee",
    "PayeeType",
    "Portfolio",
    "PriceHistory",
    "RateHistory",
    "ReferenceDataset",
    "Security",
    "SecurityHolding",
    "SecurityPrice",
    "SecurityType",
    "TaxBasisClass",
    "Transaction",
    "TransactionCategory",
    "TransactionTag",
    "Units",
]
