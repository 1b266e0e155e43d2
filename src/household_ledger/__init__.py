from household_ledger.config import Settings, get_settings
from household_ledger.domain.assets import (
    Cash,
    Deposit,
    Loan,
    Payee,
    Portfolio,
    Security,
    SecurityHolding,
)
from household_ledger.domain.dataset import ReferenceDataset
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import Currency, DateRange, Money, Units
from household_ledger.logging_config import configure_logging

__all__ = [
    "Cash",
    "configure",
    "Currency",
    "DateRange",
    "Deposit",
    "Loan",
    "Money",
    "Payee",
    "Portfolio",
    "ReferenceDataset",
    "Security",
    "Settings",
    "SecurityHolding",
    "Transaction",
    "Units",
]

__version__ = "0.1.0"


def configure(settings: Settings | None = None) -> Settings:
    """Set up logging for an application embedding the analysis.

    Call once at startup, before running any analysis. Returns the settings
    in effect so the caller can hand them to TransactionAnalyser.
    """
    if settings is None:
        settings = get_settings()
    configure_logging(settings)
    return settings
