from household_ledger.services.analysis_manager import AnalysisManager
from household_ledger.services.corporate_actions import (
    CorporateActionProcessor,
    classify_distribution,
)
from household_ledger.services.currency import CurrencyConverter, ExchangeRateMap
from household_ledger.services.interfaces import PriceLookup, RateLookup, TaxYearCalculator
from household_ledger.services.transaction_analyser import TransactionAnalyser
from household_ledger.services.transaction_helper import TransactionHelper

__all__ = [
    "AnalysisManager",
    "CorporateActionProcessor",
    "CurrencyConverter",
    "ExchangeRateMap",
    "PriceLookup",
    "RateLookup",
    "TaxYearCalculator",
    "TransactionAnalyser",
    "TransactionHelper",
    "classify_distribution",
]
