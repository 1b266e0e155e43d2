"""Exception hierarchy for Household Ledger analysis.

All library exceptions inherit from HouseholdLedgerError.
This allows catching all analysis errors with a single base class
while preserving specificity for individual error types.
"""

from datetime import date
from typing import Any
from uuid import UUID


class HouseholdLedgerError(Exception):
    """Base exception for all Household Ledger errors.

    Includes an error_code for structured logs and extra context.
    """

    error_code: str = "HHL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Analysis Errors
# =============================================================================


class AnalysisError(HouseholdLedgerError):
    """Base exception for errors raised while analysing transactions."""

    error_code = "ANALYSIS_ERROR"


class DataConsistencyError(AnalysisError):
    """Raised when the ledger contains data the analysis cannot reconcile."""

    error_code = "DATA_CONSISTENCY_ERROR"


class InvalidAssetPairError(DataConsistencyError):
    """Raised when a transaction's debit/credit pair and category cannot be dispatched."""

    error_code = "INVALID_ASSET_PAIR"

    def __init__(
        self,
        category_class: str,
        debit: str,
        credit: str,
        transaction_id: UUID | str | None = None,
    ) -> None:
        super().__init__(
            f"Invalid asset pair for {category_class}: {debit} -> {credit}",
            context={
                "category_class": category_class,
                "debit": debit,
                "credit": credit,
                "transaction_id": str(transaction_id) if transaction_id else None,
            },
        )


class IllegallyClosedAccountError(DataConsistencyError):
    """Raised when a closed account or security still holds value after analysis."""

    error_code = "ILLEGALLY_CLOSED_ACCOUNT"

    def __init__(self, account_name: str) -> None:
        super().__init__(
            f"Illegally closed account: {account_name}",
            context={"account": account_name},
        )


class TransactionOrderError(DataConsistencyError):
    """Raised when a transaction is registered out of date order."""

    error_code = "TRANSACTION_ORDER_ERROR"

    def __init__(self, last_date: date, new_date: date) -> None:
        super().__init__(
            f"Transaction dated {new_date} registered after {last_date}",
            context={"last_date": last_date.isoformat(), "new_date": new_date.isoformat()},
        )


# =============================================================================
# Lookup Errors
# =============================================================================


class LookupMissError(HouseholdLedgerError):
    """Base exception for missing market data."""

    error_code = "LOOKUP_MISS"


class PriceNotFoundError(LookupMissError):
    """Raised when no price is recorded for a security on or before a date."""

    error_code = "PRICE_NOT_FOUND"

    def __init__(self, security: str, on_date: date) -> None:
        super().__init__(
            f"No price found for {security} on {on_date}",
            context={"security": security, "date": on_date.isoformat()},
        )


class ExchangeRateNotFoundError(LookupMissError):
    """Raised when no direct or inverse exchange rate exists for a date."""

    error_code = "EXCHANGE_RATE_NOT_FOUND"

    def __init__(self, from_currency: str, to_currency: str, on_date: date) -> None:
        super().__init__(
            f"No exchange rate found for {from_currency}/{to_currency} on {on_date}",
            context={
                "from_currency": from_currency,
                "to_currency": to_currency,
                "date": on_date.isoformat(),
            },
        )


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(HouseholdLedgerError):
    """Base exception for validation errors."""

    error_code = "VALIDATION_ERROR"


class InvalidCurrencyError(ValidationError):
    """Raised when money in different currencies is combined."""

    error_code = "INVALID_CURRENCY"

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"Currency mismatch: expected {expected}, got {actual}",
            context={"expected": expected, "actual": actual},
        )


class InvalidDateRangeError(ValidationError):
    """Raised when a date range ends before it starts."""

    error_code = "INVALID_DATE_RANGE"

    def __init__(self, start: date, end: date) -> None:
        super().__init__(
            f"Date range ends ({end}) before it starts ({start})",
            context={"start": start.isoformat(), "end": end.isoformat()},
        )
