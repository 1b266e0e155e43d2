"""Tests for the exception hierarchy."""

from datetime import date
from uuid import uuid4

import pytest

from household_ledger.exceptions import (
    AnalysisError,
    DataConsistencyError,
    ExchangeRateNotFoundError,
    HouseholdLedgerError,
    IllegallyClosedAccountError,
    InvalidAssetPairError,
    InvalidCurrencyError,
    InvalidDateRangeError,
    LookupMissError,
    PriceNotFoundError,
    TransactionOrderError,
    ValidationError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        ("error", "parent"),
        [
            (InvalidAssetPairError("transfer", "Payee", "Payee"), DataConsistencyError),
            (IllegallyClosedAccountError("Old Account"), DataConsistencyError),
            (TransactionOrderError(date(2024, 1, 2), date(2024, 1, 1)), DataConsistencyError),
            (DataConsistencyError("bad"), AnalysisError),
            (PriceNotFoundError("Widget plc", date(2024, 1, 1)), LookupMissError),
            (ExchangeRateNotFoundError("USD", "GBP", date(2024, 1, 1)), LookupMissError),
            (InvalidCurrencyError("GBP", "USD"), ValidationError),
            (InvalidDateRangeError(date(2024, 2, 1), date(2024, 1, 1)), ValidationError),
        ],
    )
    def test_errors_share_a_base(self, error, parent):
        assert isinstance(error, parent)
        assert isinstance(error, HouseholdLedgerError)


class TestErrorDetails:
    def test_to_dict(self):
        error = IllegallyClosedAccountError("Old Account")

        assert error.to_dict() == {
            "error": "ILLEGALLY_CLOSED_ACCOUNT",
            "message": "Illegally closed account: Old Account",
            "context": {"account": "Old Account"},
        }

    def test_invalid_asset_pair_carries_transaction_id(self):
        transaction_id = uuid4()

        error = InvalidAssetPairError("dividend", "Deposit", "Payee", transaction_id)

        assert error.error_code == "INVALID_ASSET_PAIR"
        assert error.context["transaction_id"] == str(transaction_id)
        assert str(error) == "Invalid asset pair for dividend: Deposit -> Payee"

    def test_error_code_can_be_overridden(self):
        error = AnalysisError("failed", error_code="CUSTOM", context={"step": 3})

        assert error.error_code == "CUSTOM"
        assert error.context == {"step": 3}
        assert AnalysisError.error_code == "ANALYSIS_ERROR"

    def test_transaction_order_context(self):
        error = TransactionOrderError(date(2024, 1, 2), date(2024, 1, 1))

        assert error.context == {"last_date": "2024-01-02", "new_date": "2024-01-01"}
