"""Tests for exchange rate lookup, conversion and the transaction helper."""

from datetime import date
from decimal import Decimal

import pytest

from household_ledger.domain.market_data import ExchangeRate, RateHistory
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import AssetDirection, Currency, Money, Units
from household_ledger.exceptions import ExchangeRateNotFoundError
from household_ledger.services.currency import CurrencyConverter, ExchangeRateMap
from household_ledger.services.transaction_helper import TransactionHelper

from conftest import gbp, usd


@pytest.fixture
def rate_history() -> RateHistory:
    return RateHistory(
        [
            ExchangeRate(Currency.USD, Currency.GBP, Decimal("0.80"), date(2024, 1, 1)),
            ExchangeRate(Currency.USD, Currency.GBP, Decimal("0.75"), date(2024, 6, 1)),
            ExchangeRate(Currency.GBP, Currency.EUR, Decimal("1.25"), date(2024, 1, 1)),
        ]
    )


@pytest.fixture
def rate_map(rate_history: RateHistory) -> ExchangeRateMap:
    return ExchangeRateMap(rate_history, Currency.GBP)


@pytest.fixture
def converter(rate_map: ExchangeRateMap) -> CurrencyConverter:
    return CurrencyConverter(rate_map)


class TestExchangeRate:
    def test_rate_must_be_positive(self):
        with pytest.raises(ValueError, match="positive"):
            ExchangeRate(Currency.USD, Currency.GBP, Decimal("0"), date(2024, 1, 1))

    def test_inverse(self):
        rate = ExchangeRate(Currency.USD, Currency.GBP, Decimal("0.80"), date(2024, 1, 1))

        assert rate.inverse.rate == Decimal("1.25")
        assert rate.inverse.pair == "GBP/USD"


class TestExchangeRateMap:
    def test_reporting_currency_is_unity(self, rate_map):
        assert rate_map.get_rate_for_date(Currency.GBP, date(2024, 3, 1)) == Decimal("1")

    def test_latest_rate_on_or_before_date(self, rate_map):
        assert rate_map.get_rate_for_date(Currency.USD, date(2024, 5, 31)) == Decimal("0.80")
        assert rate_map.get_rate_for_date(Currency.USD, date(2024, 6, 1)) == Decimal("0.75")

    def test_inverse_pair_is_used(self, rate_map):
        assert rate_map.get_rate_for_date(Currency.EUR, date(2024, 3, 1)) == Decimal("0.8")

    def test_missing_rate_raises(self, rate_map):
        with pytest.raises(ExchangeRateNotFoundError) as exc_info:
            rate_map.get_rate_for_date(Currency.USD, date(2023, 12, 31))

        assert exc_info.value.context["from_currency"] == "USD"

    def test_rates_for_range(self, rate_map):
        from household_ledger.domain.value_objects import DateRange

        start, end = rate_map.get_rates_for_range(
            Currency.USD, DateRange(date(2024, 1, 1), date(2024, 12, 31))
        )

        assert (start, end) == (Decimal("0.80"), Decimal("0.75"))


class TestCurrencyConverter:
    def test_to_local(self, converter):
        assert converter.to_local(usd("100.00"), date(2024, 3, 1)) == gbp("80.00")

    def test_from_local_divides_by_rate(self, converter):
        assert converter.convert(gbp("80.00"), Currency.USD, date(2024, 3, 1)) == usd("100.00")

    def test_round_trip_is_within_a_penny(self, converter):
        original = gbp("123.45")
        there = converter.convert(original, Currency.USD, date(2024, 7, 1))
        back = converter.convert(there, Currency.GBP, date(2024, 7, 1))

        assert abs(back.amount - original.amount) <= Decimal("0.01")

    def test_cross_currency_goes_via_reporting(self, converter):
        result = converter.convert(usd("100.00"), Currency.EUR, date(2024, 3, 1))

        assert result == Money(Decimal("100.00"), Currency.EUR)

    def test_same_currency_is_unchanged(self, converter):
        amount = usd("5.00")

        assert converter.convert(amount, Currency.USD, date(2024, 3, 1)) is amount


class TestTransactionHelper:
    """Debit/credit resolution and localisation of a transaction."""

    def test_direction_to_debits_the_account(self, converter, current_account, shop, categories):
        transaction = Transaction(
            transaction_date=date(2024, 3, 1),
            account=current_account,
            partner=shop,
            category=categories["groceries"],
            amount=gbp("40.00"),
        )

        helper = TransactionHelper(transaction, converter)

        assert helper.debit_asset is current_account
        assert helper.credit_asset is shop
        assert helper.debit_amount == helper.credit_amount == gbp("40.00")
        assert helper.local_amount == gbp("40.00")
        assert helper.tax_credit == gbp("0")

    def test_direction_from_credits_the_account(
        self, converter, current_account, employer, categories
    ):
        transaction = Transaction(
            transaction_date=date(2024, 3, 1),
            account=current_account,
            partner=employer,
            category=categories["salary"],
            amount=gbp("250.00"),
            direction=AssetDirection.FROM,
            tax_credit=gbp("50.00"),
        )

        helper = TransactionHelper(transaction, converter)

        assert helper.debit_asset is employer
        assert helper.credit_asset is current_account
        assert helper.tax_credit == gbp("50.00")
        assert helper.is_payee_debit

    def test_partner_amount_used_for_foreign_side(
        self, dataset, converter, current_account, portfolio, us_stock, categories
    ):
        holding = dataset.holding(portfolio, us_stock)
        transaction = Transaction(
            transaction_date=date(2024, 3, 1),
            account=current_account,
            partner=holding,
            category=categories["transfer"],
            amount=gbp("800.00"),
            partner_amount=usd("1000.00"),
            partner_delta_units=Units(Decimal("100")),
        )

        helper = TransactionHelper(transaction, converter)

        assert helper.debit_amount == gbp("800.00")
        assert helper.credit_amount == usd("1000.00")
        assert helper.credit_exchange_rate == Decimal("0.80")
        assert helper.credit_units == Units(Decimal("100"))
        assert helper.debit_units is None

    def test_partner_amount_converted_when_missing(
        self, dataset, converter, current_account, portfolio, us_stock, categories
    ):
        holding = dataset.holding(portfolio, us_stock)
        transaction = Transaction(
            transaction_date=date(2024, 3, 1),
            account=current_account,
            partner=holding,
            category=categories["transfer"],
            amount=gbp("80.00"),
        )

        helper = TransactionHelper(transaction, converter)

        assert helper.credit_amount == usd("100.00")

    def test_foreign_account_amount_is_localised(self, converter, shop, categories):
        from household_ledger.domain.assets import Deposit

        dollars = Deposit(name="Dollar Account", currency=Currency.USD)
        transaction = Transaction(
            transaction_date=date(2024, 3, 1),
            account=dollars,
            partner=shop,
            category=categories["groceries"],
            amount=usd("50.00"),
        )

        helper = TransactionHelper(transaction, converter)

        assert helper.local_amount == gbp("40.00")
        assert helper.debit_exchange_rate == Decimal("0.80")

    def test_to_foreign_divides_by_rate(self, converter, current_account, shop, categories):
        transaction = Transaction(
            transaction_date=date(2024, 3, 1),
            account=current_account,
            partner=shop,
            category=categories["groceries"],
            amount=gbp("1.00"),
        )
        helper = TransactionHelper(transaction, converter)

        assert helper.to_foreign(gbp("200.00"), Currency.USD, Decimal("0.80")) == usd("250.00")
