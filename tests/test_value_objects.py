from datetime import date
from decimal import Decimal

import pytest

from household_ledger.domain.value_objects import (
    AssetDirection,
    Currency,
    DateRange,
    Money,
    Units,
)
from household_ledger.exceptions import InvalidCurrencyError, InvalidDateRangeError


class TestMoney:
    def test_money_creation_converts_to_decimal(self):
        money = Money(100.5, "GBP")

        assert isinstance(money.amount, Decimal)
        assert money.amount == Decimal("100.5")
        assert money.currency == Currency.GBP

    def test_money_invalid_currency_raises(self):
        with pytest.raises(ValueError, match="Invalid currency"):
            Money(Decimal("1"), "XXX")

    def test_money_addition_same_currency(self):
        result = Money(Decimal("100.00"), Currency.GBP) + Money(Decimal("50.25"), Currency.GBP)

        assert result == Money(Decimal("150.25"), Currency.GBP)

    def test_money_addition_different_currency_raises(self):
        with pytest.raises(InvalidCurrencyError, match="Currency mismatch"):
            Money(Decimal("100.00"), Currency.GBP) + Money(Decimal("1.00"), Currency.USD)

    def test_money_comparison_different_currency_raises(self):
        with pytest.raises(InvalidCurrencyError):
            Money(Decimal("100.00"), Currency.GBP) > Money(Decimal("1.00"), Currency.USD)

    def test_negation_and_abs(self):
        money = Money(Decimal("12.34"), Currency.GBP)

        assert -money == Money(Decimal("-12.34"), Currency.GBP)
        assert abs(-money) == money

    def test_convert_multiplies_and_rounds(self):
        result = Money(Decimal("100.00"), Currency.USD).convert(Currency.GBP, Decimal("0.7891"))

        assert result == Money(Decimal("78.91"), Currency.GBP)

    def test_convert_rounds_to_zero_places_for_yen(self):
        result = Money(Decimal("10.00"), Currency.GBP).convert(Currency.JPY, Decimal("190.456"))

        assert result.amount == Decimal("1905")

    def test_weighted_rounds_half_up(self):
        cost = Money(Decimal("10000.00"), Currency.GBP)

        assert cost.weighted(Decimal("6000"), Decimal("106000")) == Money(
            Decimal("566.04"), Currency.GBP
        )

    def test_weighted_by_zero_denominator_is_zero(self):
        cost = Money(Decimal("100.00"), Currency.GBP)

        assert cost.weighted(Units(Decimal("5")), Units.zero()).is_zero

    def test_at_rate(self):
        assert Money(Decimal("60000.20"), Currency.GBP).at_rate(Decimal("0.05")) == Money(
            Decimal("3000.01"), Currency.GBP
        )

    def test_zero_and_sign_flags(self):
        assert Money.zero(Currency.EUR).is_zero
        assert Money(Decimal("-1"), Currency.EUR).is_negative
        assert Money(Decimal("1"), Currency.EUR).is_positive


class TestUnits:
    def test_units_arithmetic(self):
        units = Units(Decimal("100")) - Units(Decimal("40"))

        assert units == Units(Decimal("60"))
        assert (units * 2).value == Decimal("120")

    def test_value_at_price(self):
        value = Units(Decimal("60")).value_at_price(Money(Decimal("25.00"), Currency.GBP))

        assert value == Money(Decimal("1500.00"), Currency.GBP)

    def test_units_coerces_strings(self):
        assert Units("1.5").value == Decimal("1.5")


class TestAssetDirection:
    def test_reverse(self):
        assert AssetDirection.TO.reverse() is AssetDirection.FROM
        assert AssetDirection.FROM.reverse() is AssetDirection.TO


class TestDateRange:
    def test_contains_is_inclusive(self):
        date_range = DateRange(date(2024, 1, 1), date(2024, 1, 31))

        assert date(2024, 1, 1) in date_range
        assert date(2024, 1, 31) in date_range
        assert date(2024, 2, 1) not in date_range

    def test_end_before_start_raises(self):
        with pytest.raises(InvalidDateRangeError):
            DateRange(date(2024, 2, 1), date(2024, 1, 1))

    def test_for_tax_year_uses_uk_default(self):
        date_range = DateRange.for_tax_year(2024)

        assert date_range.start == date(2024, 4, 6)
        assert date_range.end == date(2025, 4, 5)

    def test_for_tax_year_calendar_year(self):
        date_range = DateRange.for_tax_year(2024, start_month=1, start_day=1)

        assert date_range.end == date(2024, 12, 31)
