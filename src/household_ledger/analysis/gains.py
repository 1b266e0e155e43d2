"""Chargeable gains on life bonds, sliced over the years the bond was held."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date

from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import DateRange, Money


@dataclass(frozen=True, slots=True)
class ChargeableGainSlice:
    transaction: Transaction
    gain: Money
    slice: Money
    years: int

    @property
    def transaction_date(self) -> date:
        return self.transaction.transaction_date


class ChargeableGainSliceList:
    def __init__(self, slices: list[ChargeableGainSlice] | None = None) -> None:
        self._slices = list(slices or [])

    def add_transaction(self, transaction: Transaction, gain: Money) -> ChargeableGainSlice:
        years = transaction.years or 1
        gain_slice = ChargeableGainSlice(
            transaction=transaction,
            gain=gain,
            slice=gain.weighted(1, years),
            years=years,
        )
        self._slices.append(gain_slice)
        return gain_slice

    def as_of(self, on_date: date) -> "ChargeableGainSliceList":
        return ChargeableGainSliceList([s for s in self._slices if s.transaction_date <= on_date])

    def for_range(self, date_range: DateRange) -> "ChargeableGainSliceList":
        return ChargeableGainSliceList(
            [s for s in self._slices if s.transaction_date in date_range]
        )

    def total_gains(self, zero: Money) -> Money:
        total = zero
        for gain_slice in self._slices:
            total = total + gain_slice.gain
        return total

    def total_slices(self, zero: Money) -> Money:
        total = zero
        for gain_slice in self._slices:
            total = total + gain_slice.slice
        return total

    def __iter__(self) -> Iterator[ChargeableGainSlice]:
        return iter(self._slices)

    def __len__(self) -> int:
        return len(self._slices)
