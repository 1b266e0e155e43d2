"""Snapshot history of a bucket, sliceable by date or date range."""

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from datetime import date
from typing import Any, Generic

from household_ledger.analysis.values import AttrT, BucketValues, zero_like
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import DateRange, Money, Units
from household_ledger.exceptions import TransactionOrderError


@dataclass(frozen=True, slots=True)
class HistoryEntry(Generic[AttrT]):
    transaction: Transaction
    values: BucketValues[AttrT]

    @property
    def transaction_date(self) -> date:
        return self.transaction.transaction_date


class BucketHistory(Generic[AttrT]):
    """Base values, live values and one snapshot per registered transaction.

    Snapshots are kept in transaction order so that dated and ranged views
    can be cut with a binary search on the transaction dates.
    """

    def __init__(
        self,
        base: BucketValues[AttrT],
        entries: list[HistoryEntry[AttrT]] | None = None,
        current: BucketValues[AttrT] | None = None,
    ) -> None:
        self._base = base
        self._entries: list[HistoryEntry[AttrT]] = list(entries or [])
        self._dates = [entry.transaction_date for entry in self._entries]
        self._index = {entry.transaction.id: i for i, entry in enumerate(self._entries)}
        self._values = current if current is not None else base.snapshot()

    @classmethod
    def copy_of(cls, source: "BucketHistory[AttrT]") -> "BucketHistory[AttrT]":
        return cls(source._base.snapshot(), source._entries, source._values.snapshot())

    @classmethod
    def as_of_date(cls, source: "BucketHistory[AttrT]", on_date: date) -> "BucketHistory[AttrT]":
        """History truncated to the transactions dated on or before on_date."""
        end = bisect_right(source._dates, on_date)
        entries = source._entries[:end]
        base = source._base.snapshot()
        if entries:
            current = entries[-1].values.snapshot(include_transient=False)
        else:
            current = base.snapshot()
        return cls(base, entries, current)

    @classmethod
    def for_range(
        cls, source: "BucketHistory[AttrT]", date_range: DateRange
    ) -> "BucketHistory[AttrT]":
        """History of the transactions inside date_range, based at its start."""
        start = bisect_left(source._dates, date_range.start)
        end = bisect_right(source._dates, date_range.end)
        if start > 0:
            base = source._entries[start - 1].values.snapshot(counters_only=True)
        else:
            base = source._base.snapshot()
        entries = source._entries[start:end]
        if entries:
            current = entries[-1].values.snapshot(include_transient=False)
        else:
            current = base.snapshot()
        return cls(base, entries, current)

    @property
    def base_values(self) -> BucketValues[AttrT]:
        return self._base

    @property
    def values(self) -> BucketValues[AttrT]:
        return self._values

    @property
    def entries(self) -> tuple[HistoryEntry[AttrT], ...]:
        return tuple(self._entries)

    def is_idle(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def register_transaction(
        self, transaction: Transaction, values: BucketValues[AttrT]
    ) -> BucketValues[AttrT]:
        """Record a snapshot of values after transaction and return it.

        A second registration of the same transaction replaces its snapshot,
        keeping any transient details already recorded on it.
        """
        snapshot = values.snapshot()
        if self._entries and self._entries[-1].transaction.id == transaction.id:
            for attr, value in self._entries[-1].values.items():
                if attr.is_transient and attr not in snapshot:
                    snapshot.set_value(attr, value)
            self._entries[-1] = HistoryEntry(transaction, snapshot)
            return snapshot

        if self._dates and transaction.transaction_date < self._dates[-1]:
            raise TransactionOrderError(self._dates[-1], transaction.transaction_date)

        self._index[transaction.id] = len(self._entries)
        self._entries.append(HistoryEntry(transaction, snapshot))
        self._dates.append(transaction.transaction_date)
        return snapshot

    def get_values_for_transaction(self, transaction: Transaction) -> BucketValues[AttrT] | None:
        index = self._index.get(transaction.id)
        if index is None:
            return None
        return self._entries[index].values

    def get_previous_values_for_transaction(
        self, transaction: Transaction
    ) -> BucketValues[AttrT] | None:
        index = self._index.get(transaction.id)
        if index is None:
            return None
        if index == 0:
            return self._base
        return self._entries[index - 1].values

    def get_delta_value(self, transaction: Transaction, attr: AttrT) -> Any | None:
        """Change in attr caused by transaction, or None if it was not registered."""
        values = self.get_values_for_transaction(transaction)
        previous = self.get_previous_values_for_transaction(transaction)
        if values is None or previous is None:
            return None
        current = values.get_value(attr)
        prior = previous.get_value(attr)
        if current is None and prior is None:
            return None
        if current is None:
            current = zero_like(prior)
        if prior is None:
            prior = zero_like(current)
        return current - prior

    def get_delta_money_value(self, transaction: Transaction, attr: AttrT) -> Money | None:
        delta = self.get_delta_value(transaction, attr)
        if delta is not None and not isinstance(delta, Money):
            raise TypeError(f"{attr.name} is not a money attribute")
        return delta

    def get_delta_units_value(self, transaction: Transaction, attr: AttrT) -> Units | None:
        delta = self.get_delta_value(transaction, attr)
        if delta is not None and not isinstance(delta, Units):
            raise TypeError(f"{attr.name} is not a units attribute")
        return delta
