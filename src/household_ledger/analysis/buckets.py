"""Behaviour shared by every bucket and bucket list."""

from collections.abc import Callable, Iterator
from datetime import date
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from uuid import UUID

from household_ledger.analysis.history import BucketHistory
from household_ledger.analysis.values import AttrT, BucketValues
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import DateRange

if TYPE_CHECKING:
    from household_ledger.analysis.analysis import Analysis
    from household_ledger.services.transaction_helper import TransactionHelper


class Bucket(Generic[AttrT]):
    """A named accumulator whose state is recorded per transaction."""

    def __init__(self, analysis: "Analysis", history: BucketHistory[AttrT]) -> None:
        self._analysis = analysis
        self._history = history

    @property
    def key(self) -> UUID | str:
        raise NotImplementedError

    @property
    def name(self) -> str:
        raise NotImplementedError

    def derive(self, analysis: "Analysis", history: BucketHistory[AttrT]) -> "Bucket[AttrT]":
        """Same bucket bound to another analysis and history."""
        raise NotImplementedError

    @property
    def analysis(self) -> "Analysis":
        return self._analysis

    @property
    def history(self) -> BucketHistory[AttrT]:
        return self._history

    @property
    def values(self) -> BucketValues[AttrT]:
        return self._history.values

    @property
    def base_values(self) -> BucketValues[AttrT]:
        return self._history.base_values

    def register_transaction(
        self, helper: "TransactionHelper | Transaction"
    ) -> BucketValues[AttrT]:
        transaction = helper if isinstance(helper, Transaction) else helper.transaction
        return self._history.register_transaction(transaction, self.values)

    def get_values_for_transaction(self, transaction: Transaction) -> BucketValues[AttrT] | None:
        return self._history.get_values_for_transaction(transaction)

    def get_previous_values_for_transaction(
        self, transaction: Transaction
    ) -> BucketValues[AttrT] | None:
        return self._history.get_previous_values_for_transaction(transaction)

    def get_delta_value(self, transaction: Transaction, attr: AttrT) -> Any | None:
        return self._history.get_delta_value(transaction, attr)

    def is_idle(self) -> bool:
        return self._history.is_idle()

    def is_active(self) -> bool:
        return self.values.is_active()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


BucketT = TypeVar("BucketT")


class BucketList(Generic[BucketT]):
    """Buckets keyed by the id of what they analyse, plus a totals bucket."""

    def __init__(self, analysis: "Analysis") -> None:
        self._analysis = analysis
        self._buckets: dict[UUID | str, BucketT] = {}
        self.totals: BucketT | None = None

    def __iter__(self) -> Iterator[BucketT]:
        return iter(list(self._buckets.values()))

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, key: object) -> bool:
        return key in self._buckets

    def is_empty(self) -> bool:
        return not self._buckets

    def find(self, key: UUID | str) -> BucketT | None:
        return self._buckets.get(key)

    def _derive_from(
        self,
        source: "BucketList[BucketT]",
        slicer: Callable[[BucketHistory[Any]], BucketHistory[Any]],
    ) -> None:
        for bucket in source:
            derived = bucket.derive(self._analysis, slicer(bucket.history))
            if derived.is_active() or not derived.is_idle():
                self._buckets[derived.key] = derived  # type: ignore[assignment]

    def derive_as_of(self, source: "BucketList[BucketT]", on_date: date) -> None:
        self._derive_from(source, lambda history: BucketHistory.as_of_date(history, on_date))

    def derive_for_range(self, source: "BucketList[BucketT]", date_range: DateRange) -> None:
        self._derive_from(source, lambda history: BucketHistory.for_range(history, date_range))

    def _sort(self, key: Callable[[BucketT], Any]) -> None:
        self._buckets = dict(sorted(self._buckets.items(), key=lambda item: key(item[1])))
