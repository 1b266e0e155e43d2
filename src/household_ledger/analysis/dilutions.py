"""Stock dilution events and dilution-adjusted prices."""

from bisect import bisect_right
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from household_ledger.domain.assets import Security
from household_ledger.domain.market_data import PriceHistory
from household_ledger.domain.value_objects import Money
from household_ledger.exceptions import PriceNotFoundError


@dataclass(frozen=True, slots=True)
class DilutionEvent:
    event_date: date
    factor: Decimal


class DilutionEventMap:
    """Chronological dilution factors per security."""

    def __init__(self) -> None:
        self._events: dict[UUID, list[DilutionEvent]] = defaultdict(list)

    def record(self, security: Security, event_date: date, factor: Decimal) -> None:
        events = self._events[security.id]
        index = bisect_right([event.event_date for event in events], event_date)
        events.insert(index, DilutionEvent(event_date, factor))

    def events_for(self, security: Security) -> tuple[DilutionEvent, ...]:
        return tuple(self._events.get(security.id, ()))

    def has_dilution(self, security: Security) -> bool:
        return bool(self._events.get(security.id))

    def get_dilution_factor(self, security: Security, after: date, upto: date) -> Decimal:
        """Product of the factors of events in (after, upto]."""
        factor = Decimal("1")
        for event in self._events.get(security.id, ()):
            if after < event.event_date <= upto:
                factor *= event.factor
        return factor

    def as_of(self, on_date: date) -> "DilutionEventMap":
        """Copy holding only the events on or before on_date."""
        copy = DilutionEventMap()
        for security_id, events in self._events.items():
            kept = [event for event in events if event.event_date <= on_date]
            if kept:
                copy._events[security_id] = kept
        return copy

    def __len__(self) -> int:
        return sum(len(events) for events in self._events.values())


class DilutedPriceMap:
    """Latest recorded price, scaled by dilutions that happened since it was recorded."""

    def __init__(self, prices: PriceHistory, dilutions: DilutionEventMap) -> None:
        self._prices = prices
        self._dilutions = dilutions

    def get_price_for_date(self, security: Security, on_date: date) -> Money:
        record = self._prices.get_latest(security.id, on_date)
        if record is None:
            raise PriceNotFoundError(security.name, on_date)
        factor = self._dilutions.get_dilution_factor(security, record.price_date, on_date)
        if factor == 1:
            return record.price
        return Money(record.price.amount * factor, record.price.currency)

    def get_prices_for_range(self, security: Security, start: date, end: date) -> tuple[Money, Money]:
        return self.get_price_for_date(security, start), self.get_price_for_date(security, end)
