"""Typed attribute maps holding the state of a bucket."""

from collections.abc import Iterable, Iterator, Mapping
from decimal import Decimal
from typing import Any, Generic, TypeVar

from household_ledger.analysis.attributes import BucketAttribute
from household_ledger.domain.value_objects import Money, Units

AttrT = TypeVar("AttrT", bound=BucketAttribute)


def zero_like(value: Any) -> Any:
    """Zero of the same type (and currency) as value."""
    if isinstance(value, Money):
        return Money.zero(value.currency)
    if isinstance(value, Units):
        return Units.zero()
    if isinstance(value, Decimal):
        return Decimal("0")
    return 0


def is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (Money, Units)):
        return value.is_zero
    if isinstance(value, (Decimal, int)):
        return value == 0
    return False


class BucketValues(Generic[AttrT]):
    """Mapping of attribute to Money, Units, ratio, count or enum value.

    Counters accumulate through adjust(); everything else is set. The
    primary attributes decide whether the values are active.
    """

    def __init__(
        self,
        primary: Iterable[AttrT] = (),
        values: Mapping[AttrT, Any] | None = None,
    ) -> None:
        self._primary = tuple(primary)
        self._values: dict[AttrT, Any] = dict(values or {})

    def set_value(self, attr: AttrT, value: Any) -> None:
        if value is None:
            self._values.pop(attr, None)
        else:
            self._values[attr] = value

    def get_value(self, attr: AttrT) -> Any | None:
        return self._values.get(attr)

    def get_money_value(self, attr: AttrT) -> Money | None:
        value = self._values.get(attr)
        if value is not None and not isinstance(value, Money):
            raise TypeError(f"{attr.name} holds {type(value).__name__}, not Money")
        return value

    def get_units_value(self, attr: AttrT) -> Units | None:
        value = self._values.get(attr)
        if value is not None and not isinstance(value, Units):
            raise TypeError(f"{attr.name} holds {type(value).__name__}, not Units")
        return value

    def get_ratio_value(self, attr: AttrT) -> Decimal | None:
        value = self._values.get(attr)
        if value is not None and not isinstance(value, Decimal):
            raise TypeError(f"{attr.name} holds {type(value).__name__}, not a ratio")
        return value

    def adjust(self, attr: AttrT, delta: Any) -> None:
        """Add delta to a counter, initialising it when absent."""
        current = self._values.get(attr)
        self._values[attr] = delta if current is None else current + delta

    def snapshot(
        self, *, counters_only: bool = False, include_transient: bool = True
    ) -> "BucketValues[AttrT]":
        """Independent copy, optionally restricted to counters or without transients."""
        values = {
            attr: value
            for attr, value in self._values.items()
            if (attr.is_counter or not counters_only)
            and (include_transient or not attr.is_transient)
        }
        return BucketValues(self._primary, values)

    def adjust_to_base_values(self, base: "BucketValues[AttrT]") -> None:
        """Subtract the base from every rebased counter."""
        for attr, base_value in base.items():
            if attr.is_rebased:
                current = self._values.get(attr, zero_like(base_value))
                self._values[attr] = current - base_value

    def reset_base_values(self) -> None:
        """Zero every rebased counter."""
        for attr, value in list(self._values.items()):
            if attr.is_rebased:
                self._values[attr] = zero_like(value)

    def is_active(self) -> bool:
        return any(not is_zero(self._values.get(attr)) for attr in self._primary)

    def items(self) -> Iterator[tuple[AttrT, Any]]:
        return iter(list(self._values.items()))

    def __contains__(self, attr: object) -> bool:
        return attr in self._values

    def __iter__(self) -> Iterator[AttrT]:
        return iter(list(self._values))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BucketValues):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        inner = ", ".join(f"{attr.name}={value}" for attr, value in self._values.items())
        return f"BucketValues({inner})"
