"""Sorting for the insight tables."""
from __future__ import annotations

from functools import cmp_to_key
from typing import Any, Generic, Optional, Sequence, TypeVar, Union

from featuredash.date_utils import to_epoch
from featuredash.models import SortConfig, SortDirection
from featuredash.smart_query import get_nested_value, to_text

T = TypeVar("T")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare_values(a: Any, b: Any, direction: SortDirection) -> int:
    """Compare two cell values: missing, then dates, then numbers, then text.

    Missing values go last when ascending and first when descending.
    """
    ascending = direction == SortDirection.ASC
    if a is None and b is None:
        return 0
    if a is None:
        return 1 if ascending else -1
    if b is None:
        return -1 if ascending else 1

    epoch_a = to_epoch(a)
    epoch_b = to_epoch(b)
    if epoch_a is not None and epoch_b is not None:
        left, right = epoch_a, epoch_b
    elif _is_number(a) and _is_number(b):
        left, right = a, b
    else:
        left, right = to_text(a).lower(), to_text(b).lower()

    if left < right:
        return -1 if ascending else 1
    if left > right:
        return 1 if ascending else -1
    return 0


def sort_items(data: Sequence[T], field: str, direction: Union[SortDirection, str]) -> list[T]:
    """Return a new list sorted on the dot-path ``field``; ties keep input order."""
    direction = SortDirection(direction)
    return sorted(
        data,
        key=cmp_to_key(
            lambda a, b: compare_values(get_nested_value(a, field), get_nested_value(b, field), direction)
        ),
    )


class TableSort(Generic[T]):
    """Tri-state sort state for one table.

    Requesting the same field cycles ascending, descending, then back to the
    input order; a different field starts again at ascending.
    """

    def __init__(self, data: Sequence[T], default_sort: Optional[SortConfig] = None):
        self._data = data
        self._sort_config = default_sort
        self._cache: Optional[list[T]] = None

    @property
    def sort_config(self) -> Optional[SortConfig]:
        return self._sort_config

    @property
    def sorted_data(self) -> Sequence[T]:
        if self._sort_config is None:
            return self._data
        if self._cache is None:
            self._cache = sort_items(self._data, self._sort_config.field, self._sort_config.direction)
        return self._cache

    def set_data(self, data: Sequence[T]) -> None:
        self._data = data
        self._cache = None

    def request_sort(self, field: str) -> None:
        direction: Optional[SortDirection] = SortDirection.ASC
        current = self._sort_config
        if current is not None and current.field == field:
            if current.direction == SortDirection.ASC:
                direction = SortDirection.DESC
            elif current.direction == SortDirection.DESC:
                direction = None

        self._sort_config = SortConfig(field=field, direction=direction) if direction else None
        self._cache = None

    def clear_sort(self) -> None:
        self._sort_config = None
        self._cache = None


def use_table_sort(data: Sequence[T], default_sort: Optional[SortConfig] = None) -> TableSort[T]:
    return TableSort(data, default_sort)
