"""Query state for filtering an insight table with the smart query syntax."""
from __future__ import annotations

from typing import Generic, Optional, Sequence, TypeVar

from featuredash.models import ParsedQuery
from featuredash.smart_query import filter_by_query, parse_query

T = TypeVar("T")


class TableFilter(Generic[T]):
    """Holds the typed query for one table and the rows it keeps.

    ``searchable_fields`` are the dot-paths checked by terms without a field,
    e.g. ``["name", "owner", "stats.lines_count"]``.
    """

    def __init__(
        self,
        data: Sequence[T],
        searchable_fields: Optional[Sequence[str]] = None,
        initial_query: str = "",
    ):
        self._data = data
        self._searchable_fields = list(searchable_fields) if searchable_fields is not None else None
        self._query = initial_query
        self._parsed_query = parse_query(initial_query)
        self._filtered: Optional[Sequence[T]] = None

    @property
    def query(self) -> str:
        return self._query

    @property
    def parsed_query(self) -> ParsedQuery:
        return self._parsed_query

    @property
    def filtered_data(self) -> Sequence[T]:
        if not self._parsed_query.groups:
            return self._data
        if self._filtered is None:
            self._filtered = filter_by_query(self._data, self._parsed_query, self._searchable_fields)
        return self._filtered

    def set_query(self, query: str) -> None:
        if query == self._query:
            return
        self._query = query
        self._parsed_query = parse_query(query)
        self._filtered = None

    def clear_query(self) -> None:
        self.set_query("")

    def set_data(self, data: Sequence[T]) -> None:
        self._data = data
        self._filtered = None


def use_table_filter(
    data: Sequence[T],
    searchable_fields: Optional[Sequence[str]] = None,
    initial_query: str = "",
) -> TableFilter[T]:
    return TableFilter(data, searchable_fields, initial_query)
