"""Smart query language for the insight tables.

GitHub-like filter syntax:

- ``field:value``    substring match (case-insensitive)
- ``field:>value``   greater than (also ``<``, ``>=``, ``<=``)
- ``field:!=value``  negated match
- ``"quoted value"`` phrase search across the searchable fields
- ``a AND b``        both must match
- ``a OR b``         either must match
- ``stats.lines_count:>1000`` dot-paths reach into nested records

Examples::

    owner:john AND lines:>1000
    name:feature1 OR name:feature2
    "react component" AND owner:jane

Grouping is a single left-to-right pass without parentheses or precedence
climbing. A term followed by ``OR`` opens an OR group together with the
next terms; ``AND`` (or the end of the query) closes the current group, and
all groups must match.
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterable, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel

from featuredash.models import (
    ComparisonOperator,
    FilterCondition,
    LogicalOperator,
    ParsedQuery,
    QueryGroup,
)

T = TypeVar("T")

_QUOTE_CHARS = ('"', "'")
_SURROUNDING_QUOTES_RE = re.compile(r"^[\"']|[\"']\Z")
_EXPONENT_RE = re.compile(r"e([+-])0*(\d)")
# Leading numeric prefix, so "100px" compares as 100.
_NUMBER_PREFIX_RE = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# Longest prefixes first so ">=" is not read as ">".
_OPERATOR_PREFIXES = (
    (">=", ComparisonOperator.GE),
    ("<=", ComparisonOperator.LE),
    ("!=", ComparisonOperator.NE),
    (">", ComparisonOperator.GT),
    ("<", ComparisonOperator.LT),
)


# ── Parsing ────────────────────────────────────────────────────────

def tokenize(query: str) -> list[str]:
    """Split on whitespace outside of quotes; quote characters are kept."""
    tokens: list[str] = []
    current = ""
    quote_char = ""

    for char in query:
        if not quote_char and char in _QUOTE_CHARS:
            quote_char = char
            current += char
        elif quote_char and char == quote_char:
            quote_char = ""
            current += char
        elif not quote_char and char.isspace():
            if current:
                tokens.append(current)
                current = ""
        else:
            current += char

    if current:
        tokens.append(current)
    return tokens


def _strip_quotes(value: str) -> str:
    return _SURROUNDING_QUOTES_RE.sub("", value)


def _number_to_text(number: float) -> str:
    """Canonical text of a number, the way a JSON/JS number prints."""
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    return _EXPONENT_RE.sub(r"e\1\2", repr(number))


def _literal_number(text: str) -> Optional[Union[int, float]]:
    """Number for ``text`` only when it prints back to exactly the same text."""
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number) or _number_to_text(number) != text:
        return None
    return int(number) if number.is_integer() else number


def parse_condition(token: str) -> FilterCondition:
    """Parse one token such as ``owner:john``, ``lines:>100`` or ``"some phrase"``."""
    field, sep, value_text = token.partition(":")
    if not sep:
        return FilterCondition(operator=ComparisonOperator.EQ, value=_strip_quotes(token), raw=token)

    operator = ComparisonOperator.EQ
    for prefix, candidate in _OPERATOR_PREFIXES:
        if value_text.startswith(prefix):
            operator = candidate
            value_text = value_text[len(prefix):]
            break

    clean_value = _strip_quotes(value_text)
    number = _literal_number(clean_value)
    return FilterCondition(
        field=field,
        operator=operator,
        value=clean_value if number is None else number,
        raw=token,
    )


def parse_query(query: str) -> ParsedQuery:
    """Parse a query string into AND-combined groups of conditions."""
    trimmed = query.strip()
    if not trimmed:
        return ParsedQuery(groups=[], raw_query=query)

    groups: list[QueryGroup] = []
    current = QueryGroup(operator=LogicalOperator.AND)

    for token in tokenize(trimmed):
        keyword = token.upper()
        if keyword == "AND":
            if current.conditions:
                groups.append(current)
                current = QueryGroup(operator=LogicalOperator.AND)
        elif keyword == "OR":
            if not current.conditions:
                current.operator = LogicalOperator.OR
            elif current.operator == LogicalOperator.AND:
                # The term left of OR belongs to the new OR group.
                left = current.conditions.pop()
                if current.conditions:
                    groups.append(current)
                current = QueryGroup(conditions=[left], operator=LogicalOperator.OR)
        else:
            current.conditions.append(parse_condition(token))

    if current.conditions:
        groups.append(current)

    return ParsedQuery(groups=groups, raw_query=query)


# ── Evaluation ─────────────────────────────────────────────────────

_SCALAR_TYPES = (str, bytes, int, float, bool)


def get_nested_value(obj: Any, path: str) -> Any:
    """Resolve a dot-path on mappings, sequences, models or plain objects."""
    value = obj
    for key in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(key)
        elif isinstance(value, (list, tuple)):
            if not key.isdigit() or int(key) >= len(value):
                return None
            value = value[int(key)]
        elif isinstance(value, _SCALAR_TYPES) or key.startswith("_"):
            return None
        else:
            value = getattr(value, key, None)
    return value


def to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return to_text(value.value)
    if isinstance(value, float) and math.isfinite(value):
        return _number_to_text(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else to_text(item) for item in value)
    if isinstance(value, (Mapping, BaseModel)):
        return ""
    return str(value)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMBER_PREFIX_RE.match(value)
        if match is None:
            return None
        number = float(match.group())
    else:
        return None
    return number if math.isfinite(number) else None


def compare_values(item_value: Any, filter_value: Union[str, int, float, None], operator: ComparisonOperator) -> bool:
    if item_value is None:
        return operator == ComparisonOperator.NE and filter_value is not None

    item_num = _to_number(item_value)
    filter_num = _to_number(filter_value)
    if item_num is not None and filter_num is not None:
        if operator == ComparisonOperator.EQ:
            return item_num == filter_num
        if operator == ComparisonOperator.NE:
            return item_num != filter_num
        if operator == ComparisonOperator.GT:
            return item_num > filter_num
        if operator == ComparisonOperator.LT:
            return item_num < filter_num
        if operator == ComparisonOperator.GE:
            return item_num >= filter_num
        if operator == ComparisonOperator.LE:
            return item_num <= filter_num

    item_str = to_text(item_value).lower()
    filter_str = to_text(filter_value).lower()
    if operator == ComparisonOperator.EQ:
        return filter_str in item_str
    if operator == ComparisonOperator.NE:
        return filter_str not in item_str
    if operator == ComparisonOperator.GT:
        return item_str > filter_str
    if operator == ComparisonOperator.LT:
        return item_str < filter_str
    if operator == ComparisonOperator.GE:
        return item_str >= filter_str
    if operator == ComparisonOperator.LE:
        return item_str <= filter_str
    return False


def _top_level_fields(item: Any) -> list[str]:
    if isinstance(item, Mapping):
        return [str(key) for key in item.keys()]
    if isinstance(item, BaseModel):
        return [*type(item).model_fields.keys(), *(item.model_extra or {}).keys()]
    return [key for key in vars(item) if not key.startswith("_")] if hasattr(item, "__dict__") else []


def apply_condition(item: Any, condition: FilterCondition, searchable_fields: Optional[Sequence[str]] = None) -> bool:
    if condition.field:
        value = get_nested_value(item, condition.field)
        return compare_values(value, condition.value, condition.operator)

    fields = searchable_fields if searchable_fields is not None else _top_level_fields(item)
    return any(
        compare_values(get_nested_value(item, str(field)), condition.value, condition.operator)
        for field in fields
    )


def _matches_group(item: Any, group: QueryGroup, searchable_fields: Optional[Sequence[str]]) -> bool:
    if group.operator == LogicalOperator.OR:
        return any(apply_condition(item, condition, searchable_fields) for condition in group.conditions)
    return all(apply_condition(item, condition, searchable_fields) for condition in group.conditions)


def filter_by_query(
    items: Sequence[T],
    parsed_query: ParsedQuery,
    searchable_fields: Optional[Sequence[str]] = None,
) -> Sequence[T]:
    """Items satisfying every group of ``parsed_query``.

    An empty query returns ``items`` itself.
    """
    if not parsed_query.groups:
        return items
    return [
        item
        for item in items
        if all(_matches_group(item, group, searchable_fields) for group in parsed_query.groups)
    ]


# ── Autocomplete ───────────────────────────────────────────────────

def _as_mapping(obj: Any) -> Optional[Mapping]:
    if isinstance(obj, Mapping):
        return obj
    if isinstance(obj, BaseModel):
        return {name: getattr(obj, name) for name in _top_level_fields(obj)}
    return None


def extract_fields(items: Iterable[Any], max_depth: int = 2) -> list[str]:
    """Sorted dot-paths found on the first few items, for query autocomplete.

    Nested records are listed and descended into up to ``max_depth`` levels;
    lists and missing values are skipped.
    """
    fields: set[str] = set()

    def _extract(obj: Any, prefix: str, depth: int) -> None:
        if depth >= max_depth:
            return
        mapping = _as_mapping(obj)
        if mapping is None:
            return
        for key, value in mapping.items():
            field_path = f"{prefix}.{key}" if prefix else str(key)
            if _as_mapping(value) is not None:
                fields.add(field_path)
                _extract(value, field_path, depth + 1)
            elif value is not None and not isinstance(value, (list, tuple, set)):
                fields.add(field_path)

    for index, item in enumerate(items):
        if index >= 5:
            break
        _extract(item, "", 0)

    return sorted(fields)
