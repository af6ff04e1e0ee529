"""Translate untrusted list-endpoint query parameters into a query spec.

Each stage reads only the keys it owns, so the stages can run in any order and
their fragments are merged into one :class:`QuerySpec`::

    price[gte]=100&sort=-price&page=2&limit=5

becomes a ``price >= 100`` predicate, a descending sort on ``price`` and a
page of five rows starting at offset five.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from tourdesk.core import errors

RESERVED_PARAMS = frozenset({"page", "sort", "limit", "fields"})
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100
MAX_LIMIT = 1000
# Keeps the computed offset inside a signed 64-bit integer.
MAX_PAGE = 2**63 // MAX_LIMIT
DEFAULT_EXCLUDED_FIELDS: tuple[str, ...] = ("version_id",)

_FILTER_KEY = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*)(?:\[(?P<operator>[^\[\]]*)\])?$")


class FilterOperator(str, enum.Enum):
    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


# Only comparison suffixes may be spelled out in a key; eq is the bare form.
_SUFFIX_OPERATORS = {
    FilterOperator.GT.value: FilterOperator.GT,
    FilterOperator.GTE.value: FilterOperator.GTE,
    FilterOperator.LT.value: FilterOperator.LT,
    FilterOperator.LTE.value: FilterOperator.LTE,
}


@dataclass(frozen=True)
class FilterPredicate:
    field: str
    operator: FilterOperator
    value: str


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Projection:
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = DEFAULT_EXCLUDED_FIELDS


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


DEFAULT_SORT: tuple[SortKey, ...] = (SortKey("created_at", descending=True),)


@dataclass(frozen=True)
class QuerySpec:
    filters: tuple[FilterPredicate, ...] = ()
    sort: tuple[SortKey, ...] = DEFAULT_SORT
    projection: Projection = field(default_factory=Projection)
    pagination: Pagination = field(default_factory=Pagination)


def _split_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def build_filters(params: Mapping[str, str]) -> tuple[FilterPredicate, ...]:
    """Turn non-reserved keys into predicates, rejecting unknown operators."""
    predicates: list[FilterPredicate] = []
    for key, value in params.items():
        if key in RESERVED_PARAMS:
            continue
        match = _FILTER_KEY.match(key)
        if match is None:
            raise errors.ValidationError(f"Invalid filter parameter: {key}")
        operator_name = match.group("operator")
        if operator_name is None:
            operator = FilterOperator.EQ
        else:
            try:
                operator = _SUFFIX_OPERATORS[operator_name]
            except KeyError as exc:
                raise errors.ValidationError(
                    f"Unsupported filter operator: {operator_name or '(empty)'}"
                ) from exc
        predicates.append(FilterPredicate(match.group("field"), operator, value))
    return tuple(predicates)


def build_sort(params: Mapping[str, str]) -> tuple[SortKey, ...]:
    keys: list[SortKey] = []
    for part in _split_list(params.get("sort")):
        descending = part.startswith("-")
        name = part.lstrip("-")
        if name:
            keys.append(SortKey(name, descending=descending))
    return tuple(keys) or DEFAULT_SORT


def build_projection(params: Mapping[str, str]) -> Projection:
    """Inclusion list from ``fields``; ``-name`` entries form an exclusion list."""
    parts = _split_list(params.get("fields"))
    if not parts:
        return Projection()
    excluded = [part[1:] for part in parts if part.startswith("-") and part[1:]]
    included = [part for part in parts if not part.startswith("-")]
    if excluded and included:
        raise errors.ValidationError("Projection cannot mix inclusion and exclusion")
    if excluded:
        return Projection(exclude=tuple(excluded))
    return Projection(include=tuple(included), exclude=())


def _positive_int(raw: str | None, default: int, ceiling: int) -> int:
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    if value < 1:
        return default
    return min(value, ceiling)


def build_pagination(params: Mapping[str, str]) -> Pagination:
    return Pagination(
        page=_positive_int(params.get("page"), DEFAULT_PAGE, MAX_PAGE),
        limit=_positive_int(params.get("limit"), DEFAULT_LIMIT, MAX_LIMIT),
    )


def build_query_spec(params: Mapping[str, str]) -> QuerySpec:
    """Run every stage over the raw parameters and merge the fragments."""
    return QuerySpec(
        filters=build_filters(params),
        sort=build_sort(params),
        projection=build_projection(params),
        pagination=build_pagination(params),
    )


__all__ = [
    "DEFAULT_EXCLUDED_FIELDS",
    "DEFAULT_LIMIT",
    "DEFAULT_PAGE",
    "DEFAULT_SORT",
    "MAX_LIMIT",
    "MAX_PAGE",
    "FilterOperator",
    "FilterPredicate",
    "Pagination",
    "Projection",
    "QuerySpec",
    "RESERVED_PARAMS",
    "SortKey",
    "build_filters",
    "build_pagination",
    "build_projection",
    "build_query_spec",
    "build_sort",
]
