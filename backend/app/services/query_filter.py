"""Translate listing query strings into SQLAlchemy filters, ordering and paging.

Supported syntax::

    ?industry=IT&average_rating[gte]=3&location[in]=UB,Darkhan
    &select=name,industry&sort=-average_rating,name&page=2&limit=10

``field=value`` is an equality test, ``field[op]=value`` uses one of the
comparison operators below. ``select``, ``sort``, ``page`` and ``limit`` are
reserved and never treated as filters.
"""

import operator
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from sqlalchemy.orm import Query

RESERVED_PARAMS = frozenset({"select", "sort", "page", "limit"})
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25
MAX_LIMIT = 100
# integer columns and OFFSET are signed 64-bit in SQLite and PostgreSQL
INT64_MAX = 2**63 - 1
DEFAULT_SORT = "-created_at"

_KEY_RE = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*)(?:\[(?P<op>[^\]]*)\])?$")


class QueryFilterError(ValueError):
    """Raised for query strings that cannot be turned into a query."""


class ComparisonOperator(str, Enum):
    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"


_SQL_OPERATORS: dict[ComparisonOperator, Callable[[Any, Any], Any]] = {
    ComparisonOperator.EQ: operator.eq,
    ComparisonOperator.GT: operator.gt,
    ComparisonOperator.GTE: operator.ge,
    ComparisonOperator.LT: operator.lt,
    ComparisonOperator.LTE: operator.le,
    ComparisonOperator.IN: lambda column, values: column.in_(values),
}


@dataclass
class FieldFilter:
    field: str
    op: ComparisonOperator
    value: Any


@dataclass
class ListQuery:
    filters: list[FieldFilter] = field(default_factory=list)
    select: Optional[list[str]] = None
    sort: list[tuple[str, bool]] = field(default_factory=list)  # (field, descending)
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def selects(self, name: str) -> bool:
        return self.select is None or name in self.select


def _columns(model, hidden: Iterable[str]) -> dict[str, Any]:
    hidden = set(hidden)
    return {c.key: c for c in model.__table__.columns if c.key not in hidden}


def _coerce(raw: str, column, field_name: str) -> Any:
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return raw
    try:
        if python_type is bool:
            lowered = raw.strip().lower()
            if lowered not in {"true", "false", "1", "0"}:
                raise ValueError(raw)
            return lowered in {"true", "1"}
        if python_type is datetime:
            return datetime.fromisoformat(raw.strip())
        if python_type is int:
            value = int(raw.strip())
            if not -INT64_MAX - 1 <= value <= INT64_MAX:
                raise ValueError(raw)
            return value
        if python_type is float:
            return float(raw.strip())
    except ValueError:
        raise QueryFilterError(f"Invalid value '{raw}' for field '{field_name}'")
    return raw


def _positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw) if raw is not None else default
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _split_fields(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_filter(key: str, raw_value: str, columns: dict[str, Any]) -> FieldFilter:
    match = _KEY_RE.match(key)
    if not match:
        raise QueryFilterError(f"Invalid filter parameter '{key}'")
    name = match.group("field")
    if name not in columns:
        raise QueryFilterError(f"Unknown filter field '{name}'")
    op_raw = match.group("op")
    if op_raw is None:
        op = ComparisonOperator.EQ
    else:
        try:
            op = ComparisonOperator(op_raw)
        except ValueError:
            raise QueryFilterError(f"Unknown operator '{op_raw}' for field '{name}'")
        if op is ComparisonOperator.EQ:
            # Equality is spelled without brackets only
            raise QueryFilterError(f"Unknown operator '{op_raw}' for field '{name}'")
    column = columns[name]
    if op is ComparisonOperator.IN:
        items = _split_fields(raw_value)
        if not items:
            raise QueryFilterError(f"Empty list for field '{name}'")
        value: Any = [_coerce(item, column, name) for item in items]
    else:
        value = _coerce(raw_value, column, name)
    return FieldFilter(field=name, op=op, value=value)


def parse_list_query(
    model,
    params: Iterable[tuple[str, str]],
    *,
    hidden: Iterable[str] = (),
    extra_select: Iterable[str] = (),
    default_sort: str = DEFAULT_SORT,
    default_limit: int = DEFAULT_LIMIT,
) -> ListQuery:
    """Build a ListQuery from ``(key, value)`` query pairs for ``model``.

    ``hidden`` columns can neither be filtered, selected nor sorted on.
    ``extra_select`` names non-column fields a client may select (e.g. an
    embedded relation).
    """
    columns = _columns(model, hidden)
    pairs = list(params)
    reserved: dict[str, str] = {}
    filters: list[FieldFilter] = []
    for key, value in pairs:
        if key in RESERVED_PARAMS:
            # last occurrence wins, like most query string parsers
            reserved[key] = value
            continue
        filters.append(parse_filter(key, value, columns))

    select = None
    if reserved.get("select"):
        select = _split_fields(reserved["select"])
        allowed = set(columns) | set(extra_select)
        unknown = [name for name in select if name not in allowed]
        if unknown:
            raise QueryFilterError(f"Unknown select field(s): {', '.join(unknown)}")

    sort: list[tuple[str, bool]] = []
    for item in _split_fields(reserved.get("sort") or default_sort):
        descending = item.startswith("-")
        name = item.lstrip("-+")
        if name not in columns:
            raise QueryFilterError(f"Unknown sort field '{name}'")
        sort.append((name, descending))

    page = _positive_int(reserved.get("page"), DEFAULT_PAGE)
    limit = min(_positive_int(reserved.get("limit"), default_limit), MAX_LIMIT)
    if (page - 1) * limit > INT64_MAX:
        raise QueryFilterError(f"Page {page} is out of range")

    return ListQuery(filters=filters, select=select, sort=sort, page=page, limit=limit)


def apply_filters(query: Query, model, list_query: ListQuery) -> Query:
    for f in list_query.filters:
        column = getattr(model, f.field)
        query = query.filter(_SQL_OPERATORS[f.op](column, f.value))
    return query


def apply_sort(query: Query, model, list_query: ListQuery) -> Query:
    order = []
    for name, descending in list_query.sort:
        column = getattr(model, name)
        order.append(column.desc() if descending else column.asc())
    if not any(name == "id" for name, _ in list_query.sort):
        # stable pages for rows sharing the sort key
        first_desc = list_query.sort[0][1] if list_query.sort else False
        order.append(model.id.desc() if first_desc else model.id.asc())
    return query.order_by(*order)


def apply_page(query: Query, list_query: ListQuery) -> Query:
    return query.offset(list_query.offset).limit(list_query.limit)


def pagination_links(list_query: ListQuery, total: int) -> dict[str, dict[str, int]]:
    """``next``/``prev`` descriptors, only present when such a page exists."""
    pagination: dict[str, dict[str, int]] = {}
    if list_query.page * list_query.limit < total:
        pagination["next"] = {"page": list_query.page + 1, "limit": list_query.limit}
    if list_query.offset > 0:
        pagination["prev"] = {"page": list_query.page - 1, "limit": list_query.limit}
    return pagination
