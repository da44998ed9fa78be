"""List-query engine: one predicate shared by the count query and the page query."""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence

from sqlalchemy import and_, distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.core.schemas import PaginationMeta

from .params import ListParams

LIKE_ESCAPE = "\\"

FilterBuilder = Callable[[ListParams], Iterable[Optional[ColumnElement]]]


@dataclass(frozen=True)
class ListResource:
    """What to select and from where for one listing.

    from_clause carries every join the predicate may touch, so the count and
    the page are always computed over the same rows. distinct_key switches both
    queries to distinct semantics (COUNT(DISTINCT key) / SELECT DISTINCT).
    """

    entities: Sequence[Any]
    from_clause: Any
    order_column: Any
    tiebreak_column: Any = None
    searchable: Sequence[Any] = ()
    distinct_key: Any = None


@dataclass
class ListPage:
    rows: List[Any]
    pagination: PaginationMeta


def escape_like(term: str) -> str:
    """Escape LIKE metacharacters so the term matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains(column, term: str, escape: bool = False) -> ColumnElement:
    """Case-insensitive substring match."""
    if escape:
        return column.ilike(f"%{escape_like(term)}%", escape=LIKE_ESCAPE)
    return column.ilike(f"%{term}%")


def search_clause(columns: Sequence[Any], term: Optional[str]) -> Optional[ColumnElement]:
    if not term or not columns:
        return None
    return or_(*(contains(col, term) for col in columns))


def combine(conditions: Iterable[Optional[ColumnElement]]) -> Optional[ColumnElement]:
    """AND the active conditions. None when nothing is active, so no WHERE clause is emitted."""
    active = [c for c in conditions if c is not None]
    if not active:
        return None
    if len(active) == 1:
        return active[0]
    return and_(*active)


def build_predicate(
    resource: ListResource,
    params: ListParams,
    filters: Optional[FilterBuilder] = None,
) -> Optional[ColumnElement]:
    conditions: List[Optional[ColumnElement]] = [search_clause(resource.searchable, params.search)]
    if filters is not None:
        conditions.extend(filters(params))
    return combine(conditions)


def total_pages(total: int, limit: int) -> int:
    if total <= 0 or limit <= 0:
        return 0
    return (total + limit - 1) // limit


def count_statement(resource: ListResource, predicate: Optional[ColumnElement]):
    if resource.distinct_key is not None:
        stmt = select(func.count(distinct(resource.distinct_key)))
    else:
        stmt = select(func.count())
    stmt = stmt.select_from(resource.from_clause)
    if predicate is not None:
        stmt = stmt.where(predicate)
    return stmt


def page_statement(resource: ListResource, predicate: Optional[ColumnElement], params: ListParams):
    stmt = select(*resource.entities).select_from(resource.from_clause)
    if predicate is not None:
        stmt = stmt.where(predicate)
    if resource.distinct_key is not None:
        stmt = stmt.distinct()
    order = [resource.order_column.desc()]
    if resource.tiebreak_column is not None:
        order.append(resource.tiebreak_column.desc())
    return stmt.order_by(*order).limit(params.limit).offset(params.offset)


async def run_list_query(
    db: AsyncSession,
    resource: ListResource,
    params: ListParams,
    filters: Optional[FilterBuilder] = None,
) -> ListPage:
    """
    Execute the count and the page query for a listing.

    Rows are ORM instances when a single entity is selected, otherwise Row
    tuples in the order of resource.entities.
    """
    predicate = build_predicate(resource, params, filters)

    total_result = await db.execute(count_statement(resource, predicate))
    total = int(total_result.scalar() or 0)

    result = await db.execute(page_statement(resource, predicate, params))
    if len(resource.entities) == 1:
        rows = list(result.scalars().all())
    else:
        rows = list(result.all())

    return ListPage(
        rows=rows,
        pagination=PaginationMeta(
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=total_pages(total, params.limit),
        ),
    )
