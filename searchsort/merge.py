# @TEST tests/test_merge.py

"""Composes a scored inner statement back into the caller's statement.

The inner statement becomes a subquery named after the base table and
every reference the outer statement makes to the base table is adapted to
that subquery. Filters, joins and selected columns written against the
base table therefore keep working unchanged, and the bind parameters of
the subquery render before those of the outer statement.
"""

from __future__ import annotations

import logging

from sqlalchemy import Select, Table, func
from sqlalchemy.sql.util import ClauseAdapter

from searchsort.constants import JOINED_OPTION, MERGED_OPTION

logger = logging.getLogger(__name__)


def is_joined(statement: Select) -> bool:
    """Whether the statement already carries the declared joins and grouping."""
    return bool(statement.get_execution_options().get(JOINED_OPTION, False))


def is_merged(statement: Select) -> bool:
    """Whether the statement already wraps a scored subquery.

    Session-level scoping hooks (``do_orm_execute`` listeners adding
    ``with_loader_criteria``) should skip merged statements: the subquery
    has already been scoped when it was built.
    """
    return bool(statement.get_execution_options().get(MERGED_OPTION, False))


def merge_queries(
    inner: Select,
    outer: Select,
    base_table: Table,
    relevance_field: str,
) -> Select:
    """Make ``inner`` the FROM source of ``outer``.

    Args:
        inner: Scored (and possibly joined and grouped) statement.
        outer: The caller's statement.
        base_table: Table replaced by the subquery in ``outer``.
        relevance_field: Name of the relevance column exposed by ``inner``.

    Returns:
        The outer statement reading from the subquery.
    """
    # Ordering and pagination belong to the outer statement
    subquery = inner.order_by(None).limit(None).offset(None).subquery(base_table.name)

    adapter = ClauseAdapter(subquery, adapt_from_selectables=[base_table])
    merged = adapter.traverse(outer)

    relevance = subquery.c.get(relevance_field)
    if is_joined(outer):
        # One row per entity: the subquery holds a row per joined search value
        # and the outer joins repeat each of them. No primary key to group on.
        base_columns = [column for column in subquery.c if column is not relevance]
        merged = merged.group_by(None).group_by(*base_columns)
        if relevance is not None:
            relevance = func.max(relevance).label(relevance_field)

    if relevance is not None and relevance_field not in merged.selected_columns:
        merged = merged.add_columns(relevance)

    logger.debug("Merged scored subquery into statement on %s", base_table.name)
    return merged.execution_options(**{MERGED_OPTION: True})
