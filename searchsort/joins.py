# @TEST tests/test_joins.py

"""Declared left joins and the GROUP BY that keeps one row per base entity."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import Select, Table, and_, literal, literal_column, table
from sqlalchemy.sql.elements import ColumnElement

from searchsort.dialects import DialectAdapter
from searchsort.schema import SearchSortConfig, prefixed

logger = logging.getLogger(__name__)


def column_ref(ref: str, dialect: DialectAdapter, prefix: str = "") -> ColumnElement:
    """Literal column for a configured ``table.column`` reference."""
    return literal_column(dialect.quote_identifier(prefixed(ref, prefix)))


def apply_joins(
    query: Select,
    base_table: Table,
    config: SearchSortConfig,
    dialect: DialectAdapter,
    prefix: str = "",
) -> Select:
    """Left-join every declared table onto the base table.

    The optional extra equality pair is added to the ON clause with its
    value as a bound parameter.
    """
    if not config.joins:
        return query

    source = base_table
    for name, spec in config.joins.items():
        onclause = column_ref(spec.left_key, dialect, prefix) == column_ref(spec.right_key, dialect, prefix)
        extra = spec.extra_condition
        if extra is not None:
            extra_column, extra_value = extra
            onclause = and_(onclause, column_ref(extra_column, dialect, prefix) == literal(extra_value))
        source = source.outerjoin(table(f"{prefix}{name}"), onclause)

    logger.debug("Joined %s onto %s", ", ".join(config.joins), base_table.name)
    return query.select_from(source)


def joined_search_columns(
    config: SearchSortConfig,
    search_columns: Iterable[str],
    dialect: DialectAdapter,
    prefix: str = "",
) -> list[ColumnElement]:
    """Search columns that belong to a joined table, matched by table-name substring."""
    joined_tables = [f"{prefix}{name}" for name in config.joins]
    refs = [ref for ref in search_columns if any(name in ref for name in joined_tables)]
    return [literal_column(dialect.quote_identifier(ref)) for ref in dict.fromkeys(refs)]


def grouping_columns(
    base_table: Table,
    config: SearchSortConfig,
    search_columns: Iterable[str],
    dialect: DialectAdapter,
    prefix: str = "",
    include_joined: bool = True,
) -> list[ColumnElement]:
    """Columns for the deduplicating GROUP BY.

    An explicit ``group_by`` declaration is used verbatim. Otherwise the
    base table's primary key, or every base column on dialects that demand
    it, followed by the joined-table search columns.
    """
    if config.group_by:
        return [column_ref(ref, dialect, prefix) for ref in config.group_by]

    columns: list[ColumnElement]
    if dialect.groups_by_all_columns:
        columns = [column_ref(ref, dialect, prefix) for ref in config.table_columns] or list(base_table.c)
    else:
        columns = list(base_table.primary_key.columns) or list(base_table.c)

    if include_joined:
        columns.extend(joined_search_columns(config, search_columns, dialect, prefix))
    return columns


def apply_grouping(query: Select, columns: Iterable[ColumnElement]) -> Select:
    return query.group_by(*columns)
