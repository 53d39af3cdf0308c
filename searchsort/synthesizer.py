"""Turns scoring fragments into the relevance column, filter and ordering."""

from __future__ import annotations

import functools
import logging
import operator
from collections.abc import Sequence

from sqlalchemy import Select, func, literal_column
from sqlalchemy.sql.elements import ColumnElement

from searchsort.dialects import DialectAdapter
from searchsort.scoring import ScoreFragment

logger = logging.getLogger(__name__)


def relevance_expression(fragments: Sequence[ScoreFragment]) -> ColumnElement:
    """Sum of every fragment's CASE expression, in emission order."""
    return functools.reduce(operator.add, (fragment.clause for fragment in fragments))


def format_threshold(threshold: float) -> str:
    """Fixed two-decimal text for the HAVING comparison."""
    return f"{float(threshold):.2f}"


def project(query: Select, fragments: Sequence[ScoreFragment], field: str) -> Select:
    """Add ``max(<sum of fragments>) AS field`` to the columns clause."""
    if not fragments:
        return query
    return query.add_columns(func.max(relevance_expression(fragments)).label(field))


def filter_by_relevance(
    query: Select,
    fragments: Sequence[ScoreFragment],
    threshold: float,
    dialect: DialectAdapter,
    field: str,
) -> Select:
    """Keep only groups whose relevance reaches ``threshold``.

    Dialects that cannot see the projected alias in HAVING get the whole
    summed expression again, so its bind parameters are rendered a second time.
    """
    if not fragments:
        return query

    if dialect.supports_alias_in_filter:
        comparator: ColumnElement = literal_column(field)
    else:
        comparator = relevance_expression(fragments)

    threshold_text = format_threshold(threshold)
    logger.debug("Filtering on %s >= %s", field, threshold_text)
    return query.having(comparator >= literal_column(threshold_text))


def order_by_relevance(query: Select, fragments: Sequence[ScoreFragment], field: str) -> Select:
    """Append ``ORDER BY field DESC``."""
    if not fragments:
        return query
    return query.order_by(literal_column(field).desc())
