# @TEST tests/test_sorting.py

"""Allow-listed ORDER BY clauses built from user sort requests."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from typing import Any

from pydantic import ValidationError
from sqlalchemy import Select

from searchsort.constants import SortDirection
from searchsort.dialects import DialectAdapter
from searchsort.joins import column_ref
from searchsort.schema import SortRequest

logger = logging.getLogger(__name__)


def parse_sort_request(entry: Any) -> SortRequest | None:
    """Return the entry as a SortRequest, or None if it is malformed."""
    if isinstance(entry, SortRequest):
        return entry
    if not entry:
        return None
    try:
        return SortRequest.model_validate(entry)
    except ValidationError:
        logger.debug("Dropping malformed sort entry %r", entry)
        return None


def valid_sort_requests(sorts: Iterable[Any], allow_list: Collection[str]) -> list[SortRequest]:
    """Keep only well-formed requests on allow-listed columns, in input order."""
    requests: list[SortRequest] = []
    for entry in sorts:
        request = parse_sort_request(entry)
        if request is None:
            continue
        if request.prop not in allow_list:
            logger.debug("Dropping sort on %r: not a sortable column", request.prop)
            continue
        requests.append(request)
    return requests


def apply_sort(
    query: Select,
    sorts: Iterable[Any],
    allow_list: Collection[str],
    dialect: DialectAdapter,
    prefix: str = "",
) -> Select:
    """Append one ORDER BY term per valid sort request.

    Invalid entries are skipped without aborting the rest of the list.
    The first valid entry becomes the primary sort key.
    """
    for request in valid_sort_requests(sorts, allow_list):
        column = column_ref(request.prop, dialect, prefix)
        query = query.order_by(column.asc() if request.dir == SortDirection.ASC else column.desc())
    return query
