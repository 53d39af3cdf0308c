"""Statement rendering with positional placeholders."""

from __future__ import annotations

from typing import Any, NamedTuple

from sqlalchemy.sql.expression import ClauseElement

from searchsort.config import get_settings
from searchsort.dialects import DialectAdapter, get_dialect


class RenderedQuery(NamedTuple):
    """SQL text with ``?`` placeholders and the bindings in placeholder order."""

    sql: str
    bindings: list[Any]


def render_query(statement: ClauseElement, driver: str | DialectAdapter | None = None) -> RenderedQuery:
    """Compile a statement for a driver's SQLAlchemy dialect.

    Args:
        statement: Any SQLAlchemy statement.
        driver: Driver name or adapter; defaults to the configured driver.
    """
    if isinstance(driver, DialectAdapter):
        dialect = driver
    else:
        dialect = get_dialect(driver if driver is not None else get_settings().driver)

    compiled = statement.compile(dialect=dialect.sqlalchemy_dialect(paramstyle="qmark"))
    params = compiled.params
    bindings = [params[name] for name in compiled.positiontup or ()]
    return RenderedQuery(sql=str(compiled), bindings=bindings)
