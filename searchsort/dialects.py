# @TEST tests/test_dialects.py

"""Per-driver SQL facts used when building search and sort clauses.

Every difference between MySQL, PostgreSQL, SQL Server and the generic
fallback lives here. Other modules ask the adapter instead of comparing
driver names.
"""

from __future__ import annotations

import logging

from sqlalchemy.dialects.mssql.base import MSDialect
from sqlalchemy.dialects.mysql.base import MySQLDialect
from sqlalchemy.dialects.postgresql.base import PGDialect
from sqlalchemy.engine.default import DefaultDialect

logger = logging.getLogger(__name__)


class DialectAdapter:
    """Generic behaviour, also used for drivers that are not special-cased.

    Attributes:
        name: Canonical driver name.
        case_insensitive_operator: Pattern-match operator for lower-cased columns.
        supports_alias_in_filter: Whether HAVING may reference a projected alias.
        groups_by_all_columns: Whether grouping must list every selected base column
            instead of the primary key alone.
    """

    name: str = "default"
    case_insensitive_operator: str = "LIKE"
    supports_alias_in_filter: bool = False
    groups_by_all_columns: bool = False

    def quote_identifier(self, ref: str) -> str:
        """Quote each dot-separated segment of a column reference with backticks."""
        segments = (segment.replace("`", "``") for segment in ref.split("."))
        return ".".join(f"`{segment}`" for segment in segments)

    def sqlalchemy_dialect(self, paramstyle: str = "qmark") -> DefaultDialect:
        """Return a SQLAlchemy dialect instance for compiling statements."""
        return DefaultDialect(paramstyle=paramstyle)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class MySQLAdapter(DialectAdapter):
    name = "mysql"
    supports_alias_in_filter = True

    def sqlalchemy_dialect(self, paramstyle: str = "qmark") -> DefaultDialect:
        return MySQLDialect(paramstyle=paramstyle)


class PostgresAdapter(DialectAdapter):
    name = "pgsql"
    case_insensitive_operator = "ILIKE"

    def quote_identifier(self, ref: str) -> str:
        # Left unquoted so PostgreSQL folds identifiers to lower case
        return ref

    def sqlalchemy_dialect(self, paramstyle: str = "qmark") -> DefaultDialect:
        return PGDialect(paramstyle=paramstyle)


class SQLServerAdapter(DialectAdapter):
    name = "sqlsrv"
    groups_by_all_columns = True

    def sqlalchemy_dialect(self, paramstyle: str = "qmark") -> DefaultDialect:
        return MSDialect(paramstyle=paramstyle)


_ADAPTERS: dict[str, DialectAdapter] = {
    adapter.name: adapter
    for adapter in (DialectAdapter(), MySQLAdapter(), PostgresAdapter(), SQLServerAdapter())
}

# SQLAlchemy backend names -> canonical driver names
_ALIASES: dict[str, str] = {
    "mariadb": "mysql",
    "postgres": "pgsql",
    "postgresql": "pgsql",
    "mssql": "sqlsrv",
}


def get_dialect(driver: str | None) -> DialectAdapter:
    """Return the adapter for a driver name.

    Accepts canonical names (``mysql``, ``pgsql``, ``sqlsrv``) as well as
    SQLAlchemy backend names (``postgresql``, ``mssql``, ``mariadb``) and
    full driver strings such as ``postgresql+asyncpg``. Anything else gets
    the generic adapter.
    """
    key = (driver or "").lower().split("+", 1)[0]
    key = _ALIASES.get(key, key)
    adapter = _ADAPTERS.get(key)
    if adapter is None:
        logger.debug("No dialect adapter for driver %r, using generic behaviour", driver)
        return _ADAPTERS["default"]
    return adapter
