# @TEST tests/test_searchable.py
# @TEST tests/test_integration.py

"""Search and sort augmentation for SQLAlchemy ``Select`` statements.

Usage::

    class User(SearchSortMixin, Base):
        __tablename__ = "users"
        __search_sort__ = {
            "search_columns": {"users.name": 10, "posts.title": 2},
            "sort_columns": ["users.name", "users.created_at"],
            "joins": {"posts": ["posts.user_id", "users.id"]},
        }

    stmt = User.search_sort(select(User.__table__), "jo hn", [{"prop": "users.name", "dir": "asc"}])
    rows = (await session.execute(stmt.limit(20))).all()
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, ClassVar

from sqlalchemy import Select, Table

from searchsort.config import get_settings
from searchsort.constants import JOINED_OPTION
from searchsort.dialects import DialectAdapter, get_dialect
from searchsort.joins import apply_grouping, apply_joins, grouping_columns
from searchsort.merge import is_joined, merge_queries
from searchsort.schema import SearchSortConfig, load_config, prefixed
from searchsort.scoring import ScoringPlan, build_fragments
from searchsort.sorting import apply_sort
from searchsort.synthesizer import filter_by_relevance, order_by_relevance, project
from searchsort.tokenizer import tokenize

logger = logging.getLogger(__name__)

Restriction = Callable[[Select], Select]


class SearchSorter:
    """Applies one table's search/sort declaration to statements.

    Holds only configuration; every call builds its own fragments and bind
    parameters, so one instance can serve concurrent callers.

    Args:
        table: The base table of the searched entity.
        config: Validated search/sort declaration.
        driver: Driver name; defaults to the configured driver.
        prefix: Table prefix; defaults to ``TABLE_PREFIX``.
        relevance_field: Alias of the relevance column; defaults to the
            declaration, then ``RELEVANCE_FIELD``.
    """

    def __init__(
        self,
        table: Table,
        config: SearchSortConfig,
        driver: str | None = None,
        prefix: str | None = None,
        relevance_field: str | None = None,
    ) -> None:
        settings = get_settings()
        self.table = table
        self.config = config
        self.dialect: DialectAdapter = get_dialect(driver if driver is not None else settings.driver)
        self.prefix = settings.TABLE_PREFIX if prefix is None else prefix
        self.relevance_field = relevance_field or config.relevance_field or settings.RELEVANCE_FIELD

    # ------------------------------------------------------------------
    # Declaration accessors
    # ------------------------------------------------------------------

    def search_columns(self) -> dict[str, float]:
        """Search columns with the table prefix applied, mapped to their weights."""
        return {prefixed(ref, self.prefix): weight for ref, weight in self.config.search_columns.items()}

    def sort_columns(self) -> list[str]:
        return list(self.config.sort_columns)

    def table_columns(self) -> list[str]:
        return list(self.config.table_columns)

    def default_threshold(self) -> float:
        """Mean configured weight: ``sum(weights) / count(columns)``."""
        columns = self.search_columns()
        return sum(columns.values()) / len(columns)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def add_joins(self, query: Select) -> Select:
        """Select the base table's columns, add the declared joins and group per entity."""
        joined = query.with_only_columns(*self.table.c)
        joined = apply_joins(joined, self.table, self.config, self.dialect, self.prefix)
        joined = apply_grouping(
            joined,
            grouping_columns(self.table, self.config, self.search_columns(), self.dialect, self.prefix),
        )
        return joined.execution_options(**{JOINED_OPTION: True})

    def search(
        self,
        query: Select,
        text: str | None,
        apply_joins: bool = True,
        threshold: float | None = None,
        entire_text: bool = False,
        entire_text_only: bool = False,
        restriction: Restriction | None = None,
    ) -> Select:
        """Keep rows whose relevance reaches the threshold, best matches first.

        Args:
            query: The caller's statement on the base table.
            text: Free-text query. Blank text returns ``query`` unchanged.
            apply_joins: Add the declared joins and grouping first.
            threshold: Minimum relevance; defaults to :meth:`default_threshold`.
            entire_text: Also score the whole query as a phrase when it has
                more than one token.
            entire_text_only: Score only the whole query as a phrase.
            restriction: Callable applied to the scored subquery before merging.
        """
        if not text or not text.strip():
            return query

        if apply_joins:
            query = self.add_joins(query)

        plan = self._plan(text, entire_text, entire_text_only)
        if not plan.fragments:
            logger.debug("No scoring fragments for %r, leaving statement unfiltered", text)
            return query

        merged = self._merge_scored(query, plan, threshold, restriction)
        return order_by_relevance(merged, plan.fragments, self.relevance_field)

    def sort(self, query: Select, sorts: Iterable[Any] | None, apply_joins: bool = True) -> Select:
        """Order by the allow-listed columns of ``sorts``; an empty list returns ``query``."""
        sorts = list(sorts or ())
        if not sorts:
            return query

        if apply_joins:
            query = self.add_joins(query)
        return apply_sort(query, sorts, self.config.sort_columns, self.dialect, self.prefix)

    def search_sort(
        self,
        query: Select,
        text: str | None,
        sorts: Iterable[Any] | None,
        apply_joins: bool = True,
        threshold: float | None = None,
        entire_text: bool = False,
        entire_text_only: bool = False,
    ) -> Select:
        """Search, then sort; requested sorts take precedence over relevance."""
        sorts = list(sorts or ())
        if apply_joins:
            query = self.add_joins(query)

        fragments: tuple = ()
        if text and text.strip():
            plan = self._plan(text, entire_text, entire_text_only)
            fragments = plan.fragments
            if fragments:
                query = self._merge_scored(query, plan, threshold, None)

        query = apply_sort(query, sorts, self.config.sort_columns, self.dialect, self.prefix)
        return order_by_relevance(query, fragments, self.relevance_field)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _plan(self, text: str, entire_text: bool, entire_text_only: bool) -> ScoringPlan:
        return build_fragments(
            self.search_columns(),
            tokenize(text),
            text,
            self.dialect,
            entire_text=entire_text,
            entire_text_only=entire_text_only,
        )

    def _merge_scored(
        self,
        query: Select,
        plan: ScoringPlan,
        threshold: float | None,
        restriction: Restriction | None,
    ) -> Select:
        if threshold is None:
            threshold = plan.default_threshold
        elif threshold < 0:
            raise ValueError(f"threshold must be non-negative, got {threshold}")

        inner = query.with_only_columns(*self.table.c)
        if not is_joined(query):
            # max() needs one group per entity even without joins
            inner = apply_grouping(
                inner,
                grouping_columns(self.table, self.config, (), self.dialect, self.prefix, include_joined=False),
            )
        inner = project(inner, plan.fragments, self.relevance_field)
        inner = filter_by_relevance(inner, plan.fragments, threshold, self.dialect, self.relevance_field)
        if restriction is not None:
            inner = restriction(inner)

        return merge_queries(inner, query, self.table, self.relevance_field)


@functools.cache
def _config_for(model: type) -> SearchSortConfig:
    return load_config(getattr(model, "__search_sort__", None), model.__name__)


class SearchSortMixin:
    """Declarative mixin exposing search and sort as classmethods.

    The subclass declares ``__search_sort__`` (see :class:`SearchSortConfig`)
    and may set ``__relevance_field__``. The declaration is validated on first
    use and cached per class.
    """

    __search_sort__: ClassVar[Mapping[str, Any] | SearchSortConfig | None] = None
    __relevance_field__: ClassVar[str | None] = None

    @classmethod
    def search_sort_config(cls) -> SearchSortConfig:
        return _config_for(cls)

    @classmethod
    def search_sorter(cls, driver: str | None = None, prefix: str | None = None) -> SearchSorter:
        return SearchSorter(
            cls.__table__,  # type: ignore[attr-defined]
            cls.search_sort_config(),
            driver=driver,
            prefix=prefix,
            relevance_field=cls.__relevance_field__,
        )

    @classmethod
    def search(
        cls,
        query: Select,
        text: str | None,
        apply_joins: bool = True,
        threshold: float | None = None,
        entire_text: bool = False,
        entire_text_only: bool = False,
        restriction: Restriction | None = None,
        driver: str | None = None,
        prefix: str | None = None,
    ) -> Select:
        return cls.search_sorter(driver, prefix).search(
            query,
            text,
            apply_joins=apply_joins,
            threshold=threshold,
            entire_text=entire_text,
            entire_text_only=entire_text_only,
            restriction=restriction,
        )

    @classmethod
    def sort(
        cls,
        query: Select,
        sorts: Iterable[Any] | None,
        apply_joins: bool = True,
        driver: str | None = None,
        prefix: str | None = None,
    ) -> Select:
        return cls.search_sorter(driver, prefix).sort(query, sorts, apply_joins=apply_joins)

    @classmethod
    def search_sort(
        cls,
        query: Select,
        text: str | None,
        sorts: Iterable[Any] | None,
        apply_joins: bool = True,
        threshold: float | None = None,
        entire_text: bool = False,
        entire_text_only: bool = False,
        driver: str | None = None,
        prefix: str | None = None,
    ) -> Select:
        return cls.search_sorter(driver, prefix).search_sort(
            query,
            text,
            sorts,
            apply_joins=apply_joins,
            threshold=threshold,
            entire_text=entire_text,
            entire_text_only=entire_text_only,
        )

    @classmethod
    def add_joins(cls, query: Select, driver: str | None = None, prefix: str | None = None) -> Select:
        return cls.search_sorter(driver, prefix).add_joins(query)
