"""Relevance-ranked multi-column search and allow-listed sorting for SQLAlchemy statements."""

from searchsort.config import Settings, get_settings
from searchsort.constants import MatchTier, SortDirection
from searchsort.dialects import DialectAdapter, get_dialect
from searchsort.merge import is_merged, merge_queries
from searchsort.rendering import RenderedQuery, render_query
from searchsort.schema import JoinSpec, SearchSortConfig, SearchSortConfigError, SortRequest, load_config
from searchsort.scoring import ScoreFragment, ScoringPlan, build_fragments
from searchsort.searchable import SearchSorter, SearchSortMixin
from searchsort.sorting import apply_sort
from searchsort.tokenizer import tokenize

__all__ = [
    "DialectAdapter",
    "JoinSpec",
    "MatchTier",
    "RenderedQuery",
    "ScoreFragment",
    "ScoringPlan",
    "SearchSortConfig",
    "SearchSortConfigError",
    "SearchSortMixin",
    "SearchSorter",
    "Settings",
    "SortDirection",
    "SortRequest",
    "apply_sort",
    "build_fragments",
    "get_dialect",
    "get_settings",
    "is_merged",
    "load_config",
    "merge_queries",
    "render_query",
    "tokenize",
]
