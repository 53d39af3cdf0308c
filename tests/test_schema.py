"""Tests for the search/sort declaration models.

Verifies parsing of the declaration mapping, join forms, fail-fast
errors and sort request validation.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from searchsort.constants import SortDirection
from searchsort.schema import (
    JoinSpec,
    SearchSortConfig,
    SearchSortConfigError,
    SortRequest,
    load_config,
    prefixed,
)

# ---------------------------------------------------------------------------
# 1. Declaration parsing
# ---------------------------------------------------------------------------


class TestSearchSortConfig:
    """SearchSortConfig validation."""

    def test_minimal_declaration(self):
        """Only search_columns is required."""
        config = SearchSortConfig.model_validate({"search_columns": {"users.name": 10}})
        assert config.search_columns == {"users.name": 10.0}
        assert config.sort_columns == []
        assert config.joins == {}
        assert config.group_by == []
        assert config.relevance_field is None

    def test_search_column_order_preserved(self):
        config = SearchSortConfig.model_validate(
            {"search_columns": {"users.name": 10, "users.email": 5, "posts.title": 2}}
        )
        assert list(config.search_columns) == ["users.name", "users.email", "posts.title"]

    def test_group_by_camel_case_alias(self):
        """Both groupBy and group_by are accepted."""
        camel = SearchSortConfig.model_validate({"search_columns": {"a.b": 1}, "groupBy": ["users.id"]})
        snake = SearchSortConfig.model_validate({"search_columns": {"a.b": 1}, "group_by": ["users.id"]})
        assert camel.group_by == snake.group_by == ["users.id"]

    def test_empty_search_columns_rejected(self):
        with pytest.raises(ValidationError):
            SearchSortConfig.model_validate({"search_columns": {}})

    def test_missing_search_columns_rejected(self):
        with pytest.raises(ValidationError):
            SearchSortConfig.model_validate({"sort_columns": ["users.name"]})

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError):
            SearchSortConfig.model_validate({"search_columns": {"users.name": -1}})

    @pytest.mark.parametrize("weight", [float("inf"), float("nan"), "inf"])
    def test_non_finite_weight_rejected(self, weight):
        """Weights are inlined as SQL numbers, so they must be finite."""
        with pytest.raises(ValidationError):
            SearchSortConfig.model_validate({"search_columns": {"users.name": weight}})

    @pytest.mark.parametrize("ref", ["users name", "users.name; DROP TABLE users", "1users.name", "users."])
    def test_malformed_reference_rejected(self, ref):
        """Column references must be plain dotted identifiers."""
        with pytest.raises(ValidationError):
            SearchSortConfig.model_validate({"search_columns": {ref: 1}})

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            SearchSortConfig.model_validate({"search_columns": {"a.b": 1}, "searchColumns": {}})

    def test_declaration_is_frozen(self):
        config = SearchSortConfig.model_validate({"search_columns": {"a.b": 1}})
        with pytest.raises(ValidationError):
            config.sort_columns = ["a.b"]


# ---------------------------------------------------------------------------
# 2. Join declarations
# ---------------------------------------------------------------------------


class TestJoinSpec:
    """JoinSpec accepts the compact list form and mappings."""

    def test_two_element_list(self):
        spec = JoinSpec.model_validate(["posts.user_id", "users.id"])
        assert spec.left_key == "posts.user_id"
        assert spec.right_key == "users.id"
        assert spec.extra_condition is None

    def test_four_element_list(self):
        """The extra pair adds an equality on the joined table."""
        spec = JoinSpec.model_validate(["posts.user_id", "users.id", "posts.status", "published"])
        assert spec.extra_condition == ("posts.status", "published")

    def test_numeric_extra_value_kept(self):
        spec = JoinSpec.model_validate(["posts.user_id", "users.id", "posts.visible", 1])
        assert spec.extra_condition == ("posts.visible", 1)

    def test_mapping_form(self):
        spec = JoinSpec.model_validate({"left_key": "posts.user_id", "right_key": "users.id"})
        assert spec.right_key == "users.id"

    @pytest.mark.parametrize("data", [["posts.user_id"], ["a.b", "c.d", "e.f"], []])
    def test_wrong_length_rejected(self, data):
        with pytest.raises(ValidationError):
            JoinSpec.model_validate(data)

    def test_half_extra_pair_rejected(self):
        with pytest.raises(ValidationError):
            JoinSpec.model_validate({"left_key": "a.b", "right_key": "c.d", "extra_column": "a.flag"})

    def test_joins_inside_declaration(self):
        config = SearchSortConfig.model_validate(
            {
                "search_columns": {"users.name": 10},
                "joins": {"posts": ["posts.user_id", "users.id"]},
            }
        )
        assert isinstance(config.joins["posts"], JoinSpec)


# ---------------------------------------------------------------------------
# 3. Fail-fast loading
# ---------------------------------------------------------------------------


class TestLoadConfig:
    """load_config wraps every problem in SearchSortConfigError."""

    @pytest.mark.parametrize("raw", [None, {}, []])
    def test_missing_declaration(self, raw):
        with pytest.raises(SearchSortConfigError, match="Widget is misconfigured"):
            load_config(raw, "Widget")

    def test_invalid_declaration(self):
        with pytest.raises(SearchSortConfigError) as exc_info:
            load_config({"search_columns": {}}, "Widget")
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_built_config_passed_through(self):
        config = SearchSortConfig.model_validate({"search_columns": {"a.b": 1}})
        assert load_config(config, "Widget") is config


# ---------------------------------------------------------------------------
# 4. Sort requests and prefixes
# ---------------------------------------------------------------------------


class TestSortRequest:
    @pytest.mark.parametrize("direction", ["asc", "ASC", "Asc"])
    def test_direction_case_insensitive(self, direction):
        request = SortRequest.model_validate({"prop": "users.name", "dir": direction})
        assert request.dir is SortDirection.ASC

    def test_unknown_direction_rejected(self):
        with pytest.raises(ValidationError):
            SortRequest.model_validate({"prop": "users.name", "dir": "sideways"})

    def test_missing_prop_rejected(self):
        with pytest.raises(ValidationError):
            SortRequest.model_validate({"dir": "asc"})


class TestPrefixed:
    def test_qualified_reference(self):
        assert prefixed("users.name", "app_") == "app_users.name"

    def test_unqualified_reference_untouched(self):
        assert prefixed("name", "app_") == "name"

    def test_empty_prefix(self):
        assert prefixed("users.name", "") == "users.name"
