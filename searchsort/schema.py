# @TEST tests/test_schema.py

"""Pydantic models for the ``__search_sort__`` declaration and sort requests."""

from __future__ import annotations

import re
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from searchsort.constants import SortDirection

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)*$")


class SearchSortConfigError(Exception):
    """Raised when a model's search/sort declaration is missing or malformed."""


def _check_identifier(value: str) -> str:
    if not _IDENTIFIER_RE.match(value):
        raise ValueError(f"{value!r} is not a valid column or table reference")
    return value


ColumnRef = Annotated[str, AfterValidator(_check_identifier)]
Weight = Annotated[float, Field(ge=0, allow_inf_nan=False)]
JoinValue = str | int | float | bool


def prefixed(ref: str, prefix: str) -> str:
    """Prepend the table prefix to the table segment of a qualified reference."""
    if not prefix or "." not in ref:
        return ref
    return f"{prefix}{ref}"


class JoinSpec(BaseModel):
    """A left join declaration: ``left_key = right_key [AND extra_column = extra_value]``.

    Accepts the compact list form ``[left, right]`` or
    ``[left, right, column, value]`` as well as a mapping.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    left_key: ColumnRef
    right_key: ColumnRef
    extra_column: ColumnRef | None = None
    extra_value: JoinValue | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_sequence(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) not in (2, 4):
                raise ValueError("join must be [left, right] or [left, right, column, value]")
            return dict(zip(("left_key", "right_key", "extra_column", "extra_value"), data))
        return data

    @model_validator(mode="after")
    def _check_extra_pair(self) -> JoinSpec:
        if (self.extra_column is None) != (self.extra_value is None):
            raise ValueError("extra_column and extra_value must be given together")
        return self

    @property
    def extra_condition(self) -> tuple[str, JoinValue] | None:
        if self.extra_column is None or self.extra_value is None:
            return None
        return self.extra_column, self.extra_value


class SearchSortConfig(BaseModel):
    """Searchable/sortable declaration of one model.

    Attributes:
        search_columns: Column reference -> weight. Required, non-empty.
        sort_columns: Allow-list of columns a sort request may name.
        joins: Joined table name -> join keys.
        group_by: Explicit GROUP BY override (``groupBy`` is accepted too).
        table_columns: Columns to group by on SQL Server; base table columns when empty.
        relevance_field: Alias of the relevance column for this model.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    search_columns: dict[ColumnRef, Weight] = Field(min_length=1)
    sort_columns: list[ColumnRef] = Field(default_factory=list)
    joins: dict[ColumnRef, JoinSpec] = Field(default_factory=dict)
    group_by: list[ColumnRef] = Field(
        default_factory=list,
        validation_alias=AliasChoices("group_by", "groupBy"),
    )
    table_columns: list[ColumnRef] = Field(default_factory=list)
    relevance_field: Annotated[str, AfterValidator(_check_identifier)] | None = None


class SortRequest(BaseModel):
    """One entry of a sort list: ``{"prop": "users.name", "dir": "asc"}``."""

    model_config = ConfigDict(frozen=True)

    prop: str
    dir: SortDirection

    @field_validator("dir", mode="before")
    @classmethod
    def _lower_direction(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


def load_config(raw: Any, owner: str) -> SearchSortConfig:
    """Validate a raw declaration, failing fast with a readable error.

    Args:
        raw: The ``__search_sort__`` mapping (or an already built config).
        owner: Name of the declaring model, used in error messages.

    Raises:
        SearchSortConfigError: If the declaration is missing or invalid.
    """
    if isinstance(raw, SearchSortConfig):
        return raw
    if not raw:
        raise SearchSortConfigError(f"{owner} is misconfigured: no search/sort declaration")
    try:
        return SearchSortConfig.model_validate(raw)
    except ValidationError as exc:
        raise SearchSortConfigError(f"{owner} is misconfigured: {exc}") from exc
