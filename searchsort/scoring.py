# @TEST tests/test_scoring.py

"""Weighted relevance scoring expressions.

Every configured column contributes one ``CASE WHEN ... THEN weight ELSE 0
END`` fragment per token and match tier:

* exact match        -> weight x 15, bound as ``word``
* prefix match       -> weight x 5,  bound as ``word%``
* substring match    -> weight x 1,  bound as ``%word%``

When whole-phrase matching is requested, two more fragments per column bind
the entire normalized query: exact x 50 and substring x 30. Wildcards live in
the bound value, never in the SQL text, so one expression serves every row.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from sqlalchemy import Float, String, case, func, literal, literal_column
from sqlalchemy.sql.elements import ColumnElement

from searchsort.constants import PHRASE_TIERS, TIER_RULES, TOKEN_TIERS, MatchTier
from searchsort.dialects import DialectAdapter
from searchsort.tokenizer import normalize

logger = logging.getLogger(__name__)


def format_number(value: float) -> str:
    """Render a weight as SQL numeric literal text (``150``, ``22.5``)."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


@dataclass(frozen=True, slots=True)
class ScoreFragment:
    """One weighted match indicator.

    Attributes:
        column: Resolved (prefixed) column reference.
        tier: Match specificity of this fragment.
        weight: Column weight multiplied by the tier multiplier.
        value: Bound pattern, wildcards included.
        clause: The ``CASE`` expression carrying ``value`` as its only bind parameter.
    """

    column: str
    tier: MatchTier
    weight: float
    value: str
    clause: ColumnElement = field(compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class ScoringPlan:
    """Fragments for one search call plus the basis of the default threshold."""

    fragments: tuple[ScoreFragment, ...]
    weight_sum: float
    column_count: int

    @property
    def default_threshold(self) -> float:
        if not self.column_count:
            return 0.0
        return self.weight_sum / self.column_count

    @property
    def bindings(self) -> list[str]:
        """Bound values in emission order."""
        return [fragment.value for fragment in self.fragments]


def make_fragment(
    column: str,
    weight: float,
    token: str,
    tier: MatchTier,
    dialect: DialectAdapter,
) -> ScoreFragment:
    """Build the fragment for a single column, token and match tier."""
    multiplier, before, after = TIER_RULES[tier]
    score = weight * multiplier
    value = f"{before}{token}{after}"

    target = func.lower(literal_column(dialect.quote_identifier(column)))
    predicate = target.op(dialect.case_insensitive_operator, is_comparison=True)(literal(value, String()))
    clause = case(
        (predicate, literal_column(format_number(score), Float())),
        else_=literal_column("0", Float()),
    )
    return ScoreFragment(column=column, tier=tier, weight=score, value=value, clause=clause)


def build_fragments(
    columns: Mapping[str, float],
    tokens: Sequence[str],
    raw_query: str,
    dialect: DialectAdapter,
    entire_text: bool = False,
    entire_text_only: bool = False,
) -> ScoringPlan:
    """Build every scoring fragment for a search.

    Args:
        columns: Resolved column reference -> weight.
        tokens: Output of :func:`searchsort.tokenizer.tokenize`.
        raw_query: The untokenized query; normalized for the phrase tiers.
        dialect: Adapter supplying quoting and the match operator.
        entire_text: Add phrase tiers when there is more than one token.
        entire_text_only: Emit only the phrase tiers, whatever the token count.

    Returns:
        ScoringPlan whose weight sum and column count come from ``columns``.
    """
    phrase = normalize(raw_query)
    with_phrase = entire_text_only or (entire_text and len(tokens) > 1)

    fragments: list[ScoreFragment] = []
    weight_sum = 0.0
    for column, weight in columns.items():
        weight_sum += weight

        if not entire_text_only:
            for tier in TOKEN_TIERS:
                fragments.extend(make_fragment(column, weight, token, tier, dialect) for token in tokens)

        if with_phrase:
            fragments.extend(make_fragment(column, weight, phrase, tier, dialect) for tier in PHRASE_TIERS)

    logger.debug(
        "Built %d scoring fragments over %d columns for %d tokens",
        len(fragments),
        len(columns),
        len(tokens),
    )
    return ScoringPlan(fragments=tuple(fragments), weight_sum=weight_sum, column_count=len(columns))
