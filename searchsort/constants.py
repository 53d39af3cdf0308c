from enum import StrEnum


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


class MatchTier(StrEnum):
    EXACT = "exact"
    PREFIX = "prefix"
    SUBSTRING = "substring"
    PHRASE_EXACT = "phrase_exact"
    PHRASE_SUBSTRING = "phrase_substring"


# Weight multiplier and (prefix, suffix) wildcard decoration of the bound value
TIER_RULES: dict[str, tuple[float, str, str]] = {
    MatchTier.EXACT: (15, "", ""),
    MatchTier.PREFIX: (5, "", "%"),
    MatchTier.SUBSTRING: (1, "%", "%"),
    MatchTier.PHRASE_EXACT: (50, "", ""),
    MatchTier.PHRASE_SUBSTRING: (30, "%", "%"),
}

TOKEN_TIERS: tuple[MatchTier, ...] = (MatchTier.EXACT, MatchTier.PREFIX, MatchTier.SUBSTRING)
PHRASE_TIERS: tuple[MatchTier, ...] = (MatchTier.PHRASE_EXACT, MatchTier.PHRASE_SUBSTRING)

DEFAULT_RELEVANCE_FIELD = "relevance"

# Execution options carried on generated statements
JOINED_OPTION = "searchsort_joined"
MERGED_OPTION = "searchsort_merged"
