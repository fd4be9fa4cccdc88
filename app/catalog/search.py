"""Relevance scoring for item text search.

Both store backends narrow candidates their own way and then rank with
these functions, so results are ordered identically.
"""

import re
from collections.abc import Iterable, Sequence

from app.domain.entities import Item

NAME_WEIGHT = 2
DESCRIPTION_WEIGHT = 1

_WORD = re.compile(r"\w+", re.UNICODE)


def tokenize(text: str) -> list[str]:
    """Split text into lowercase word tokens."""
    return [word.lower() for word in _WORD.findall(text)]


def query_terms(query: str) -> list[str]:
    """Get the distinct search terms of a query, in order."""
    seen: dict[str, None] = {}
    for term in tokenize(query):
        seen.setdefault(term, None)
    return list(seen)


def _matches(words: Sequence[str], terms: Sequence[str]) -> int:
    return sum(1 for word in words for term in terms if word.startswith(term))


def relevance(item: Item, terms: Sequence[str]) -> int:
    """Score an item against search terms.

    A word matches a term when it starts with the term. Matches in the
    name weigh more than matches in the description.

    Args:
        item: Item to score.
        terms: Lowercase search terms.

    Returns:
        Relevance score; 0 means no match.
    """
    return (
        NAME_WEIGHT * _matches(tokenize(item.name), terms)
        + DESCRIPTION_WEIGHT * _matches(tokenize(item.description), terms)
    )


def rank(items: Iterable[Item], terms: Sequence[str]) -> list[Item]:
    """Rank items by relevance, dropping non-matches.

    Ties are broken newest first.

    Args:
        items: Candidate items.
        terms: Lowercase search terms.

    Returns:
        Matching items, most relevant first.
    """
    scored = [(relevance(item, terms), item) for item in items]
    matching = [(score, item) for score, item in scored if score > 0]
    # Two stable sorts: newest first, then by score
    matching.sort(key=lambda pair: pair[1].created_at, reverse=True)
    matching.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _, item in matching]
