"""Scoring functions used by the layered pattern matcher."""

from difflib import SequenceMatcher

STOP_WORDS = frozenset("the a an and or but in on at to for of with by".split())


def similarity(first: str, second: str) -> float:
    """Case-insensitive character similarity in [0, 1].

    Symmetric: identical strings (ignoring case) score 1.0, strings with no
    characters in common score 0.0.
    """
    a, b = first.lower(), second.lower()
    if a == b:
        return 1.0
    # ratio() is not perfectly symmetric on ties between equal-length blocks
    return max(
        SequenceMatcher(None, a, b, autojunk=False).ratio(),
        SequenceMatcher(None, b, a, autojunk=False).ratio(),
    )


def extract_keywords(
    text: str, stop_words: frozenset[str] = STOP_WORDS
) -> tuple[str, ...]:
    """Lowercased whitespace tokens minus stop words, deduplicated in order."""
    seen: dict[str, None] = {}
    for word in text.lower().split():
        if word not in stop_words:
            seen.setdefault(word, None)
    return tuple(seen)


def keyword_score(
    query_keywords: tuple[str, ...], candidate_keywords: tuple[str, ...]
) -> float:
    """Overlap of two keyword sets relative to the larger one."""
    overlap = len(set(query_keywords) & set(candidate_keywords))
    if overlap == 0:
        return 0.0
    return overlap / max(len(query_keywords), len(candidate_keywords))
