"""
PatternMatcher: layered retrieval of prior knowledge patterns.

Layers are tried in order and the first one returning anything wins:

1. Exact     - case-sensitive equality, confidence 1.0
2. Fuzzy     - character similarity at or above a threshold
3. Embedding - reserved for vector similarity; currently always empty
4. Keyword   - stop-word filtered token overlap
"""

import logging
from abc import ABC, abstractmethod

from agentledger.domain.events import AgentEventType, PatternCaptured, decode_event
from agentledger.domain.interfaces import EventLogInterface
from agentledger.domain.matching import (
    STOP_WORDS,
    extract_keywords,
    keyword_score,
    similarity,
)
from agentledger.domain.models import PatternMatch, PatternRecord

logger = logging.getLogger(__name__)

Scored = list[tuple[PatternRecord, float]]


class MatchLayer(ABC):
    """One matching strategy. Returns (candidate, score) pairs, best first."""

    method: str = ""

    @abstractmethod
    def find(self, query: str, candidates: list[PatternRecord]) -> Scored:
        pass


class ExactLayer(MatchLayer):
    method = "exact"

    def find(self, query: str, candidates: list[PatternRecord]) -> Scored:
        return [(c, 1.0) for c in candidates if c.intent_pattern == query]


class FuzzyLayer(MatchLayer):
    method = "fuzzy"

    def __init__(self, threshold: float = 0.6):
        self.threshold = threshold

    def find(self, query: str, candidates: list[PatternRecord]) -> Scored:
        scored = [(c, similarity(query, c.intent_pattern)) for c in candidates]
        # sorted() is stable: equal scores keep capture order
        return sorted(
            ((c, s) for c, s in scored if s >= self.threshold),
            key=lambda pair: pair[1],
            reverse=True,
        )


class EmbeddingLayer(MatchLayer):
    """
    Placeholder for vector-similarity matching.

    Attempted in sequence so a real implementation can slot in without
    changing the layering; always returns no matches.
    """

    method = "embedding"

    def __init__(self, top_k: int = 5):
        self.top_k = top_k

    def find(self, query: str, candidates: list[PatternRecord]) -> Scored:
        return []


class KeywordLayer(MatchLayer):
    method = "keyword"

    def __init__(self, stop_words: frozenset[str] = STOP_WORDS):
        self.stop_words = stop_words

    def find(self, query: str, candidates: list[PatternRecord]) -> Scored:
        query_keywords = extract_keywords(query, self.stop_words)
        scored = [
            (c, keyword_score(query_keywords, self._keywords(c.intent_pattern)))
            for c in candidates
        ]
        return sorted(
            ((c, s) for c, s in scored if s > 0),
            key=lambda pair: pair[1],
            reverse=True,
        )

    def _keywords(self, text: str) -> tuple[str, ...]:
        return extract_keywords(text, self.stop_words)


class PatternMatcher:
    """
    Multi-layered matcher over captured knowledge patterns.

    Example usage:
        matcher = PatternMatcher(event_log, fuzzy_threshold=0.6)
        for m in matcher.match("fix lint errors"):
            print(m.method, m.confidence, m.pattern.approach)
    """

    def __init__(
        self,
        event_log: EventLogInterface,
        fuzzy_threshold: float = 0.6,
        embedding_top_k: int = 5,
    ):
        """
        Args:
            event_log: Log holding PatternCaptured events
            fuzzy_threshold: Minimum similarity for the fuzzy layer (0-1)
            embedding_top_k: Result size for the embedding layer
        """
        self._log = event_log
        self._fuzzy = FuzzyLayer(fuzzy_threshold)
        self.layers: tuple[MatchLayer, ...] = (
            ExactLayer(),
            self._fuzzy,
            EmbeddingLayer(embedding_top_k),
            KeywordLayer(),
        )

    @property
    def fuzzy_threshold(self) -> float:
        return self._fuzzy.threshold

    def match(self, query: str, limit: int | None = None) -> list[PatternMatch]:
        """
        Match ``query`` against every captured pattern.

        Args:
            query: Free-text intent (may be empty)
            limit: Maximum number of matches to return

        Returns:
            Matches from the first layer that found any, best first;
            empty if no pattern exists or no layer matched
        """
        candidates = self.candidates()
        if not candidates:
            return []

        for layer in self.layers:
            found = layer.find(query, candidates)
            if found:
                logger.debug(
                    "Query %r matched %d pattern(s) via %s", query, len(found), layer.method
                )
                if limit is not None:
                    found = found[:limit]
                return [
                    PatternMatch(pattern=c, confidence=score, method=layer.method)
                    for c, score in found
                ]
        return []

    def candidates(self) -> list[PatternRecord]:
        """
        Captured patterns in first-capture order.

        A pattern id captured more than once appears once, with the data
        of its latest capture.
        """
        events = reversed(self._log.query_by_type(AgentEventType.PATTERN_CAPTURED.value))
        records: dict[str, PatternRecord] = {}
        for stored in events:
            event = decode_event(stored)
            if not isinstance(event, PatternCaptured):
                continue
            records[event.pattern_id] = PatternRecord(
                pattern_id=event.pattern_id,
                intent_pattern=event.intent_pattern,
                approach=event.approach,
                success_rate=event.success_rate,
                example_event_ids=event.example_event_ids,
                timestamp=stored.created_at,
            )
        return list(records.values())
