"""
In-memory full-text index over the registry snapshot.

Each registry entry is indexed under three fields (name, categories and full
description). Queries are scored with BM25 per field and the field scores are
summed. The index is built wholesale from a snapshot and never updated in
place; a refresh means building a new one.
"""

from __future__ import annotations

import logging
import math
import re
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from .errors import NotInitializedError
from .models import RegistryEntry, SearchIndexEntry

logger = logging.getLogger(__name__)

# BM25 tuning constants
K1 = 1.2
B = 0.75

DEFAULT_LIMIT = 10
FIELDS = ("name", "categories", "fullDescription")

STOPWORDS: Set[str] = {
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "is", "it", "as", "was", "are", "be",
    "this", "that", "which", "has", "have", "had", "not", "no", "do",
    "does", "did", "will", "would", "could", "should", "may", "might",
    "can", "i", "you", "he", "she", "we", "they", "me", "my", "your",
    "its", "our", "their", "what", "who", "how", "when", "where", "so",
    "if", "then", "than", "just", "about", "into", "also", "more",
    "been", "being", "some", "any", "all", "each", "very",
}

TOKENIZE_PATTERN = re.compile(r"[^a-z0-9]+")


def tokenize(text: str) -> List[str]:
    """Lowercase, split on non-alphanumerics and drop stopwords."""
    tokens = TOKENIZE_PATTERN.split(text.lower())
    return [t for t in tokens if t and t not in STOPWORDS]


class _FieldIndex:
    def __init__(self) -> None:
        # term -> {ref: term frequency}
        self.postings: Dict[str, Dict[str, int]] = defaultdict(dict)
        self.lengths: Dict[str, int] = {}
        self.avg_length: float = 0.0

    def add(self, ref: str, text: str) -> None:
        tokens = tokenize(text)
        self.lengths[ref] = len(tokens)
        for token in tokens:
            postings = self.postings[token]
            postings[ref] = postings.get(ref, 0) + 1

    def finalize(self) -> None:
        if self.lengths:
            self.avg_length = sum(self.lengths.values()) / len(self.lengths)

    def score(self, term: str, n_docs: int, scores: Dict[str, float]) -> None:
        postings = self.postings.get(term)
        if not postings:
            return
        df = len(postings)
        idf = math.log(1 + (n_docs - df + 0.5) / (df + 0.5))
        avg = self.avg_length or 1.0
        for ref, tf in postings.items():
            length_norm = 1 - B + B * (self.lengths.get(ref, 0) / avg)
            scores[ref] += idf * (tf * (K1 + 1)) / (tf + K1 * length_norm)


class SearchIndex:
    """Ranked and exact-name search over a read-only registry snapshot."""

    def __init__(self, limit: int = DEFAULT_LIMIT) -> None:
        self.limit = limit
        self._entries: Dict[str, RegistryEntry] = {}
        self._fields: Dict[str, _FieldIndex] = {}
        self._built = False

    @property
    def is_built(self) -> bool:
        return self._built

    def __len__(self) -> int:
        return len(self._entries)

    def build(self, entries: Iterable[RegistryEntry]) -> None:
        registry: Dict[str, RegistryEntry] = {}
        fields = {name: _FieldIndex() for name in FIELDS}

        for entry in entries:
            doc = SearchIndexEntry.from_registry_entry(entry)
            if doc.ref in registry:
                logger.warning(
                    "Skipping registry entry %r: name collides with %r",
                    entry.name,
                    registry[doc.ref].name,
                )
                continue
            registry[doc.ref] = entry
            for field_name in FIELDS:
                fields[field_name].add(doc.ref, doc.fields.get(field_name, ""))

        for field_index in fields.values():
            field_index.finalize()

        self._entries = registry
        self._fields = fields
        self._built = True
        logger.info("Search index built with %d registry entries", len(registry))

    def search(self, query: str, exact: bool = False) -> List[Dict[str, Any]]:
        """Return tool summaries matching ``query``.

        Ranked mode returns at most ``limit`` summaries by descending
        relevance. Exact mode returns the single entry whose name equals
        ``query`` ignoring case, or an empty list.
        """
        if not self._built:
            raise NotInitializedError("Search index")

        if exact:
            entry = self.find_exact(query)
            return [entry.summary()] if entry else []

        return [self._entries[ref].summary() for ref, _ in self.ranked(query)]

    def find_exact(self, name: str) -> Optional[RegistryEntry]:
        if not self._built:
            raise NotInitializedError("Search index")
        return self._entries.get(name.lower())

    def ranked(self, query: str, limit: Optional[int] = None) -> List[Tuple[str, float]]:
        """Score every matching ref and return ``(ref, score)`` pairs, best first."""
        if not self._built:
            raise NotInitializedError("Search index")

        limit = self.limit if limit is None else limit
        terms = set(tokenize(query))
        if not terms or not self._entries:
            return []

        n_docs = len(self._entries)
        scores: Dict[str, float] = defaultdict(float)
        for term in terms:
            for field_index in self._fields.values():
                field_index.score(term, n_docs, scores)

        ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
        return ranked[:limit]
