"""
Term statistics: within-document frequency and cross-document TF-IDF.
"""
import math
from typing import Dict, Iterable, List, Sequence


def frequency(words: Iterable[str]) -> Dict[str, int]:
    """Count words; keys keep first-occurrence order."""
    counts: Dict[str, int] = {}
    for w in words:
        counts[w] = counts.get(w, 0) + 1
    return counts


def term_frequency(term: str, tokens: Sequence[str]) -> float:
    if not tokens:
        return 0.0
    return sum(1 for t in tokens if t == term) / len(tokens)


class TermIndex:
    """Token sets of several documents indexed together for IDF lookups.

    TF-IDF only carries information once more than one document has been
    added; with a single document every IDF is ln(1) = 0.
    """

    def __init__(self, tokenizer=None):
        if tokenizer is None:
            from studyai.services.text import tokenize
            tokenizer = tokenize
        self._tokenize = tokenizer
        self._documents: List[List[str]] = []
        self._doc_sets: List[set] = []

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def is_multi_document(self) -> bool:
        return len(self._documents) > 1

    def add_document(self, text: str) -> List[str]:
        tokens = self._tokenize(text)
        self._documents.append(tokens)
        self._doc_sets.append(set(tokens))
        return tokens

    def document_frequency(self, term: str) -> int:
        return sum(1 for s in self._doc_sets if term in s)

    def inverse_document_frequency(self, term: str) -> float:
        containing = self.document_frequency(term)
        if containing == 0:
            return 0.0
        return math.log(len(self._documents) / containing)

    def tfidf(self, term: str, tokens: Sequence[str]) -> float:
        return term_frequency(term, tokens) * self.inverse_document_frequency(term)
