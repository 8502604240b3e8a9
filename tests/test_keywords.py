"""
Unit tests for keyword extraction and topic grouping
"""
import pytest

from studyai.schemas import Keyword
from studyai.services.keywords import extract_keywords, extract_topics, is_similar, shares_prefix
from studyai.services.term_stats import TermIndex
from studyai.services.text import STOPWORDS


def _kw(word, score, frequency=1):
    return Keyword(word=word, score=score, frequency=frequency)


class TestExtractKeywords:
    def test_frequency_scores(self):
        """Test score is frequency over total word count, highest first"""
        keywords = extract_keywords("cell cell cell membrane membrane nucleus", 15)
        assert [k.word for k in keywords] == ["Cell", "Membrane", "Nucleus"]
        assert [k.frequency for k in keywords] == [3, 2, 1]
        assert keywords[0].score == pytest.approx(0.5)

    def test_cap_and_no_stopwords(self, plant_text):
        """Test at most n keywords, none of them stop words"""
        keywords = extract_keywords(plant_text, 5)
        assert len(keywords) <= 5
        assert all(k.word.lower() not in STOPWORDS for k in keywords)
        assert keywords[0].word == "Energy"
        assert keywords[0].frequency == 3

    def test_empty_text(self):
        """Test empty input gives no keywords"""
        assert extract_keywords("", 10) == []
        assert extract_keywords("   \n\t", 10) == []

    def test_invalid_count(self):
        """Test a non-positive count is rejected"""
        with pytest.raises(ValueError):
            extract_keywords("cell membrane", 0)

    def test_tfidf_against_corpus(self):
        """Test TF-IDF scoring drops terms shared by every document"""
        first = "photosynthesis photosynthesis chlorophyll light"
        index = TermIndex()
        index.add_document(first)
        index.add_document("mitochondria energy light")

        keywords = extract_keywords(first, 5, index=index)
        assert [k.word for k in keywords] == ["Photosynthesis", "Chlorophyll"]
        assert [k.score for k in keywords] == pytest.approx([1.0, 0.5])
        assert [k.frequency for k in keywords] == [2, 1]

    def test_single_document_index_uses_frequency(self):
        """Test a one-document index falls back to frequency scoring"""
        index = TermIndex()
        index.add_document("cell cell membrane")
        keywords = extract_keywords("cell cell membrane", 5, index=index)
        assert [k.frequency for k in keywords] == [2, 1]
        assert keywords[0].score == pytest.approx(2 / 3)


class TestExtractTopics:
    KEYWORDS = [
        _kw("Photosynthesis", 0.3),
        _kw("Photosynthetic", 0.2),
        _kw("Chlorophyll", 0.1),
        _kw("Chloroplast", 0.05),
    ]

    def test_prefix_grouping(self):
        """Test keywords sharing a prefix are grouped under the first one"""
        topics = extract_topics(self.KEYWORDS, strategy="prefix")
        assert [t.name for t in topics] == ["Photosynthesis", "Chlorophyll"]
        assert topics[0].keywords == ["Photosynthesis", "Photosynthetic"]
        assert topics[0].importance == pytest.approx(0.25)
        assert topics[0].frequency == 2
        assert topics[1].importance == pytest.approx(0.075)

    def test_similarity_grouping(self):
        """Test similarity grouping of near-identical spellings"""
        topics = extract_topics(self.KEYWORDS, strategy="similarity")
        assert [t.keywords for t in topics] == [
            ["Photosynthesis", "Photosynthetic"],
            ["Chlorophyll", "Chloroplast"],
        ]

    def test_strategies_differ(self):
        """Test a shared prefix is not enough for similarity grouping"""
        assert shares_prefix("Cell", "Cellular")
        assert not is_similar("Cell", "Cellular")

    def test_each_keyword_claimed_once(self, plant_text):
        """Test no keyword appears in two topics"""
        topics = extract_topics(extract_keywords(plant_text, 15))
        members = [k for t in topics for k in t.keywords]
        assert len(members) == len(set(members))
        assert all(t.keywords for t in topics)

    def test_max_topics_and_order(self):
        """Test topic cap and descending importance"""
        words = ["Apple", "Banana", "Cherry", "Damson", "Elder", "Fennel", "Guava", "Hazel", "Iris", "Juniper"]
        keywords = [_kw(w, (10 - i) / 100) for i, w in enumerate(words)]
        topics = extract_topics(keywords, max_topics=3)
        assert [t.name for t in topics] == ["Apple", "Banana", "Cherry"]
        importances = [t.importance for t in topics]
        assert importances == sorted(importances, reverse=True)

    def test_empty(self):
        """Test no keywords means no topics"""
        assert extract_topics([]) == []

    def test_unknown_strategy(self):
        """Test an unknown grouping strategy is rejected"""
        with pytest.raises(ValueError):
            extract_topics(self.KEYWORDS, strategy="kmeans")
