"""
Unit tests for extractive and structured summaries
"""
import pytest

from studyai.schemas import Keyword, Topic
from studyai.services.summarizer import (
    decay_boost,
    emphasis_boost,
    join_sentences,
    score_sentences,
    structured_summary,
    summarize,
    summarize_text,
)
from studyai.services.text import segment

GARDEN_SENTENCES = [
    "Plants need light to grow well in gardens.",
    "Many animals live in forests and rivers nearby.",
    "Photosynthesis allows plants to convert light into energy for plants.",
    "Energy from light powers plants through the whole day.",
    "Rivers carry water toward the distant ocean slowly.",
]
GARDEN_TEXT = " ".join(GARDEN_SENTENCES)


class TestPositionBoost:
    def test_decay_boost(self):
        """Test decay boost falls linearly from 1.0"""
        assert decay_boost(0, 10) == 1.0
        assert decay_boost(9, 10) == pytest.approx(0.73)

    def test_emphasis_boost(self):
        """Test opening and closing sentences are emphasised"""
        assert [emphasis_boost(i, 6) for i in range(6)] == [1.5, 1.5, 1.0, 1.0, 1.2, 1.2]


class TestSummarize:
    def test_picks_high_frequency_sentences(self):
        """Test the sentence dense in frequent terms is chosen"""
        result = summarize(GARDEN_TEXT, 3)
        assert result == [GARDEN_SENTENCES[0], GARDEN_SENTENCES[2], GARDEN_SENTENCES[3]]

    def test_preserves_source_order(self):
        """Test chosen sentences come back in original order"""
        sentences = segment(GARDEN_TEXT)
        for strategy in ("decay", "emphasis"):
            result = summarize(GARDEN_TEXT, 2, strategy=strategy)
            positions = [sentences.index(s) for s in result]
            assert positions == sorted(positions)

    def test_underflow_returns_all_sentences(self):
        """Test fewer sentences than requested returns them verbatim"""
        text = "Plants need light to grow well. Rivers carry water toward the ocean."
        assert summarize(text, 5) == segment(text)

    def test_idempotent(self, plant_text):
        """Test repeated calls give identical output"""
        assert summarize(plant_text, 3) == summarize(plant_text, 3)

    def test_empty_text(self):
        """Test empty text summarizes to nothing"""
        assert summarize("", 3) == []

    def test_invalid_length(self):
        """Test a non-positive target is rejected"""
        with pytest.raises(ValueError):
            summarize(GARDEN_TEXT, 0)

    def test_unknown_strategy(self):
        """Test an unknown position strategy is rejected"""
        with pytest.raises(ValueError):
            summarize(GARDEN_TEXT, 2, strategy="random")


class TestSummaryText:
    def test_join_adds_terminal_period(self):
        """Test sentences without terminal punctuation get a period"""
        assert join_sentences(["No period here", "Has one."]) == "No period here. Has one."

    def test_summary_result(self):
        """Test summary text, sentence count and compression ratio"""
        result = summarize_text(GARDEN_TEXT, 3)
        assert result.sentence_count == 3
        assert result.text == " ".join([GARDEN_SENTENCES[0], GARDEN_SENTENCES[2], GARDEN_SENTENCES[3]])
        assert result.compression_ratio == round(len(result.text) / len(GARDEN_TEXT) * 100)


class TestStructuredSummary:
    def test_sections(self):
        """Test labeled sections, example bucket and takeaways"""
        example = "For example, a sunflower turns toward the light all morning."
        text = " ".join(GARDEN_SENTENCES[:3] + [example] + GARDEN_SENTENCES[3:])
        keywords = [Keyword(word="Plants", score=0.1, frequency=4), Keyword(word="Light", score=0.08, frequency=3)]
        topics = [Topic(name="Plants", keywords=["Plants"], importance=0.1, frequency=1)]

        summary = structured_summary(text, keywords, topics)
        sections = summary.split("\n\n")

        assert [s.splitlines()[0] for s in sections] == [
            "OVERVIEW", "KEY CONCEPTS", "EXAMPLES & APPLICATIONS", "KEY TAKEAWAYS",
        ]
        assert f"• {example}" in sections[2]
        assert "• Key terms: Plants, Light" in sections[3]
        assert "• Main topics: Plants" in sections[3]
        assert "IMPORTANT POINTS" not in summary

    def test_empty_input(self):
        """Test empty text without keywords gives an empty summary"""
        assert structured_summary("", [], []) == ""


class TestTiesAndBlankInput:
    FILLER = [
        "They were there with them all.",
        "It was about them and their own.",
    ]
    TAIL = [
        "Which of these were those here?",
        "What would you do with them?",
    ]

    def test_equal_scores_keep_lower_index(self):
        """Test equally scored sentences resolve to the earlier one"""
        tied = ["Plants absorb light energy.", "Energy light absorb plants."]
        text = " ".join(self.FILLER + tied + self.TAIL)
        assert score_sentences(segment(text), text, strategy="emphasis")[2:4] == [8.0, 8.0]
        assert summarize(text, 1, strategy="emphasis") == [tied[0]]

    def test_all_zero_scores(self):
        """Test sentences without content words keep source order"""
        text = " ".join(self.FILLER + self.TAIL)
        assert summarize(text, 2) == self.FILLER
        assert summarize(text, 2, strategy="emphasis") == self.FILLER

    def test_whitespace_only(self):
        """Test whitespace-only text summarizes to nothing"""
        assert summarize("   \n\t", 3) == []
        assert summarize_text("   \n\t", 3).text == ""
