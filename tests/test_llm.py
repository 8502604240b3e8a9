"""
Unit tests for remote enrichment and its local fallback
"""
import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from studyai.config import Settings
from studyai.services.llm import (
    EnrichmentUnavailable,
    MalformedEnrichmentResponse,
    _strip_code_fences,
    enrich,
    remote_difficulty,
)
from studyai.services.pipeline import local_enrichment


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _client(create):
    client = MagicMock()
    client.chat.completions.create = create
    return client


def _answer(difficulty="Medium."):
    async def create(model, messages, temperature):
        prompt = messages[0]["content"]
        if "reading difficulty" in prompt:
            return _completion(difficulty)
        if "main topics" in prompt:
            return _completion(
                '```json\n[{"name": "Plant Biology", "keywords": ["Photosynthesis", "Chlorophyll"],'
                ' "importance": 0.9}]\n```'
            )
        if "JSON array of strings" in prompt:
            return _completion('["Photosynthesis", "Chlorophyll", "photosynthesis"]')
        return _completion("OVERVIEW\n• Plants make sugar from light.")
    return create


@pytest.fixture
def settings():
    return Settings(OPENAI_API_KEY="test-key", ENRICHMENT_TIMEOUT_SECONDS=5)


class TestRemoteEnrichment:
    def test_successful_enrichment(self, plant_text, settings):
        """Test remote answers are decoded into the enrichment shape"""
        result = asyncio.run(enrich(plant_text, settings=settings, client=_client(_answer())))
        assert result.source == "llm"
        assert result.summary.startswith("OVERVIEW")
        assert [k.word for k in result.keywords] == ["Photosynthesis", "Chlorophyll"]
        assert result.keywords[0].score == 1.0
        assert result.keywords[0].frequency == 7
        assert result.topics[0].name == "Plant Biology"
        assert result.topics[0].frequency == 2
        assert result.difficulty == "medium"

    def test_strip_code_fences(self):
        """Test markdown fences around JSON are removed"""
        assert _strip_code_fences('```json\n["a"]\n```') == '["a"]'
        assert _strip_code_fences('["a"]') == '["a"]'

    def test_unexpected_difficulty(self):
        """Test an answer outside easy/medium/hard is malformed"""
        client = _client(AsyncMock(return_value=_completion("impossible")))
        with pytest.raises(MalformedEnrichmentResponse):
            asyncio.run(remote_difficulty(client, "model", "text"))


class TestFallback:
    def test_network_error_falls_back(self, plant_text, settings):
        """Test a network failure returns the local result with every field set"""
        client = _client(AsyncMock(side_effect=ConnectionError("network down")))
        result = asyncio.run(enrich(plant_text, settings=settings, client=client))

        assert result.source == "local"
        assert result.model_dump() == local_enrichment(plant_text).model_dump()
        assert all(v is not None for v in result.model_dump().values())

    def test_malformed_json_falls_back(self, plant_text, settings):
        """Test an undecodable payload is never partially trusted"""
        client = _client(AsyncMock(return_value=_completion("Here are the keywords: [oops")))
        result = asyncio.run(enrich(plant_text, settings=settings, client=client))
        assert result.source == "local"

    def test_partial_failure_falls_back(self, plant_text, settings):
        """Test one bad sub-call discards the other remote answers"""
        client = _client(_answer(difficulty="impossible"))
        result = asyncio.run(enrich(plant_text, settings=settings, client=client))
        assert result.source == "local"

    def test_timeout_falls_back(self, plant_text):
        """Test a slow remote model is abandoned after the timeout"""
        async def slow(**kwargs):
            await asyncio.sleep(1)
            return _completion("never used")

        settings = Settings(OPENAI_API_KEY="test-key", ENRICHMENT_TIMEOUT_SECONDS=0.01)
        result = asyncio.run(enrich(plant_text, settings=settings, client=_client(slow)))
        assert result.source == "local"

    def test_missing_api_key(self, plant_text):
        """Test no key means local enrichment without building a client"""
        settings = Settings(OPENAI_API_KEY=None)
        with patch("studyai.services.llm.AsyncOpenAI") as client_cls:
            result = asyncio.run(enrich(plant_text, settings=settings))
        assert result.source == "local"
        client_cls.assert_not_called()

    def test_disabled(self, plant_text, settings):
        """Test enrichment can be switched off"""
        settings.ENRICHMENT_ENABLED = False
        create = AsyncMock()
        result = asyncio.run(enrich(plant_text, settings=settings, client=_client(create)))
        assert result.source == "local"
        create.assert_not_called()

    def test_empty_text(self, settings):
        """Test empty input never reaches the remote model"""
        create = AsyncMock()
        result = asyncio.run(enrich("", settings=settings, client=_client(create)))
        assert result.source == "local"
        assert result.keywords == []
        create.assert_not_called()


def test_malformed_is_unavailable():
    """Test malformed responses are a kind of unavailability"""
    assert issubclass(MalformedEnrichmentResponse, EnrichmentUnavailable)
