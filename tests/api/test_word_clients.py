"""
Tests for the Datamuse and ConceptNet clients.

Requests go through a fake aiohttp session so status handling, retries and
response parsing run without the network.
"""

import json
from unittest.mock import AsyncMock

import pytest

from fermata.api import (
    ConceptNetClient,
    ConceptRelation,
    DatamuseClient,
    UnifiedRateLimiter,
    concept_label,
)
from fermata.exceptions import ExternalServiceError


class FakeResponse:
    def __init__(self, status=200, payload=None, headers=None):
        self.status = status
        self.payload = payload
        self.headers = headers or {}

    async def json(self, content_type=None):
        if isinstance(self.payload, str):
            raise json.JSONDecodeError("Expecting value", self.payload, 0)
        return self.payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """Returns queued responses in order and records requested URLs."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None):
        self.calls.append((url, params))
        return self.responses.pop(0)


def fast_limiter():
    return UnifiedRateLimiter(calls_per_second=1000, burst_size=1000, service_name="test")


@pytest.fixture
def datamuse():
    client = DatamuseClient(rate_limiter=fast_limiter())
    client._backoff = AsyncMock()
    return client


@pytest.fixture
def conceptnet():
    client = ConceptNetClient(rate_limiter=fast_limiter())
    client._backoff = AsyncMock()
    return client


class TestRequestHandling:
    """Test the shared request path."""

    @pytest.mark.asyncio
    async def test_request_without_session_fails(self, datamuse):
        with pytest.raises(ExternalServiceError) as exc_info:
            await datamuse.means_like("storm")
        assert exc_info.value.service == "Datamuse"

    @pytest.mark.asyncio
    async def test_retryable_status_is_retried(self, datamuse):
        datamuse.session = FakeSession(
            FakeResponse(status=503),
            FakeResponse(payload=[{"word": "tempest", "score": 900}]),
        )

        words = await datamuse.means_like("storm")

        assert [w.word for w in words] == ["tempest"]
        assert datamuse._backoff.await_count == 1

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, datamuse):
        datamuse.session = FakeSession(FakeResponse(status=404))

        with pytest.raises(ExternalServiceError) as exc_info:
            await datamuse.means_like("storm")

        assert exc_info.value.status == 404
        assert datamuse._backoff.await_count == 0

    @pytest.mark.asyncio
    async def test_retries_are_bounded(self, datamuse):
        datamuse.session = FakeSession(*[FakeResponse(status=500) for _ in range(3)])

        with pytest.raises(ExternalServiceError):
            await datamuse.means_like("storm")

        assert len(datamuse.session.calls) == 3

    @pytest.mark.asyncio
    async def test_non_json_body_is_a_service_error(self, datamuse):
        datamuse.session = FakeSession(FakeResponse(payload="<html>Service maintenance</html>"))

        with pytest.raises(ExternalServiceError) as exc_info:
            await datamuse.means_like("storm")

        assert exc_info.value.status == 200
        assert "malformed JSON" in str(exc_info.value)
        assert datamuse._backoff.await_count == 0

    def test_service_info(self, datamuse):
        info = datamuse.get_service_info()

        assert info["service_name"] == "Datamuse"
        assert info["base_url"] == "https://api.datamuse.com"
        assert info["session_active"] is False


class TestDatamuseClient:
    """Test Datamuse parsing."""

    @pytest.mark.asyncio
    async def test_query_parameters(self, datamuse):
        datamuse.session = FakeSession(FakeResponse(payload=[]))

        await datamuse.synonyms("quiet", max_results=5)

        url, params = datamuse.session.calls[0]
        assert url == "https://api.datamuse.com/words"
        assert params == {"rel_syn": "quiet", "max": 5}

    @pytest.mark.asyncio
    async def test_malformed_items_are_skipped(self, datamuse):
        datamuse.session = FakeSession(FakeResponse(payload=[
            {"word": "hush", "score": 700, "tags": ["n"]},
            {"score": 10},
            "junk",
        ]))

        words = await datamuse.synonyms("quiet")

        assert len(words) == 1
        assert words[0].tags == ["n"]

    @pytest.mark.asyncio
    async def test_non_list_body_is_an_error(self, datamuse):
        datamuse.session = FakeSession(FakeResponse(payload={"oops": True}))

        with pytest.raises(ExternalServiceError):
            await datamuse.means_like("storm")


class TestConceptNetClient:
    """Test ConceptNet parsing."""

    @pytest.mark.asyncio
    async def test_related_filters_weight_and_language(self, conceptnet):
        conceptnet.session = FakeSession(FakeResponse(payload={"related": [
            {"@id": "/c/en/thunder", "weight": 0.8},
            {"@id": "/c/en/rain_cloud", "weight": 0.6},
            {"@id": "/c/fr/orage", "weight": 0.9},
            {"@id": "/c/en/drizzle", "weight": 0.2},
            {"@id": "/c/en/storm", "weight": 1.0},
        ]}))

        relations = await conceptnet.related("Storm")

        assert [r.word for r in relations] == ["thunder", "rain cloud"]
        assert conceptnet.session.calls[0][0] == "https://api.conceptnet.io/related/c/en/storm"

    @pytest.mark.asyncio
    async def test_edges(self, conceptnet):
        conceptnet.session = FakeSession(FakeResponse(payload={"edges": [
            {"end": {"language": "en", "label": "Weather"}, "weight": 2.0, "rel": {"label": "IsA"}},
            {"end": {"language": "de", "label": "Wetter"}, "weight": 3.0, "rel": {"label": "IsA"}},
            {"end": {"language": "en", "@id": "/c/en/lightning"}, "weight": 1.0, "rel": {"label": "HasA"}},
        ]}))

        relations = await conceptnet.edges("storm")

        assert [(r.word, r.relation) for r in relations] == [("weather", "IsA"), ("lightning", "HasA")]

    @pytest.mark.asyncio
    async def test_error_body_raises(self, conceptnet):
        conceptnet.session = FakeSession(FakeResponse(payload={"error": {"details": "rate limited"}}))

        with pytest.raises(ExternalServiceError) as exc_info:
            await conceptnet.related("storm")
        assert "rate limited" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_dict_body_raises(self, conceptnet):
        conceptnet.session = FakeSession(FakeResponse(payload=["thunder", "rain"]))

        with pytest.raises(ExternalServiceError):
            await conceptnet.related("storm")

    @pytest.mark.asyncio
    async def test_malformed_entries_are_skipped(self, conceptnet):
        conceptnet.session = FakeSession(FakeResponse(payload={"related": [
            "junk",
            {"@id": "/c/en/thunder", "weight": "heavy"},
            {"@id": "/c/en/rain", "weight": 0.7},
        ]}))

        relations = await conceptnet.related("storm")

        assert [r.word for r in relations] == ["rain"]

    @pytest.mark.asyncio
    async def test_edges_with_missing_parts(self, conceptnet):
        conceptnet.session = FakeSession(FakeResponse(payload={"edges": [
            {"end": "/c/en/weather", "weight": 2.0},
            {"end": {"language": "en", "label": "Lightning"}, "weight": 1.0, "rel": None},
        ]}))

        relations = await conceptnet.edges("storm")

        assert [(r.word, r.relation) for r in relations] == [("lightning", "")]

    def test_clean_dedupes_keeping_heaviest(self):
        relations = [
            ConceptRelation("thunder", 0.6, "RelatedTo"),
            ConceptRelation("thunder", 0.9, "RelatedTo"),
            ConceptRelation("x", 0.9, "RelatedTo"),
            ConceptRelation("bad_label!", 0.9, "RelatedTo"),
        ]

        cleaned = ConceptNetClient._clean(relations, "storm", limit=10)

        assert [(r.word, r.weight) for r in cleaned] == [("thunder", 0.9)]


@pytest.mark.parametrize("uri,label", [
    ("/c/en/rock_band/n", "rock band"),
    ("/c/en/storm", "storm"),
    ("storm", "storm"),
])
def test_concept_label(uri, label):
    assert concept_label(uri) == label
