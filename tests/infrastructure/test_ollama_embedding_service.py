"""
Tests for OllamaEmbeddingService adapter.

Uses FakeSession and FakeResponse to test without network calls.
Covers: request shape, text limits, transport failures, readiness probe.
"""

import pytest
import requests
from typing import Any, Dict, List, Optional

from app.domain.errors import EmbeddingServiceUnavailableError, EmbeddingTextTooLongError
from app.infrastructure.embedding.ollama_embedding_service import OllamaEmbeddingService


# =============================================================================
# Fake HTTP Session and Response for testing
# =============================================================================


class FakeResponse:
    """Fake HTTP response for testing."""

    def __init__(
        self,
        json_data: Optional[Any] = None,
        status_code: int = 200,
        raise_on_json: bool = False,
    ):
        self._json_data = json_data if json_data is not None else {}
        self.status_code = status_code
        self._raise_on_json = raise_on_json

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._raise_on_json:
            raise ValueError("Invalid JSON")
        return self._json_data


class FakeSession:
    """Fake HTTP session recording every call."""

    def __init__(
        self,
        response: Optional[FakeResponse] = None,
        error: Optional[Exception] = None,
    ):
        self._response = response or FakeResponse({"embedding": [0.1, 0.2]})
        self._error = error
        self.calls: List[Dict[str, Any]] = []

    def _respond(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if self._error is not None:
            raise self._error
        return self._response

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond("POST", url, **kwargs)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond("GET", url, **kwargs)


def make_service(session: FakeSession, **kwargs: Any) -> OllamaEmbeddingService:
    return OllamaEmbeddingService(
        base_url="http://ollama:11434/", model="nomic-embed-text", session=session, **kwargs
    )


# =============================================================================
# generate_embedding
# =============================================================================


class TestGenerateEmbedding:
    def test_posts_model_and_trimmed_prompt(self):
        session = FakeSession()
        service = make_service(session, timeout_s=12)

        result = service.generate_embedding("  Clean Code  ")

        call = session.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == "http://ollama:11434/api/embeddings"
        assert call["json"] == {"model": "nomic-embed-text", "prompt": "Clean Code"}
        assert call["timeout"] == 12
        assert result.embedding == [0.1, 0.2]
        assert result.model == "nomic-embed-text"

    def test_text_over_limit_is_rejected_without_request(self):
        session = FakeSession()

        with pytest.raises(EmbeddingTextTooLongError) as exc_info:
            make_service(session).generate_embedding("x" * 7001)

        assert exc_info.value.actual_length == 7001
        assert session.calls == []

    def test_limit_applies_after_trimming(self):
        session = FakeSession()

        make_service(session).generate_embedding("x" * 7000 + "   ")

        assert len(session.calls) == 1

    @pytest.mark.parametrize(
        "error",
        [
            requests.exceptions.ConnectionError("refused"),
            requests.exceptions.Timeout("slow"),
        ],
    )
    def test_transport_errors_mean_unavailable(self, error):
        service = make_service(FakeSession(error=error))

        with pytest.raises(EmbeddingServiceUnavailableError):
            service.generate_embedding("text")

    @pytest.mark.parametrize("status_code", [404, 500, 503])
    def test_non_2xx_means_unavailable(self, status_code):
        service = make_service(FakeSession(FakeResponse({}, status_code=status_code)))

        with pytest.raises(EmbeddingServiceUnavailableError, match=str(status_code)):
            service.generate_embedding("text")

    @pytest.mark.parametrize(
        "body", [{}, {"embedding": []}, {"embedding": "nope"}, ["not", "a", "dict"]]
    )
    def test_missing_embedding_means_unavailable(self, body):
        service = make_service(FakeSession(FakeResponse(body)))

        with pytest.raises(EmbeddingServiceUnavailableError):
            service.generate_embedding("text")

    def test_invalid_json_means_unavailable(self):
        service = make_service(FakeSession(FakeResponse(raise_on_json=True)))

        with pytest.raises(EmbeddingServiceUnavailableError):
            service.generate_embedding("text")


# =============================================================================
# is_available
# =============================================================================


class TestIsAvailable:
    def test_probes_tags_endpoint(self):
        session = FakeSession(FakeResponse({"models": []}))

        assert make_service(session).is_available() is True
        assert session.calls[0]["method"] == "GET"
        assert session.calls[0]["url"] == "http://ollama:11434/api/tags"

    def test_error_status_is_unavailable(self):
        assert make_service(FakeSession(FakeResponse(status_code=500))).is_available() is False

    def test_connection_error_is_unavailable(self):
        session = FakeSession(error=requests.exceptions.ConnectionError("down"))

        assert make_service(session).is_available() is False
