"""
Ollama HTTP client implementing the EmbeddingService port.

Talks to a local (or remote) Ollama server:

    POST {base_url}/api/embeddings   {"model": ..., "prompt": ...}
    GET  {base_url}/api/tags         readiness probe

Every transport-level problem (connection refused, timeout, non-2xx,
malformed body) surfaces as EmbeddingServiceUnavailableError, the single
error kind callers are allowed to retry. This adapter never retries itself.

The constructor accepts an optional `session` parameter so tests can inject
a fake session that returns canned responses.
"""

import logging
from typing import Any, Optional

import requests

from app.domain.errors import EmbeddingServiceUnavailableError, EmbeddingTextTooLongError
from app.domain.ports import EmbeddingService
from app.domain.value_objects import EmbeddingResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_TIMEOUT_S = 30.0
MAX_TEXT_LENGTH = 7000
PROBE_TIMEOUT_S = 5.0


class OllamaEmbeddingService(EmbeddingService):
    """
    Embedding generation through Ollama.

    Usage:
        # Production
        service = OllamaEmbeddingService(base_url="http://ollama:11434")
        result = service.generate_embedding("Clean Code Robert C. Martin ...")

        # Testing (with fake session)
        service = OllamaEmbeddingService(session=fake_session)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        session: Optional[Any] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout_s = timeout_s

        if session is not None:
            self._session = session
        else:
            self._session = requests.Session()
            self._session.headers.update({"Accept": "application/json"})

    @property
    def model(self) -> str:
        return self._model

    def generate_embedding(self, text: str) -> EmbeddingResult:
        """
        Generate an embedding for the given text.

        Raises:
            EmbeddingTextTooLongError: If the trimmed text is over 7000 chars
            EmbeddingServiceUnavailableError: On any transport failure
        """
        prompt = text.strip()
        if len(prompt) > MAX_TEXT_LENGTH:
            raise EmbeddingTextTooLongError(len(prompt), MAX_TEXT_LENGTH)

        url = f"{self._base_url}/api/embeddings"
        try:
            response = self._session.post(
                url,
                json={"model": self._model, "prompt": prompt},
                timeout=self._timeout_s,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(f"Ollama request timed out after {self._timeout_s}s")
            raise EmbeddingServiceUnavailableError(
                f"request timed out after {self._timeout_s}s"
            ) from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"Ollama request failed: {type(e).__name__}")
            raise EmbeddingServiceUnavailableError(f"connection failed ({e})") from e

        if not response.ok:
            raise EmbeddingServiceUnavailableError(
                f"Ollama returned HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise EmbeddingServiceUnavailableError("invalid JSON response") from e

        embedding = data.get("embedding") if isinstance(data, dict) else None
        if not isinstance(embedding, list) or not embedding:
            raise EmbeddingServiceUnavailableError("response has no embedding")

        return EmbeddingResult(embedding=[float(x) for x in embedding], model=self._model)

    def is_available(self) -> bool:
        """Probe GET /api/tags. Never raises."""
        try:
            response = self._session.get(
                f"{self._base_url}/api/tags", timeout=PROBE_TIMEOUT_S
            )
        except requests.exceptions.RequestException as e:
            logger.debug(f"Ollama probe failed: {e}")
            return False
        return bool(response.ok)
