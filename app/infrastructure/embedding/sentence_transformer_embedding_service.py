"""
Local embedding generation with sentence-transformers.

An in-process alternative to Ollama: no network, but the model weights
are downloaded on first use. The model is loaded lazily so constructing
the service (e.g. at app startup) stays cheap.
"""

import logging
from typing import Any, Optional

from sentence_transformers import SentenceTransformer

from app.domain.errors import EmbeddingServiceUnavailableError, EmbeddingTextTooLongError
from app.domain.ports import EmbeddingService
from app.domain.value_objects import EmbeddingResult

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "all-MiniLM-L6-v2"
MAX_TEXT_LENGTH = 7000


class SentenceTransformerEmbeddingService(EmbeddingService):
    def __init__(
        self,
        model_name: str = DEFAULT_MODEL_NAME,
        model: Optional[Any] = None,
    ) -> None:
        """
        Args:
            model_name: Name of the sentence-transformers model to use.
            model: Preloaded model (anything with an encode() method).
                Mostly useful in tests.
        """
        self._model_name = model_name
        self._model = model

    def _get_model(self) -> Any:
        if self._model is None:
            try:
                self._model = SentenceTransformer(self._model_name)
            except Exception as e:
                raise EmbeddingServiceUnavailableError(
                    f"could not load model '{self._model_name}': {e}"
                ) from e
            logger.info(f"Loaded sentence-transformers model '{self._model_name}'")
        return self._model

    def generate_embedding(self, text: str) -> EmbeddingResult:
        prompt = text.strip()
        if len(prompt) > MAX_TEXT_LENGTH:
            raise EmbeddingTextTooLongError(len(prompt), MAX_TEXT_LENGTH)

        model = self._get_model()
        try:
            vector = model.encode(prompt, convert_to_numpy=True)
        except Exception as e:
            raise EmbeddingServiceUnavailableError(f"encoding failed: {e}") from e

        return EmbeddingResult(
            embedding=[float(x) for x in vector], model=self._model_name
        )

    def is_available(self) -> bool:
        try:
            self._get_model()
        except EmbeddingServiceUnavailableError as e:
            logger.warning(str(e))
            return False
        return True
