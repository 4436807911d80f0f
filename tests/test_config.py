"""
Tests for environment-based configuration.
"""

import pytest
from pathlib import Path

from app.config import ConfigError, Settings, load_settings
from app.infrastructure.embedding.factory import build_embedding_service
from app.infrastructure.embedding.ollama_embedding_service import OllamaEmbeddingService
from app.infrastructure.embedding.sentence_transformer_embedding_service import (
    SentenceTransformerEmbeddingService,
)


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings({})

        assert settings == Settings()
        assert settings.db_path == Path("data/catalog.db")
        assert settings.ollama_timeout_s == 30.0
        assert settings.seed_batch_size == 50
        assert settings.seed_max_retries == 3

    def test_reads_environment(self):
        settings = load_settings({
            "DB_PATH": "/tmp/x.db",
            "EMBEDDING_BACKEND": "Sentence-Transformers",
            "OLLAMA_TIMEOUT_S": "5.5",
            "LOG_LEVEL": "debug",
            "SEED_BATCH_SIZE": "10",
            "SEED_RETRY_BASE_DELAY_S": "0",
        })

        assert settings.db_path == Path("/tmp/x.db")
        assert settings.embedding_backend == "sentence-transformers"
        assert settings.ollama_timeout_s == 5.5
        assert settings.log_level == "DEBUG"
        assert settings.seed_batch_size == 10
        assert settings.seed_retry_base_delay_s == 0.0

    def test_blank_values_use_defaults(self):
        assert load_settings({"SEED_MAX_RETRIES": "  "}).seed_max_retries == 3

    @pytest.mark.parametrize(
        "variable, value",
        [
            ("SEED_BATCH_SIZE", "fifty"),
            ("SEED_BATCH_SIZE", "0"),
            ("OLLAMA_TIMEOUT_S", "-1"),
            ("EMBEDDING_BACKEND", "openai"),
            ("LOG_LEVEL", "LOUD"),
        ],
    )
    def test_invalid_values(self, variable, value):
        with pytest.raises(ConfigError) as exc_info:
            load_settings({variable: value})

        assert exc_info.value.variable == variable
        assert variable in str(exc_info.value)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            load_settings({"SEED_MAX_RETRIES": "x"})


class TestBuildEmbeddingService:
    def test_ollama_by_default(self):
        service = build_embedding_service(Settings(ollama_model="mxbai-embed-large"))

        assert isinstance(service, OllamaEmbeddingService)
        assert service.model == "mxbai-embed-large"

    def test_sentence_transformers(self):
        service = build_embedding_service(Settings(embedding_backend="sentence-transformers"))

        assert isinstance(service, SentenceTransformerEmbeddingService)
