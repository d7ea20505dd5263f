"""
Tests for environment-driven configuration and factories.
"""

import pytest

from docvec.core import config
from docvec.core.document_store import DocumentStore
from docvec.vector.embeddings import DeterministicHashEmbedding, EmbeddingService, OpenAIEmbedding
from docvec.vector.errors import InvalidArgumentError
from docvec.vector.index import InMemoryVectorStore

CONFIG_VARS = [
    "DB_PATH", "VECTOR_INDEX_NAME", "VECTOR_DIMENSION", "VECTOR_METRIC",
    "EMBED_PROVIDER", "EMBED_MODEL_NAME", "EMBED_BATCH_SIZE", "OPENAI_API_KEY", "DEBUG",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test from defaults regardless of the developer's .env."""
    for var in CONFIG_VARS:
        monkeypatch.delenv(var, raising=False)


def test_defaults():
    assert config.get_index_name() == "documents_vector_index"
    assert config.get_vector_dimension() == 1536
    assert config.get_vector_metric() == "cosine"
    assert config.get_embed_provider_name() == "hash"
    assert config.get_embed_model_name() == "text-embedding-3-small"
    assert not config.debug_enabled()
    assert config.validate_config() == []


def test_getters_read_environment_at_call_time(monkeypatch):
    monkeypatch.setenv("VECTOR_DIMENSION", "384")
    monkeypatch.setenv("VECTOR_METRIC", "Euclidean")
    monkeypatch.setenv("DEBUG", "true")

    assert config.get_vector_dimension() == 384
    assert config.get_vector_metric() == "euclidean"
    assert config.debug_enabled()


@pytest.mark.parametrize("value", ["abc", "0", "-5"])
def test_bad_dimension(monkeypatch, value):
    monkeypatch.setenv("VECTOR_DIMENSION", value)

    with pytest.raises(InvalidArgumentError):
        config.get_vector_dimension()
    assert any("VECTOR_DIMENSION" in issue for issue in config.validate_config())


def test_validate_config_reports_issues(monkeypatch):
    monkeypatch.setenv("VECTOR_METRIC", "manhattan")
    monkeypatch.setenv("EMBED_PROVIDER", "openai")
    monkeypatch.setenv("EMBED_BATCH_SIZE", "0")

    issues = config.validate_config()
    assert any("VECTOR_METRIC" in issue for issue in issues)
    assert any("OPENAI_API_KEY" in issue for issue in issues)
    assert any("EMBED_BATCH_SIZE" in issue for issue in issues)


def test_unknown_provider(monkeypatch):
    monkeypatch.setenv("EMBED_PROVIDER", "magic")

    assert any("EMBED_PROVIDER" in issue for issue in config.validate_config())
    with pytest.raises(InvalidArgumentError):
        config.get_embedding_provider()


def test_hash_provider_uses_configured_dimension(monkeypatch):
    monkeypatch.setenv("VECTOR_DIMENSION", "64")

    provider = config.get_embedding_provider()
    assert isinstance(provider, DeterministicHashEmbedding)
    assert provider.get_dimension() == 64

    service = config.get_embedding_service()
    assert isinstance(service, EmbeddingService)
    assert service.get_dimension() == 64


def test_openai_provider_requires_key(monkeypatch):
    monkeypatch.setenv("EMBED_PROVIDER", "openai")
    with pytest.raises(InvalidArgumentError):
        config.get_embedding_provider()

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("EMBED_BATCH_SIZE", "16")
    provider = config.get_embedding_provider()
    assert isinstance(provider, OpenAIEmbedding)
    assert provider.batch_size == 16


def test_public_config_hides_secrets(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-secret")

    public = config.public_config()
    assert public["openai_api_key_set"] is True
    assert "sk-secret" not in str(public)


def test_factories_return_fresh_handles(monkeypatch, tmp_path):
    monkeypatch.setenv("DB_PATH", str(tmp_path / "nested" / "docvec.db"))

    first = config.get_vector_store()
    second = config.get_vector_store()
    assert isinstance(first, InMemoryVectorStore)
    assert first is not second
    first.close()
    second.close()

    with config.get_document_store() as store:
        assert isinstance(store, DocumentStore)
        assert store.health_check()
    assert (tmp_path / "nested" / "docvec.db").exists()
