"""
Tests for embedding providers and the dimension-checking EmbeddingService.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from docvec.vector.embeddings import (
    DeterministicHashEmbedding,
    EmbeddingService,
    IEmbeddingProvider,
    OpenAIEmbedding,
    SentenceTransformerEmbedding,
)
from docvec.vector.errors import DimensionMismatchError, InvalidArgumentError


def _fake_openai_client(dimension=4):
    """OpenAI client stub whose embeddings.create echoes one vector per input."""
    client = MagicMock()

    def create(model, input):
        return SimpleNamespace(data=[
            SimpleNamespace(embedding=[float(len(text))] * dimension) for text in input
        ])

    client.embeddings.create.side_effect = create
    return client


def test_embedding_interface():
    """Test that the embedding provider implements the interface correctly."""
    embedder = DeterministicHashEmbedding(dimension=384)

    assert isinstance(embedder, IEmbeddingProvider)
    assert embedder.get_dimension() == 384


def test_deterministic_embedding():
    """Test that the same input always produces the same output."""
    embedder = DeterministicHashEmbedding(dimension=384)

    vector1 = embedder.embed_text("Hello, world!")
    vector2 = DeterministicHashEmbedding(dimension=384).embed_text("Hello, world!")

    assert vector1 == vector2
    assert len(vector1) == 384


def test_hash_embedding_fills_every_dimension():
    """Values come from the hash for all dimensions, not just the first few."""
    vector = DeterministicHashEmbedding(dimension=1536).embed_text("test")

    assert len(vector) == 1536
    assert all(-1.0 <= v < 1.0 for v in vector)
    assert sum(1 for v in vector if v == 0.0) < 5


def test_different_inputs_produce_different_vectors():
    embedder = DeterministicHashEmbedding(dimension=64)
    assert embedder.embed_text("Hello, world!") != embedder.embed_text("Goodbye, world!")


def test_embed_texts_default_batches_through_embed_text():
    embedder = DeterministicHashEmbedding(dimension=16)
    texts = ["a", "b", "c"]

    assert embedder.embed_texts(texts) == [embedder.embed_text(t) for t in texts]


def test_hash_embedding_rejects_bad_dimension():
    with pytest.raises(InvalidArgumentError):
        DeterministicHashEmbedding(dimension=0)


def test_openai_embedding_batches_requests():
    client = _fake_openai_client(dimension=4)
    embedder = OpenAIEmbedding(model="text-embedding-3-small", batch_size=2, client=client)

    vectors = embedder.embed_texts(["a", "bb", "ccc", "dddd", "eeeee"])

    assert len(vectors) == 5
    assert vectors[2] == [3.0] * 4
    assert client.embeddings.create.call_count == 3
    first_call = client.embeddings.create.call_args_list[0]
    assert first_call.kwargs == {"model": "text-embedding-3-small", "input": ["a", "bb"]}


def test_openai_embedding_single_text_and_empty_batch():
    client = _fake_openai_client(dimension=3)
    embedder = OpenAIEmbedding(client=client)

    assert embedder.embed_text("abc") == [3.0, 3.0, 3.0]
    assert embedder.embed_texts([]) == []
    assert client.embeddings.create.call_count == 1


def test_openai_dimension_known_model_and_measured():
    known = OpenAIEmbedding(model="text-embedding-3-small", client=_fake_openai_client())
    assert known.get_dimension() == 1536

    client = _fake_openai_client(dimension=7)
    unknown = OpenAIEmbedding(model="custom-model", client=client)
    assert unknown.get_dimension() == 7
    assert client.embeddings.create.call_count == 1


def test_openai_errors_propagate_unchanged():
    client = MagicMock()
    error = RuntimeError("upstream failure")
    client.embeddings.create.side_effect = error
    embedder = OpenAIEmbedding(client=client)

    with pytest.raises(RuntimeError) as exc_info:
        embedder.embed_text("hello")

    assert exc_info.value is error
    # No local retry
    assert client.embeddings.create.call_count == 1


def test_sentence_transformer_model_is_lazy():
    embedder = SentenceTransformerEmbedding("all-mpnet-base-v2")
    assert embedder._model is None


def test_sentence_transformer_uses_loaded_model():
    embedder = SentenceTransformerEmbedding("stub-model")
    model = MagicMock()
    model.encode.return_value = MagicMock(tolist=lambda: [0.1, 0.2])
    model.get_sentence_embedding_dimension.return_value = 2
    embedder._model = model

    assert embedder.embed_text("hi") == [0.1, 0.2]
    assert embedder.get_dimension() == 2


def test_embedding_service_validates_dimension():
    provider = DeterministicHashEmbedding(dimension=8)
    service = EmbeddingService(provider, expected_dimension=16)

    with pytest.raises(DimensionMismatchError) as exc_info:
        service.embed_text("hello")

    assert exc_info.value.expected == 16
    assert exc_info.value.actual == 8
    with pytest.raises(DimensionMismatchError):
        service.embed_texts(["a", "b"])


def test_embedding_service_defaults_to_provider_dimension():
    service = EmbeddingService(DeterministicHashEmbedding(dimension=8))

    assert service.get_dimension() == 8
    assert len(service.embed_text("hello")) == 8
    assert [len(v) for v in service.embed_texts(["a", "b"])] == [8, 8]


def test_embedding_service_catches_wrong_sized_openai_output():
    """The configured dimension is checked against what the API really returns."""
    client = _fake_openai_client(dimension=4)
    service = EmbeddingService(OpenAIEmbedding(client=client), expected_dimension=1536)

    with pytest.raises(DimensionMismatchError):
        service.embed_text("hello")


def test_embedding_service_propagates_provider_errors():
    provider = MagicMock()
    provider.embed_text.side_effect = ConnectionError("network down")

    service = EmbeddingService(provider, expected_dimension=3)
    with pytest.raises(ConnectionError):
        service.embed_text("hello")
