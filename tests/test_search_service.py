"""
Tests for document indexing and semantic search over the vector store.
"""

from unittest.mock import MagicMock

import pytest

from docvec.core.samples import SAMPLE_DOCUMENTS
from docvec.core.search_service import document_text, ensure_index, index_documents, semantic_search
from docvec.vector.embeddings import DeterministicHashEmbedding, EmbeddingService
from docvec.vector.errors import DimensionMismatchError, InvalidArgumentError
from docvec.vector.index import InMemoryVectorStore

INDEX = "documents_vector_index"


@pytest.fixture
def store():
    with InMemoryVectorStore() as s:
        yield s


@pytest.fixture
def embedder():
    return EmbeddingService(DeterministicHashEmbedding(dimension=32))


@pytest.fixture
def indexed(store, embedder):
    ensure_index(store, INDEX, embedder.get_dimension(), "cosine")
    index_documents(store, embedder, INDEX, SAMPLE_DOCUMENTS)
    return store


def test_document_text_joins_fields():
    doc = {"title": "Deep Learning", "content": "Learn by example", "author": "Jane"}
    assert document_text(doc) == "Deep Learning Learn by example"
    assert document_text(doc, text_fields=("author",)) == "Jane"


def test_index_documents_stores_metadata(indexed):
    assert indexed.count(INDEX) == len(SAMPLE_DOCUMENTS)

    stats = indexed.describe_index(INDEX)
    assert stats.dimension == 32


def test_exact_text_query_finds_its_document(indexed, embedder):
    doc = SAMPLE_DOCUMENTS[1]
    results = semantic_search(indexed, embedder, INDEX, document_text(doc), top_k=1)

    assert results[0].id == doc["id"]
    assert results[0].score == pytest.approx(1.0)
    assert results[0].metadata["author"] == "Jane Smith"
    assert "indexed_at" in results[0].metadata


def test_filtered_search_restricts_authors(indexed, embedder):
    results = semantic_search(
        indexed, embedder, INDEX, "artificial intelligence",
        top_k=5, filter={"author": {"$in": ["John Doe", "Jane Smith"]}},
    )

    assert sorted(r.metadata["author"] for r in results) == ["Jane Smith", "John Doe"]


def test_regex_and_category_filter(indexed, embedder):
    results = semantic_search(
        indexed, embedder, INDEX, "learning",
        top_k=5, filter={"category": "AI", "author": {"$regex": "John|Jane"}},
    )

    # Bob Johnson matches "John" as a substring
    assert sorted(r.id for r in results) == ["doc1", "doc2", "doc3"]


def test_search_uses_embedder_and_store():
    store = MagicMock()
    embedder = MagicMock()
    embedder.embed_text.return_value = [0.1, 0.2]
    store.query.return_value = []

    semantic_search(store, embedder, INDEX, "query", top_k=3, min_score=0.5)

    embedder.embed_text.assert_called_once_with("query")
    store.query.assert_called_once_with(INDEX, [0.1, 0.2], top_k=3, filter=None, min_score=0.5)


def test_empty_query_rejected(indexed, embedder):
    with pytest.raises(InvalidArgumentError):
        semantic_search(indexed, embedder, INDEX, "   ")


def test_documents_need_ids_and_text(store, embedder):
    ensure_index(store, INDEX, 32, "cosine")
    with pytest.raises(InvalidArgumentError):
        index_documents(store, embedder, INDEX, [{"title": "no id"}])
    with pytest.raises(InvalidArgumentError):
        index_documents(store, embedder, INDEX, [{"id": "x", "author": "no text"}])
    assert index_documents(store, embedder, INDEX, []) == []


def test_provider_dimension_mismatch_blocks_indexing(store):
    """Index built for 64 dims; provider actually returns 32."""
    ensure_index(store, INDEX, 64, "cosine")
    service = EmbeddingService(DeterministicHashEmbedding(dimension=32), expected_dimension=64)

    with pytest.raises(DimensionMismatchError):
        index_documents(store, service, INDEX, SAMPLE_DOCUMENTS)
    assert store.count(INDEX) == 0


def test_embedding_errors_propagate(indexed):
    embedder = MagicMock()
    embedder.embed_text.side_effect = TimeoutError("embedding API timed out")

    with pytest.raises(TimeoutError):
        semantic_search(indexed, embedder, INDEX, "anything")
