"""
Semantic indexing and search: embeds text with an embedding provider and
drives a vector store.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..util.logging import logger
from ..vector.errors import InvalidArgumentError
from ..vector.index import IVectorStore
from ..vector.types import Metric, QueryResult, VectorRecord


def ensure_index(store: IVectorStore, index_name: str, dimension: int, metric: Union[str, Metric] = Metric.COSINE) -> None:
    """Create the index, or reuse it if it already exists with the same shape."""
    store.create_index(index_name, dimension, metric)


def document_text(document: Mapping[str, Any], text_fields: Sequence[str] = ("title", "content")) -> str:
    """Join the configured text fields of a document into one string to embed."""
    parts = [str(document[f]) for f in text_fields if document.get(f)]
    return " ".join(parts)


def index_documents(
    store: IVectorStore,
    embedder,
    index_name: str,
    documents: Sequence[Mapping[str, Any]],
    text_fields: Sequence[str] = ("title", "content"),
) -> List[str]:
    """
    Embed and upsert documents into a vector index.

    Each document must carry an ``id``. Its metadata is the document itself
    plus an ``indexed_at`` timestamp.

    Args:
        store: Vector store holding the index
        embedder: Anything with ``embed_texts`` (provider or EmbeddingService)
        index_name: Target index, which must already exist
        documents: Documents to index
        text_fields: Fields joined to form the text that is embedded

    Returns:
        Ids of the indexed documents
    """
    if not documents:
        return []

    texts = []
    for doc in documents:
        if not doc.get("id"):
            raise InvalidArgumentError("every document needs a non-empty 'id'")
        text = document_text(doc, text_fields)
        if not text.strip():
            raise InvalidArgumentError(f"document '{doc['id']}' has no text in fields {list(text_fields)}")
        texts.append(text)

    embeddings = embedder.embed_texts(texts)

    indexed_at = datetime.now(timezone.utc).isoformat()
    records = []
    for doc, embedding in zip(documents, embeddings):
        metadata: Dict[str, Any] = dict(doc)
        metadata["indexed_at"] = indexed_at
        records.append(VectorRecord(id=str(doc["id"]), vector=embedding, metadata=metadata))

    ids = store.upsert(index_name, records)
    logger.info(f"Indexed {len(ids)} documents into '{index_name}'")
    return ids


def semantic_search(
    store: IVectorStore,
    embedder,
    index_name: str,
    query: str,
    top_k: int = 5,
    filter: Optional[Mapping[str, Any]] = None,
    min_score: Optional[float] = None,
) -> List[QueryResult]:
    """
    Embed ``query`` and return the most similar records.

    Embedding provider errors propagate unchanged.
    """
    if not query or not query.strip():
        raise InvalidArgumentError("query cannot be empty")

    query_embedding = embedder.embed_text(query)
    return store.query(
        index_name,
        query_embedding,
        top_k=top_k,
        filter=filter,
        min_score=min_score,
    )
