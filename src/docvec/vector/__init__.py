"""
Vector index engine: records, similarity metrics, metadata filters,
the in-memory store and embedding providers.
"""

from .embeddings import (
    DeterministicHashEmbedding,
    EmbeddingService,
    IEmbeddingProvider,
    OpenAIEmbedding,
    SentenceTransformerEmbedding,
)
from .errors import (
    AlreadyExistsError,
    ClosedError,
    DimensionMismatchError,
    InvalidArgumentError,
    NotFoundError,
    VectorStoreError,
)
from .filters import Eq, In, Regex, parse_filter
from .index import InMemoryVectorStore, IVectorStore
from .types import IndexStats, Metric, QueryResult, VectorRecord

__all__ = [
    'IVectorStore',
    'InMemoryVectorStore',
    'VectorRecord',
    'QueryResult',
    'IndexStats',
    'Metric',
    'Eq',
    'In',
    'Regex',
    'parse_filter',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'OpenAIEmbedding',
    'EmbeddingService',
    'VectorStoreError',
    'NotFoundError',
    'AlreadyExistsError',
    'DimensionMismatchError',
    'ClosedError',
    'InvalidArgumentError',
]
