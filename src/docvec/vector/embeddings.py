"""
Embedding providers and the dimension-checking embedding service.

Providers turn text into vectors. Their failures (network errors, auth
errors, model load errors) are passed through to the caller untouched.
"""

import hashlib
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from openai import OpenAI

from ..util.logging import logger
from .errors import DimensionMismatchError, InvalidArgumentError

DEFAULT_OPENAI_MODEL = "text-embedding-3-small"
DEFAULT_SENTENCE_TRANSFORMER_MODEL = "all-mpnet-base-v2"
DEFAULT_EMBED_BATCH_SIZE = 64

# Output sizes of well-known models, used when a provider is asked for its
# dimension before it has produced any vector
KNOWN_MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "all-mpnet-base-v2": 768,
    "all-MiniLM-L6-v2": 384,
}


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector for given text."""
        pass

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        """Generate embedding vectors for a batch of texts."""
        return [self.embed_text(text) for text in texts]

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for testing purposes.

    Vectors are derived from SHA-256 digests of the text (re-hashed with a
    counter until the dimension is filled), mapped to [-1, 1]. Equal texts
    always give equal vectors, without any model download.
    """

    def __init__(self, dimension: int = 384):
        if dimension <= 0:
            raise InvalidArgumentError(f"dimension must be positive, got {dimension}")
        self.dimension = dimension

    def embed_text(self, text: str) -> List[float]:
        """Generate deterministic embedding vector using hash function."""
        vector: List[float] = []
        counter = 0
        while len(vector) < self.dimension:
            digest = hashlib.sha256(f"{counter}:{text}".encode("utf-8")).digest()
            for i in range(0, len(digest), 4):
                if len(vector) >= self.dimension:
                    break
                value = int.from_bytes(digest[i:i + 4], "big")
                # Map [0, 2**32) onto [-1, 1)
                vector.append((value / 2**32) * 2 - 1)
            counter += 1
        return vector

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models.

    The model is loaded on first use.
    """

    def __init__(self, model_name: str = DEFAULT_SENTENCE_TRANSFORMER_MODEL):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            logger.info(f"Loading sentence-transformers model '{self.model_name}'")
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector using sentence transformers."""
        embedding = self.model.encode(text, convert_to_tensor=False)
        return embedding.tolist()

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        embeddings = self.model.encode(list(texts), convert_to_tensor=False)
        return [e.tolist() for e in embeddings]

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            self._dimension = self.model.get_sentence_embedding_dimension()
        return self._dimension


class OpenAIEmbedding(IEmbeddingProvider):
    """OpenAI embeddings API provider with client-side batching."""

    def __init__(
        self,
        model: str = DEFAULT_OPENAI_MODEL,
        api_key: Optional[str] = None,
        batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
        client: Optional[OpenAI] = None,
    ):
        if batch_size <= 0:
            raise InvalidArgumentError(f"batch_size must be positive, got {batch_size}")
        self.model = model
        self.batch_size = batch_size
        self.client = client or OpenAI(api_key=api_key)
        self._dimension = KNOWN_MODEL_DIMENSIONS.get(model)

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        embeddings: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = list(texts[i:i + self.batch_size])
            response = self.client.embeddings.create(model=self.model, input=batch)
            embeddings.extend([item.embedding for item in response.data])

        if embeddings and self._dimension is None:
            self._dimension = len(embeddings[0])
        return embeddings

    def embed_text(self, text: str) -> List[float]:
        vectors = self.embed_texts([text])
        return vectors[0] if vectors else []

    def get_dimension(self) -> int:
        if self._dimension is None:
            self._dimension = len(self.embed_text("dimension check"))
        return self._dimension


class EmbeddingService:
    """
    Wraps an embedding provider and checks every vector it returns against
    the dimension the vector index was created with.
    """

    def __init__(self, provider: IEmbeddingProvider, expected_dimension: Optional[int] = None):
        """
        Initialize the embeddings service.

        Args:
            provider: Embedding provider to delegate to
            expected_dimension: Required vector length; defaults to the
                provider's own reported dimension
        """
        self.provider = provider
        self.expected_dimension = expected_dimension or provider.get_dimension()

    def get_dimension(self) -> int:
        return self.expected_dimension

    def _check(self, vector: Sequence[float]) -> List[float]:
        if len(vector) != self.expected_dimension:
            logger.log_operation(
                "embedding.validate", "rejected",
                {"expected": self.expected_dimension, "actual": len(vector)},
            )
            raise DimensionMismatchError(self.expected_dimension, len(vector), "embedding")
        return list(vector)

    def embed_text(self, text: str) -> List[float]:
        return self._check(self.provider.embed_text(text))

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed multiple texts into vectors.

        Args:
            texts: List of text strings to embed

        Returns:
            One vector per text, in input order
        """
        vectors = self.provider.embed_texts(list(texts))
        if len(vectors) != len(texts):
            raise InvalidArgumentError(
                f"embedding provider returned {len(vectors)} vectors for {len(texts)} texts"
            )
        return [self._check(v) for v in vectors]
