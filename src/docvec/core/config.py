"""
Environment-driven configuration and component factories.

Values are read from the environment (after loading a local .env file) each
time a getter is called, so tests and scripts can override them at runtime.
"""

import os
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv

from ..vector.errors import InvalidArgumentError
from ..vector.types import Metric

load_dotenv()

DEFAULT_DB_PATH = "./data/docvec.db"
DEFAULT_INDEX_NAME = "documents_vector_index"
DEFAULT_DIMENSION = 1536
DEFAULT_METRIC = "cosine"
DEFAULT_EMBED_PROVIDER = "hash"  # hash|sentence_transformers|openai
DEFAULT_EMBED_MODEL_NAME = "text-embedding-3-small"
DEFAULT_EMBED_BATCH_SIZE = 64

EMBED_PROVIDERS = ("hash", "sentence_transformers", "openai")

# Version string
VERSION = "0.1.0"


def debug_enabled() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_db_path() -> str:
    return os.getenv("DB_PATH", DEFAULT_DB_PATH)


def get_index_name() -> str:
    return os.getenv("VECTOR_INDEX_NAME", DEFAULT_INDEX_NAME)


def get_vector_dimension() -> int:
    """Configured vector dimension. Raises InvalidArgumentError if unusable."""
    raw = os.getenv("VECTOR_DIMENSION", str(DEFAULT_DIMENSION))
    try:
        dimension = int(raw)
    except ValueError as e:
        raise InvalidArgumentError(f"VECTOR_DIMENSION must be an integer, got {raw!r}") from e
    if dimension <= 0:
        raise InvalidArgumentError(f"VECTOR_DIMENSION must be positive, got {dimension}")
    return dimension


def get_vector_metric() -> str:
    return os.getenv("VECTOR_METRIC", DEFAULT_METRIC).strip().lower()


def get_embed_provider_name() -> str:
    return os.getenv("EMBED_PROVIDER", DEFAULT_EMBED_PROVIDER).strip().lower()


def get_embed_model_name() -> str:
    return os.getenv("EMBED_MODEL_NAME", DEFAULT_EMBED_MODEL_NAME)


def get_embed_batch_size() -> int:
    raw = os.getenv("EMBED_BATCH_SIZE", str(DEFAULT_EMBED_BATCH_SIZE))
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidArgumentError(f"EMBED_BATCH_SIZE must be an integer, got {raw!r}") from e


def get_openai_api_key() -> str:
    return os.getenv("OPENAI_API_KEY", "")


def ensure_db_directory() -> None:
    """Ensure the database directory exists."""
    Path(get_db_path()).parent.mkdir(parents=True, exist_ok=True)


def validate_config() -> List[str]:
    """Validate configuration and return any issues."""
    issues = []

    try:
        get_vector_dimension()
    except InvalidArgumentError as e:
        issues.append(str(e))

    if get_vector_metric() not in [m.value for m in Metric]:
        issues.append(f"VECTOR_METRIC must be one of {[m.value for m in Metric]}")

    provider = get_embed_provider_name()
    if provider not in EMBED_PROVIDERS:
        issues.append(f"EMBED_PROVIDER must be one of {list(EMBED_PROVIDERS)}")
    elif provider == "openai" and not get_openai_api_key():
        issues.append("EMBED_PROVIDER=openai requires OPENAI_API_KEY")

    try:
        if get_embed_batch_size() <= 0:
            issues.append("EMBED_BATCH_SIZE must be positive")
    except InvalidArgumentError as e:
        issues.append(str(e))

    return issues


def public_config() -> Dict[str, Any]:
    """Configuration snapshot without secrets, safe to print or log."""
    return {
        "db_path": get_db_path(),
        "index_name": get_index_name(),
        "dimension": os.getenv("VECTOR_DIMENSION", str(DEFAULT_DIMENSION)),
        "metric": get_vector_metric(),
        "embed_provider": get_embed_provider_name(),
        "embed_model": get_embed_model_name(),
        "openai_api_key_set": bool(get_openai_api_key()),
        "debug": debug_enabled(),
        "version": VERSION,
    }


def get_vector_store():
    """Get a fresh vector store handle. Callers own it and must close it."""
    from ..vector.index import InMemoryVectorStore
    return InMemoryVectorStore()


def get_embedding_provider():
    """Get configured embedding provider implementation."""
    provider = get_embed_provider_name()

    if provider == "hash":
        from ..vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding(dimension=get_vector_dimension())
    elif provider == "sentence_transformers":
        from ..vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(get_embed_model_name())
    elif provider == "openai":
        api_key = get_openai_api_key()
        if not api_key:
            raise InvalidArgumentError("EMBED_PROVIDER=openai requires OPENAI_API_KEY")
        from ..vector.embeddings import OpenAIEmbedding
        return OpenAIEmbedding(
            model=get_embed_model_name(),
            api_key=api_key,
            batch_size=get_embed_batch_size(),
        )
    raise InvalidArgumentError(f"Unsupported embedding provider: {provider}")


def get_embedding_service():
    """Embedding provider wrapped with a check against VECTOR_DIMENSION."""
    from ..vector.embeddings import EmbeddingService
    return EmbeddingService(get_embedding_provider(), expected_dimension=get_vector_dimension())


def get_document_store():
    """Open a document store on DB_PATH. Callers own it and must close it."""
    from .document_store import DocumentStore
    ensure_db_directory()
    return DocumentStore(get_db_path())
