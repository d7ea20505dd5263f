"""
Error types raised by the vector store and its collaborators.
"""

from typing import Optional


class VectorStoreError(Exception):
    """Base class for all vector store errors."""
    pass


class NotFoundError(VectorStoreError):
    """Operation referenced an index (or record) that does not exist."""

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message)
        self.name = name


class AlreadyExistsError(VectorStoreError):
    """Index re-created with a different dimension or metric."""
    pass


class DimensionMismatchError(VectorStoreError, ValueError):
    """Vector length does not match the index (or configured) dimension."""

    def __init__(self, expected: int, actual: int, context: str = "vector"):
        super().__init__(f"{context} dimension {actual} does not match expected dimension {expected}")
        self.expected = expected
        self.actual = actual


class ClosedError(VectorStoreError):
    """Operation attempted after the store was closed."""
    pass


class InvalidArgumentError(VectorStoreError, ValueError):
    """Bad top_k, metric, filter, id or vector payload."""
    pass
