"""
Vector store interface and the numpy-backed in-memory implementation.

Indexes are created explicitly with a fixed dimension and metric. Each index
keeps an immutable snapshot (ids, stacked vector matrix, metadata); mutations
build a new snapshot under the index lock and swap it in, so a query always
scores one consistent snapshot and never a half-applied batch.
"""

import copy
import numbers
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..util.logging import logger
from .errors import (
    AlreadyExistsError,
    ClosedError,
    DimensionMismatchError,
    InvalidArgumentError,
    NotFoundError,
    VectorStoreError,
)
from .filters import matches_all, parse_filter
from .similarity import parse_metric, score
from .types import IndexStats, Metric, QueryResult, VectorRecord


class IVectorStore(ABC):
    """Abstract interface for vector storage operations."""

    @abstractmethod
    def create_index(self, name: str, dimension: int, metric: Union[str, Metric] = Metric.COSINE) -> None:
        """Create a named index; no-op if it already exists with the same shape."""
        pass

    @abstractmethod
    def upsert(self, index_name: str, records: Sequence[VectorRecord]) -> List[str]:
        """Insert or replace records by id. The whole batch succeeds or fails."""
        pass

    @abstractmethod
    def query(
        self,
        index_name: str,
        query_vector: Sequence[float],
        top_k: int = 10,
        filter: Optional[Mapping[str, Any]] = None,
        min_score: Optional[float] = None,
        include_vector: bool = False,
    ) -> List[QueryResult]:
        """Search for similar vectors and return ranked results."""
        pass

    @abstractmethod
    def delete_index(self, name: str) -> None:
        """Delete an index and all its records. Missing indexes are ignored."""
        pass

    @abstractmethod
    def list_indexes(self) -> List[str]:
        """Names of existing indexes."""
        pass

    @abstractmethod
    def describe_index(self, name: str) -> IndexStats:
        """Dimension, metric and record count of an index."""
        pass

    @abstractmethod
    def update_vector(
        self,
        index_name: str,
        record_id: str,
        vector: Optional[Sequence[float]] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Update the vector and/or metadata of one existing record."""
        pass

    @abstractmethod
    def delete_vector(self, index_name: str, record_id: str) -> None:
        """Delete one record by id. Missing ids are ignored."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release resources. Every later call raises ClosedError."""
        pass

    def upsert_vectors(
        self,
        index_name: str,
        vectors: Sequence[Sequence[float]],
        metadata: Optional[Sequence[Mapping[str, Any]]] = None,
        ids: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """
        Upsert parallel sequences of vectors, metadata and ids.

        Args:
            index_name: Target index
            vectors: Vectors to store
            metadata: Optional metadata per vector
            ids: Optional ids per vector; UUID4 strings are generated when omitted

        Returns:
            The ids of the upserted records, in input order
        """
        # Surface ClosedError / NotFoundError before argument errors
        self.describe_index(index_name)

        vectors = list(vectors)
        if metadata is not None and len(metadata) != len(vectors):
            raise InvalidArgumentError(
                f"metadata length {len(metadata)} does not match vectors length {len(vectors)}"
            )
        if ids is not None and len(ids) != len(vectors):
            raise InvalidArgumentError(
                f"ids length {len(ids)} does not match vectors length {len(vectors)}"
            )

        if ids is None:
            ids = [str(uuid.uuid4()) for _ in vectors]
        records = [
            VectorRecord(
                id=ids[i],
                vector=vectors[i],
                metadata=metadata[i] if metadata is not None else {},
            )
            for i in range(len(vectors))
        ]
        return self.upsert(index_name, records)

    def count(self, index_name: str) -> int:
        """Number of records in an index."""
        return self.describe_index(index_name).count

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


@dataclass(frozen=True)
class _Snapshot:
    ids: Tuple[str, ...]
    matrix: np.ndarray
    metadata: Tuple[Dict[str, Any], ...]

    @classmethod
    def empty(cls, dimension: int) -> "_Snapshot":
        return cls(ids=(), matrix=np.empty((0, dimension), dtype=np.float64), metadata=())

    @classmethod
    def from_entries(cls, entries: Dict[str, Tuple[np.ndarray, Dict[str, Any]]], dimension: int) -> "_Snapshot":
        if not entries:
            return cls.empty(dimension)
        ids = tuple(entries.keys())
        matrix = np.vstack([vec for vec, _ in entries.values()])
        matrix.flags.writeable = False
        return cls(ids=ids, matrix=matrix, metadata=tuple(meta for _, meta in entries.values()))

    def entries(self) -> Dict[str, Tuple[np.ndarray, Dict[str, Any]]]:
        """Ordered id -> (vector, metadata) view, used to build the next snapshot."""
        return {rid: (self.matrix[i], self.metadata[i]) for i, rid in enumerate(self.ids)}


class _Index:
    """One named index: fixed shape, a lock, and the current snapshot."""

    def __init__(self, name: str, dimension: int, metric: Metric):
        self.name = name
        self.dimension = dimension
        self.metric = metric
        self.lock = threading.RLock()
        self._snapshot = _Snapshot.empty(dimension)

    @property
    def snapshot(self) -> _Snapshot:
        with self.lock:
            return self._snapshot

    def swap(self, snapshot: _Snapshot) -> None:
        # Callers hold self.lock while building and swapping
        self._snapshot = snapshot


def _as_vector(value: Any, dimension: int, context: str = "vector") -> np.ndarray:
    """Validate and copy a vector into a float64 array of the index dimension."""
    if value is None:
        raise InvalidArgumentError(f"{context} is required")
    try:
        arr = np.array(value, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(f"{context} must be a sequence of numbers: {e}") from e

    if arr.ndim != 1:
        raise InvalidArgumentError(f"{context} must be one-dimensional, got shape {arr.shape}")
    if arr.shape[0] != dimension:
        raise DimensionMismatchError(dimension, arr.shape[0], context)
    if not np.all(np.isfinite(arr)):
        raise InvalidArgumentError(f"{context} contains NaN or infinite values")
    return arr


def _as_metadata(value: Any, record_id: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidArgumentError(f"metadata for record '{record_id}' must be a mapping")
    return copy.deepcopy(dict(value))


def _check_record_id(record_id: Any) -> str:
    if not isinstance(record_id, str) or not record_id:
        raise InvalidArgumentError(f"record id must be a non-empty string, got {record_id!r}")
    return record_id


class InMemoryVectorStore(IVectorStore):
    """In-memory implementation of IVectorStore using numpy similarity scoring."""

    def __init__(self):
        self._indexes: Dict[str, _Index] = {}
        self._lock = threading.RLock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise ClosedError("vector store is closed")

    def _get_index(self, name: str) -> _Index:
        with self._lock:
            self._check_open()
            index = self._indexes.get(name)
        if index is None:
            raise NotFoundError(f"index '{name}' does not exist", name=name)
        return index

    def create_index(self, name: str, dimension: int, metric: Union[str, Metric] = Metric.COSINE) -> None:
        """
        Create a named index with fixed dimension and metric.

        Re-creating an index with identical parameters is a no-op; different
        parameters raise AlreadyExistsError.
        """
        self._check_open()
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(f"index name must be a non-empty string, got {name!r}")
        if isinstance(dimension, bool) or not isinstance(dimension, numbers.Integral) or dimension <= 0:
            raise InvalidArgumentError(f"dimension must be a positive integer, got {dimension!r}")
        parsed_metric = parse_metric(metric)
        dimension = int(dimension)

        with self._lock:
            self._check_open()
            existing = self._indexes.get(name)
            if existing is not None:
                if existing.dimension == dimension and existing.metric == parsed_metric:
                    logger.log_index_operation("create", name, {"existing": True})
                    return
                logger.log_index_operation(
                    "create", name,
                    {"requested": (dimension, parsed_metric.value), "existing": (existing.dimension, existing.metric.value)},
                    status="rejected",
                )
                raise AlreadyExistsError(
                    f"index '{name}' already exists with dimension {existing.dimension} "
                    f"and metric {existing.metric.value}"
                )
            self._indexes[name] = _Index(name, dimension, parsed_metric)

        logger.log_index_operation("create", name, {"dimension": dimension, "metric": parsed_metric.value})

    def upsert(self, index_name: str, records: Sequence[VectorRecord]) -> List[str]:
        """
        Insert or replace records by id.

        Every record is validated before anything is applied; one bad record
        rejects the batch. Replaced records keep their insertion position and
        have their metadata fully replaced.

        Returns:
            The ids in input order
        """
        index = self._get_index(index_name)
        records = list(records)

        try:
            validated = []
            for record in records:
                record_id = _check_record_id(getattr(record, "id", None))
                vector = _as_vector(getattr(record, "vector", None), index.dimension, f"vector for record '{record_id}'")
                validated.append((record_id, vector, _as_metadata(getattr(record, "metadata", None), record_id)))
        except VectorStoreError as e:
            logger.log_vector_operation("upsert", index_name, len(records), {"error": str(e)}, status="rejected")
            raise

        if not validated:
            return []

        with index.lock:
            self._check_open()
            entries = index.snapshot.entries()
            inserted = 0
            for record_id, vector, metadata in validated:
                if record_id not in entries:
                    inserted += 1
                entries[record_id] = (vector, metadata)
            index.swap(_Snapshot.from_entries(entries, index.dimension))

        logger.log_vector_operation(
            "upsert", index_name, len(validated),
            {"inserted": inserted, "replaced": len(validated) - inserted},
        )
        return [record_id for record_id, _, _ in validated]

    def query(
        self,
        index_name: str,
        query_vector: Sequence[float],
        top_k: int = 10,
        filter: Optional[Mapping[str, Any]] = None,
        min_score: Optional[float] = None,
        include_vector: bool = False,
    ) -> List[QueryResult]:
        """
        Rank stored vectors by similarity to ``query_vector``.

        Args:
            index_name: Index to search
            query_vector: Vector with the index dimension
            top_k: Maximum number of results (positive int)
            filter: Metadata filter; non-matching records are excluded
            min_score: Drop results scoring below this value
            include_vector: Attach stored vectors to results

        Returns:
            Up to top_k QueryResults, highest score first, ties in insertion order
        """
        index = self._get_index(index_name)
        if isinstance(top_k, bool) or not isinstance(top_k, numbers.Integral) or top_k < 1:
            raise InvalidArgumentError(f"top_k must be a positive integer, got {top_k!r}")
        if min_score is not None and (isinstance(min_score, bool) or not isinstance(min_score, numbers.Real)):
            raise InvalidArgumentError(f"min_score must be a number, got {min_score!r}")
        predicates = parse_filter(filter)
        query = _as_vector(query_vector, index.dimension, "query vector")

        snapshot = index.snapshot
        if not snapshot.ids:
            logger.log_query(index_name, int(top_k), 0, bool(predicates), min_score)
            return []

        scores = score(index.metric, snapshot.matrix, query)
        if predicates:
            mask = np.fromiter(
                (matches_all(predicates, meta) for meta in snapshot.metadata),
                dtype=bool,
                count=len(snapshot.ids),
            )
        else:
            mask = np.ones(len(snapshot.ids), dtype=bool)
        if min_score is not None:
            mask &= scores >= float(min_score)

        candidates = np.flatnonzero(mask)
        # Stable sort keeps insertion order among equal scores
        ranked = candidates[np.argsort(-scores[candidates], kind="stable")][: int(top_k)]

        results = [
            QueryResult(
                id=snapshot.ids[i],
                score=float(scores[i]),
                metadata=copy.deepcopy(snapshot.metadata[i]),
                vector=snapshot.matrix[i].copy() if include_vector else None,
            )
            for i in ranked
        ]
        logger.log_query(index_name, int(top_k), len(results), bool(predicates), min_score)
        return results

    def delete_index(self, name: str) -> None:
        with self._lock:
            self._check_open()
            removed = self._indexes.pop(name, None)
        logger.log_index_operation("delete", name, {"existed": removed is not None})

    def list_indexes(self) -> List[str]:
        with self._lock:
            self._check_open()
            return list(self._indexes.keys())

    def describe_index(self, name: str) -> IndexStats:
        index = self._get_index(name)
        return IndexStats(
            name=index.name,
            dimension=index.dimension,
            metric=index.metric,
            count=len(index.snapshot.ids),
        )

    def update_vector(
        self,
        index_name: str,
        record_id: str,
        vector: Optional[Sequence[float]] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Update one record in place; metadata, when given, replaces the old one."""
        index = self._get_index(index_name)
        if vector is None and metadata is None:
            raise InvalidArgumentError("update_vector requires a vector or metadata")
        _check_record_id(record_id)
        new_vector = _as_vector(vector, index.dimension, f"vector for record '{record_id}'") if vector is not None else None
        new_metadata = _as_metadata(metadata, record_id) if metadata is not None else None

        with index.lock:
            self._check_open()
            entries = index.snapshot.entries()
            if record_id not in entries:
                raise NotFoundError(f"record '{record_id}' does not exist in index '{index_name}'", name=record_id)
            old_vector, old_metadata = entries[record_id]
            entries[record_id] = (
                new_vector if new_vector is not None else old_vector,
                new_metadata if new_metadata is not None else old_metadata,
            )
            index.swap(_Snapshot.from_entries(entries, index.dimension))

        logger.log_vector_operation("update", index_name, 1, {"record_id": record_id})

    def delete_vector(self, index_name: str, record_id: str) -> None:
        index = self._get_index(index_name)
        with index.lock:
            self._check_open()
            entries = index.snapshot.entries()
            if entries.pop(record_id, None) is None:
                return
            index.swap(_Snapshot.from_entries(entries, index.dimension))

        logger.log_vector_operation("delete", index_name, 1, {"record_id": record_id})

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            n_indexes = len(self._indexes)
            self._indexes.clear()
            self._closed = True
        logger.log_operation("store.close", "success", {"indexes_released": n_indexes})
