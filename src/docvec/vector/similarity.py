"""
Vectorized similarity scoring for the supported metrics.

Every function scores one query vector against the rows of an ``(n, d)``
matrix and returns an array of ``n`` scores where higher means closer.
Euclidean scores are negated distances so all metrics rank the same way.
"""

from typing import Callable, Dict, Union

import numpy as np

from .errors import InvalidArgumentError
from .types import Metric


def _unit_rows(matrix: np.ndarray) -> np.ndarray:
    """
    Scale each row to unit length; all-zero rows stay zero.

    Rows are first divided by their largest absolute component so the norm
    neither overflows for huge values nor underflows for tiny ones.
    """
    peak = np.max(np.abs(matrix), axis=1, keepdims=True)
    scaled = matrix / np.where(peak > 0, peak, 1.0)
    norms = np.linalg.norm(scaled, axis=1, keepdims=True)
    return scaled / np.where(norms > 0, norms, 1.0)


def cosine_scores(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Cosine similarity in [-1, 1]; zero-norm vectors score 0.0."""
    if matrix.shape[0] == 0:
        return np.empty(0, dtype=np.float64)

    query_unit = _unit_rows(query.reshape(1, -1))[0]
    scores = _unit_rows(matrix) @ query_unit
    # Floating point can push self-similarity a hair past 1.0
    return np.clip(scores, -1.0, 1.0)


def euclidean_scores(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Negative Euclidean distance, so identical vectors score 0.0."""
    if matrix.shape[0] == 0:
        return np.empty(0, dtype=np.float64)
    return -np.linalg.norm(matrix - query, axis=1)


def dotproduct_scores(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Raw inner product."""
    if matrix.shape[0] == 0:
        return np.empty(0, dtype=np.float64)
    return matrix @ query


SCORERS: Dict[Metric, Callable[[np.ndarray, np.ndarray], np.ndarray]] = {
    Metric.COSINE: cosine_scores,
    Metric.EUCLIDEAN: euclidean_scores,
    Metric.DOTPRODUCT: dotproduct_scores,
}


def parse_metric(metric: Union[str, Metric]) -> Metric:
    """Accept a Metric or its (case-insensitive) name."""
    if isinstance(metric, Metric):
        return metric
    if isinstance(metric, str):
        try:
            return Metric(metric.strip().lower())
        except ValueError:
            pass
    valid = [m.value for m in Metric]
    raise InvalidArgumentError(f"metric must be one of: {valid}, got {metric!r}")


def score(metric: Union[str, Metric], matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Score ``query`` against every row of ``matrix`` with ``metric``."""
    return SCORERS[parse_metric(metric)](matrix, query)
