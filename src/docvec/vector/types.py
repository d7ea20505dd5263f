"""
Record, result and metric types shared by the vector store.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np


class Metric(str, Enum):
    """Similarity metric configured per index."""

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    DOTPRODUCT = "dotproduct"


@dataclass
class VectorRecord:
    """Represents a vector record with metadata."""

    id: str
    """Unique identifier for the vector record"""

    vector: np.ndarray
    """The vector representation of the content"""

    metadata: Dict[str, Any] = field(default_factory=dict)
    """Additional metadata associated with the vector"""


@dataclass
class QueryResult:
    """Represents a search result from vector store."""

    id: str
    """Identifier for the matching record"""

    score: float
    """Similarity score of the match, higher is more similar"""

    metadata: Dict[str, Any]
    """Metadata associated with the matched record"""

    vector: Optional[np.ndarray] = None
    """Stored vector, only populated when the query asks for it"""


@dataclass(frozen=True)
class IndexStats:
    """Shape and size of a named index."""

    name: str
    dimension: int
    metric: Metric
    count: int
