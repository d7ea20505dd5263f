"""
Tests for vectorized similarity scoring.
"""

import numpy as np
import pytest

from docvec.vector.errors import InvalidArgumentError
from docvec.vector.similarity import (
    cosine_scores,
    dotproduct_scores,
    euclidean_scores,
    parse_metric,
    score,
)
from docvec.vector.types import Metric

MATRIX = np.array([
    [1.0, 0.0],
    [0.0, 2.0],
    [-3.0, 0.0],
])


def test_cosine_scores():
    scores = cosine_scores(MATRIX, np.array([1.0, 0.0]))
    np.testing.assert_allclose(scores, [1.0, 0.0, -1.0])


def test_euclidean_scores_are_negative_distances():
    scores = euclidean_scores(MATRIX, np.array([1.0, 0.0]))
    np.testing.assert_allclose(scores, [0.0, -np.sqrt(5.0), -4.0])


def test_dotproduct_scores():
    scores = dotproduct_scores(MATRIX, np.array([1.0, 1.0]))
    np.testing.assert_allclose(scores, [1.0, 2.0, -3.0])


def test_empty_matrix_gives_empty_scores():
    empty = np.empty((0, 2))
    for scorer in (cosine_scores, euclidean_scores, dotproduct_scores):
        assert scorer(empty, np.array([1.0, 0.0])).shape == (0,)


def test_score_dispatches_on_metric_name():
    query = np.array([1.0, 0.0])
    np.testing.assert_allclose(score("cosine", MATRIX, query), cosine_scores(MATRIX, query))
    np.testing.assert_allclose(score(Metric.EUCLIDEAN, MATRIX, query), euclidean_scores(MATRIX, query))


@pytest.mark.parametrize("name,expected", [
    ("cosine", Metric.COSINE),
    (" Euclidean ", Metric.EUCLIDEAN),
    ("DOTPRODUCT", Metric.DOTPRODUCT),
    (Metric.COSINE, Metric.COSINE),
])
def test_parse_metric(name, expected):
    assert parse_metric(name) is expected


@pytest.mark.parametrize("bad", ["manhattan", "", None, 3])
def test_parse_metric_rejects_unknown(bad):
    with pytest.raises(InvalidArgumentError):
        parse_metric(bad)


@pytest.mark.parametrize("vector", [
    [1e200, 1e200],
    [1e-200, 0.0],
    [5e-324, 5e-324],
    [-1e308, 1e308],
])
def test_cosine_self_similarity_at_extreme_magnitudes(vector):
    """Huge or tiny finite vectors still score 1.0 against themselves."""
    matrix = np.array([[0.0, 1.0], vector])
    scores = cosine_scores(matrix, np.array(vector))

    assert np.all(np.isfinite(scores))
    assert scores[1] == pytest.approx(1.0)
    assert scores[1] >= scores[0]


def test_cosine_zero_rows_and_zero_query_score_zero():
    matrix = np.array([[0.0, 0.0], [1.0, 0.0]])

    np.testing.assert_array_equal(cosine_scores(matrix, np.array([1.0, 0.0])), [0.0, 1.0])
    np.testing.assert_array_equal(cosine_scores(matrix, np.array([0.0, 0.0])), [0.0, 0.0])
