"""Multi-metric similarity between two fingerprints."""
from dataclasses import dataclass
import numpy as np

from facematch.exceptions import DimensionMismatchError

EUCLIDEAN_WEIGHT = 0.4
COSINE_WEIGHT = 0.4
MANHATTAN_WEIGHT = 0.2

# Map each distance onto roughly [0, 1]; thresholds in classifier depend on these
EUCLIDEAN_SCALE = 2.0
MANHATTAN_SCALE = 256.0


@dataclass(frozen=True)
class ScoreResult:
    """Metrics for one query/candidate pair."""
    euclidean: float
    cosine: float
    manhattan: float
    combined: float

    @property
    def confidence(self) -> float:
        """Combined score clamped to [0, 1] for reporting."""
        return min(1.0, max(0.0, self.combined))


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def combine(euclidean: float, cosine: float, manhattan: float) -> float:
    """Weighted blend of the three metrics."""
    return (
        EUCLIDEAN_WEIGHT * max(0.0, 1.0 - euclidean / EUCLIDEAN_SCALE)
        + COSINE_WEIGHT * cosine
        + MANHATTAN_WEIGHT * max(0.0, 1.0 - manhattan / MANHATTAN_SCALE)
    )


def score(query: np.ndarray, candidate: np.ndarray) -> ScoreResult:
    """Compare a query fingerprint against a candidate.

    Raises:
        DimensionMismatchError: If the fingerprints differ in length
    """
    if len(query) != len(candidate):
        raise DimensionMismatchError(len(query), len(candidate))

    diff = np.asarray(query, dtype=np.float64) - np.asarray(candidate, dtype=np.float64)
    euclidean = float(np.sqrt(np.sum(diff * diff)))
    manhattan = float(np.sum(np.abs(diff)))
    cosine = cosine_similarity(query, candidate)

    return ScoreResult(
        euclidean=euclidean,
        cosine=cosine,
        manhattan=manhattan,
        combined=combine(euclidean, cosine, manhattan),
    )
