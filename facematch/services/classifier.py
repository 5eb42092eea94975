"""Tiered match decisions from the best-scoring candidate."""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from facematch.services.scorer import ScoreResult

HIGH_THRESHOLD = 0.85
LOW_THRESHOLD = 0.75
ALGORITHM = "multi-metric"


class MatchOutcome(str, Enum):
    MATCHED = "matched"
    POSSIBLE = "possible"
    UNMATCHED = "unmatched"


# Wire values for the "match" field
_WIRE_VALUES = {
    MatchOutcome.MATCHED: "yes",
    MatchOutcome.POSSIBLE: "possible",
    MatchOutcome.UNMATCHED: "no",
}


@dataclass
class MatchDecision:
    """Outcome of matching one query against the store."""
    outcome: MatchOutcome
    filename: str | None = None
    result: ScoreResult | None = None
    error: str | None = None

    @property
    def requires_verification(self) -> bool:
        return self.outcome is MatchOutcome.POSSIBLE

    @property
    def confidence(self) -> float | None:
        return self.result.confidence if self.result else None

    def to_dict(self) -> dict:
        """Serialise to the response shape returned by the CLI and API."""
        data: dict = {"match": _WIRE_VALUES[self.outcome]}
        if self.filename is not None:
            data["filename"] = self.filename
        if self.result is not None:
            data["confidence"] = f"{self.result.confidence:.3f}"
            data["algorithm"] = ALGORITHM
        if self.outcome is MatchOutcome.MATCHED:
            data["details"] = {
                "euclidean": f"{self.result.euclidean:.4f}",
                "cosine": f"{self.result.cosine:.4f}",
                "manhattan": f"{self.result.manhattan:.4f}",
            }
        if self.requires_verification:
            data["requiresVerification"] = True
        if self.error is not None:
            data["error"] = self.error
        return data


def select_best(
    scored: Iterable[tuple[str, ScoreResult]]
) -> tuple[str, ScoreResult] | None:
    """Pick the highest combined score; ties keep the earliest candidate."""
    best = None
    for identity, result in scored:
        if best is None or result.combined > best[1].combined:
            best = (identity, result)
    return best


def classify(
    best: tuple[str, ScoreResult] | None,
    high: float = HIGH_THRESHOLD,
    low: float = LOW_THRESHOLD,
) -> MatchDecision:
    """Apply the matched/possible/unmatched thresholds."""
    if best is None:
        return MatchDecision(MatchOutcome.UNMATCHED)

    identity, result = best
    if result.combined >= high:
        return MatchDecision(MatchOutcome.MATCHED, filename=identity, result=result)
    if result.combined >= low:
        return MatchDecision(MatchOutcome.POSSIBLE, filename=identity, result=result)
    # Keep the best score for diagnostics, but never name a candidate
    return MatchDecision(MatchOutcome.UNMATCHED, result=result)
