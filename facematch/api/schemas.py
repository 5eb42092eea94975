"""Pydantic schemas for API."""
from pydantic import BaseModel


class MatchRequest(BaseModel):
    """Body for the match endpoint."""
    imagePath: str | None = None


class MatchDetails(BaseModel):
    """Raw metrics of a confirmed match."""
    euclidean: str
    cosine: str
    manhattan: str


class MatchResponse(BaseModel):
    """Serialized match decision."""
    match: str
    filename: str | None = None
    confidence: str | None = None
    algorithm: str | None = None
    details: MatchDetails | None = None
    requiresVerification: bool | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Response for health endpoint."""
    status: str = "ok"
    version: str = "1.0.0"


class ReloadResponse(BaseModel):
    """Response for reload endpoint."""
    count: int


class ReferenceInfo(BaseModel):
    """One reference image."""
    filename: str
    size: int
    loaded: bool


class ReferenceListResponse(BaseModel):
    """Response for listing reference images."""
    count: int
    references: list[ReferenceInfo] = []


class AddReferenceResponse(BaseModel):
    """Response for adding a reference image."""
    success: bool
    filename: str | None = None
    error: str | None = None
