"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from refinda.recommender.types import DenimRecommendation


class FeedbackRequest(BaseModel):
    run_id: str = Field(min_length=1)
    rec_index: int
    action: str


class TasteUpdateResponse(BaseModel):
    ok: bool = True
    action: str
    weight: float
    features: list[str]
    delta: dict[str, float]
    taste_vector: dict[str, float]
    event_logged: bool
    snapshot_inserted: bool
    taste_embedding_updated: bool


class FeedbackResponse(BaseModel):
    ok: bool = True
    active_action: str | None
    taste_update: TasteUpdateResponse | None = None


class RecommendationRequestBody(BaseModel):
    vibe: str | None = None
    size: str | None = None
    budget: float | None = Field(default=None, ge=0)
    debug: bool = False


class RecommendationResponse(BaseModel):
    ok: bool = True
    ai_used: bool
    ai_error: str | None
    run_id: str | None
    user_id: str
    input: dict[str, Any]
    recommendations: list[DenimRecommendation]
    debug: dict[str, Any] | None = None


class TasteSignal(BaseModel):
    key: str
    weight: float


class DriftPoint(BaseModel):
    created_at: datetime
    drift_pct: int


class TasteHealthResponse(BaseModel):
    ok: bool = True
    snapshot_count: int
    latest_at: datetime | None
    drift_pct: int
    stability_pct: int
    saturation_pct: int
    dominance_pct: int
    diversity_pct: int
    group_shares: dict[str, float]
    recent_drift: list[DriftPoint]
    top_positive: list[TasteSignal]
    top_negative: list[TasteSignal]
