"""HTTP routes for taste updates, feedback, recommendations and taste health."""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from refinda.api.auth import InternalAuthDependency, current_user_id
from refinda.api.schemas import (
    FeedbackRequest,
    FeedbackResponse,
    RecommendationRequestBody,
    RecommendationResponse,
    TasteHealthResponse,
    TasteUpdateResponse,
)
from refinda.config.settings import get_settings
from refinda.db.session import get_session
from refinda.nlp.curator_client import CuratorClient
from refinda.recommender.feedback_updater import FeedbackUpdater, TasteUpdateResult
from refinda.services.feedback import FeedbackService
from refinda.services.recommendation import RecommendationOrchestrator, RecommendationRequest
from refinda.services.taste_health import DEFAULT_SNAPSHOT_LIMIT, MAX_SNAPSHOT_LIMIT, load_taste_health

router = APIRouter(dependencies=[InternalAuthDependency])


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


async def get_feedback_updater() -> AsyncIterator[FeedbackUpdater]:
    """Updater with an embedding client when an API key is configured."""

    settings = get_settings()
    if not settings.openai_api_key:
        yield FeedbackUpdater(settings)
        return

    client = CuratorClient(settings)
    try:
        yield FeedbackUpdater(settings, embedder=client)
    finally:
        await client.close()


def get_orchestrator() -> RecommendationOrchestrator:
    return RecommendationOrchestrator(get_settings())


def _taste_update_body(result: TasteUpdateResult) -> TasteUpdateResponse:
    return TasteUpdateResponse(
        action=result.action.value,
        weight=result.weight,
        features=result.features,
        delta=result.delta,
        taste_vector=result.taste_vector,
        event_logged=result.event_logged,
        snapshot_inserted=result.snapshot_inserted,
        taste_embedding_updated=result.taste_embedding_updated,
    )


@router.post("/taste-update", response_model=TasteUpdateResponse, tags=["taste"])
async def taste_update(
    payload: FeedbackRequest,
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db),
    updater: FeedbackUpdater = Depends(get_feedback_updater),
) -> TasteUpdateResponse:
    result = await updater.apply(
        session,
        user_id=user_id,
        run_id=payload.run_id,
        rec_index=payload.rec_index,
        action=payload.action,
    )
    return _taste_update_body(result)


@router.post("/feedback", response_model=FeedbackResponse, tags=["taste"])
async def set_feedback(
    payload: FeedbackRequest,
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db),
    updater: FeedbackUpdater = Depends(get_feedback_updater),
) -> FeedbackResponse:
    outcome = await FeedbackService(updater).set_feedback(
        session,
        user_id=user_id,
        run_id=payload.run_id,
        rec_index=payload.rec_index,
        action=payload.action,
    )
    return FeedbackResponse(
        active_action=outcome.active_action.value if outcome.active_action else None,
        taste_update=_taste_update_body(outcome.taste_update) if outcome.taste_update else None,
    )


@router.post("/recommendations", response_model=RecommendationResponse, tags=["recommendations"])
async def create_recommendations(
    payload: RecommendationRequestBody,
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db),
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> RecommendationResponse:
    outcome = await orchestrator.recommend(
        session,
        user_id=user_id,
        request=RecommendationRequest(
            vibe=payload.vibe,
            size=payload.size,
            budget=payload.budget,
            debug=payload.debug,
        ),
    )
    return RecommendationResponse(
        ai_used=outcome.ai_used,
        ai_error=outcome.ai_error,
        run_id=outcome.run_id,
        user_id=outcome.user_id,
        input=outcome.input,
        recommendations=outcome.recommendations,
        debug=outcome.debug,
    )


@router.get("/taste/health", response_model=TasteHealthResponse, tags=["taste"])
async def taste_health(
    limit: int = Query(default=DEFAULT_SNAPSHOT_LIMIT, ge=1, le=MAX_SNAPSHOT_LIMIT),
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db),
) -> TasteHealthResponse:
    report = await load_taste_health(session, user_id, limit=limit)
    return TasteHealthResponse(
        snapshot_count=report.snapshot_count,
        latest_at=report.latest_at,
        drift_pct=report.drift_pct,
        stability_pct=report.stability_pct,
        saturation_pct=report.saturation_pct,
        dominance_pct=report.dominance_pct,
        diversity_pct=report.diversity_pct,
        group_shares=report.group_shares,
        recent_drift=report.recent_drift,
        top_positive=[item.as_dict() for item in report.top_positive],
        top_negative=[item.as_dict() for item in report.top_negative],
    )
