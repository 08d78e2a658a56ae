"""Feedback-driven taste-vector updates.

The taste vector write is the primary operation and must succeed. The event
log, the taste embedding refresh and the periodic snapshot run afterwards as
independent best-effort writes: a failure is logged, counted and reported in
the result, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from refinda.config.settings import Settings, get_settings
from refinda.db import models
from refinda.errors import (
    ConcurrentUpdateError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    ProfileDataError,
    UpstreamError,
)
from refinda.metrics.prometheus_exporter import secondary_write_failures_total, taste_updates_total
from refinda.taste.accumulator import (
    FeedbackAction,
    TasteVector,
    apply_delta,
    build_delta,
    days_between,
    decay_factor,
)
from refinda.taste.summary import embedding_text
from refinda.taste.vocabulary import extract_features

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    """Anything that can embed taste text (``CuratorClient`` in production)."""

    embed_model: str

    async def embed_text(self, text: str) -> list[float]: ...


@dataclass(slots=True)
class TasteParams:
    decay: float
    clamp_min: float
    clamp_max: float


@dataclass(slots=True)
class TasteUpdateResult:
    """Outcome of one feedback event."""

    action: FeedbackAction
    weight: float
    features: list[str]
    delta: TasteVector
    taste_vector: TasteVector
    decay: float
    event_logged: bool = False
    snapshot_inserted: bool = False
    taste_embedding_updated: bool = False


def taste_params(profile: models.Profile, settings: Settings) -> TasteParams:
    """Profile learning parameters with configured defaults for null columns.

    Raises ``ProfileDataError`` when the stored decay is outside (0, 1) or the
    clamp range is inverted.
    """

    params = TasteParams(
        decay=profile.taste_decay if profile.taste_decay is not None else settings.taste_default_decay,
        clamp_min=profile.taste_clamp_min if profile.taste_clamp_min is not None else settings.taste_default_clamp_min,
        clamp_max=profile.taste_clamp_max if profile.taste_clamp_max is not None else settings.taste_default_clamp_max,
    )
    if not 0.0 < params.decay < 1.0:
        raise ProfileDataError(f"Profile {profile.id} has taste decay {params.decay} outside (0, 1).")
    if params.clamp_min > params.clamp_max:
        raise ProfileDataError(
            f"Profile {profile.id} has inverted clamp range [{params.clamp_min}, {params.clamp_max}]."
        )
    return params


async def load_run_recommendation(
    session: AsyncSession,
    *,
    user_id: str,
    run_id: str,
    rec_index: int,
) -> dict[str, Any]:
    """Return the rated recommendation, enforcing ownership and index bounds."""

    run = await session.get(models.RecommendationRun, run_id)
    if run is None:
        raise NotFoundError(f"Recommendation run {run_id} not found.")
    if run.user_id != user_id:
        raise ForbiddenError("Recommendation run belongs to another user.")

    recommendations = run.recommendations or []
    if not 0 <= rec_index < len(recommendations):
        raise InvalidInputError(f"rec_index {rec_index} out of range for run with {len(recommendations)} items.")
    return recommendations[rec_index]


async def get_or_create_profile(session: AsyncSession, user_id: str) -> models.Profile:
    """Return a fresh copy of the profile, creating an empty one for first-time users."""

    stmt = select(models.Profile).where(models.Profile.id == user_id).execution_options(populate_existing=True)
    result = await session.execute(stmt)
    profile = result.scalar_one_or_none()
    if profile:
        return profile

    profile = models.Profile(id=user_id, taste_vector={}, taste_version=0)
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile


class FeedbackUpdater:
    """Applies online learning updates based on user feedback."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        embedder: Embedder | None = None,
        clock: Callable[[], datetime] = models.utcnow,
    ) -> None:
        self._settings = settings or get_settings()
        self._embedder = embedder
        self._clock = clock

    async def apply(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        run_id: str,
        rec_index: int,
        action: FeedbackAction | str,
    ) -> TasteUpdateResult:
        """Learn from one reaction to one recommendation."""

        action = FeedbackAction.parse(action)
        recommendation = await load_run_recommendation(
            session, user_id=user_id, run_id=run_id, rec_index=rec_index
        )

        features = extract_features(recommendation)
        delta = build_delta(features, action.weight)
        updated, decay, params = await self._write_vector(session, user_id, delta)

        result = TasteUpdateResult(
            action=action,
            weight=action.weight,
            features=features,
            delta=delta,
            taste_vector=updated,
            decay=decay,
        )
        result.event_logged = await self._best_effort(
            session,
            "taste_event",
            lambda: self._append_event(session, user_id, run_id, rec_index, action, features, delta),
        )
        result.taste_embedding_updated = await self._best_effort(
            session,
            "taste_embedding",
            lambda: self._refresh_embedding(session, user_id, updated),
        )
        result.snapshot_inserted = await self._best_effort(
            session,
            "taste_snapshot",
            lambda: self._maybe_snapshot(session, user_id, updated),
        )

        taste_updates_total.labels(action=action.value).inc()
        logger.info(
            "Taste updated for user %s: action=%s features=%d decay=%.4f clamp=[%s, %s]",
            user_id,
            action.value,
            len(features),
            decay,
            params.clamp_min,
            params.clamp_max,
        )
        return result

    async def _write_vector(
        self,
        session: AsyncSession,
        user_id: str,
        delta: TasteVector,
    ) -> tuple[TasteVector, float, TasteParams]:
        """Read-modify-write guarded by ``taste_version``."""

        attempts = max(1, self._settings.taste_update_max_attempts)
        for attempt in range(1, attempts + 1):
            profile = await get_or_create_profile(session, user_id)
            params = taste_params(profile, self._settings)
            now = self._clock()
            decay = decay_factor(params.decay, days_between(models.as_utc(profile.taste_last_updated_at), now))
            updated = apply_delta(profile.taste_vector, delta, decay, params.clamp_min, params.clamp_max)

            stmt = (
                update(models.Profile)
                .where(
                    models.Profile.id == user_id,
                    models.Profile.taste_version == profile.taste_version,
                )
                .values(
                    taste_vector=updated,
                    taste_last_updated_at=now,
                    taste_version=profile.taste_version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            outcome = await session.execute(stmt)
            if outcome.rowcount == 1:
                await session.commit()
                return updated, decay, params

            await session.rollback()
            logger.warning("Concurrent taste update for user %s (attempt %d/%d)", user_id, attempt, attempts)

        raise ConcurrentUpdateError("Taste vector changed concurrently; please retry.")

    async def _best_effort(
        self,
        session: AsyncSession,
        write: str,
        operation: Callable[[], Awaitable[bool]],
    ) -> bool:
        try:
            done = await operation()
            await session.commit()
        except (SQLAlchemyError, UpstreamError) as exc:
            await session.rollback()
            secondary_write_failures_total.labels(write=write).inc()
            logger.warning("Best-effort %s write failed: %s", write, exc)
            return False
        return done

    async def _append_event(
        self,
        session: AsyncSession,
        user_id: str,
        run_id: str,
        rec_index: int,
        action: FeedbackAction,
        features: list[str],
        delta: TasteVector,
    ) -> bool:
        session.add(
            models.TasteEvent(
                user_id=user_id,
                run_id=run_id,
                rec_index=rec_index,
                action=action.value,
                item_features=features,
                delta=delta,
                created_at=self._clock(),
            )
        )
        await session.flush()
        return True

    async def _refresh_embedding(self, session: AsyncSession, user_id: str, vector: TasteVector) -> bool:
        if self._embedder is None:
            return False

        embedding = await self._embedder.embed_text(embedding_text(vector))
        await session.execute(
            update(models.Profile)
            .where(models.Profile.id == user_id)
            .values(
                taste_embedding=embedding,
                taste_embedding_model=self._embedder.embed_model,
                taste_embedding_updated_at=self._clock(),
            )
            .execution_options(synchronize_session=False)
        )
        return True

    async def _maybe_snapshot(self, session: AsyncSession, user_id: str, vector: TasteVector) -> bool:
        """Insert a snapshot unless one exists inside the snapshot interval."""

        now = self._clock()
        stmt = (
            select(models.TasteVectorSnapshot.created_at)
            .where(models.TasteVectorSnapshot.user_id == user_id)
            .order_by(models.TasteVectorSnapshot.created_at.desc())
            .limit(1)
        )
        last_at = models.as_utc((await session.execute(stmt)).scalar_one_or_none())
        interval = timedelta(hours=self._settings.taste_snapshot_interval_hours)
        if last_at is not None and now - last_at <= interval:
            return False

        session.add(models.TasteVectorSnapshot(user_id=user_id, taste_vector=dict(vector), created_at=now))
        await session.flush()
        return True
