"""Taste health report for one user, read from stored snapshots."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from refinda.config.settings import Settings, get_settings
from refinda.db import models
from refinda.recommender.feedback_updater import taste_params
from refinda.taste.health import SnapshotPoint, TasteHealthReport, build_health_report

DEFAULT_SNAPSHOT_LIMIT = 30
MAX_SNAPSHOT_LIMIT = 200


async def load_taste_health(
    session: AsyncSession,
    user_id: str,
    *,
    limit: int = DEFAULT_SNAPSHOT_LIMIT,
    settings: Settings | None = None,
) -> TasteHealthReport:
    """Build the health report over the latest ``limit`` snapshots."""

    settings = settings or get_settings()
    limit = max(1, min(limit, MAX_SNAPSHOT_LIMIT))

    profile = await session.get(models.Profile, user_id)
    if profile is not None:
        params = taste_params(profile, settings)
        clamp_min, clamp_max = params.clamp_min, params.clamp_max
    else:
        clamp_min, clamp_max = settings.taste_default_clamp_min, settings.taste_default_clamp_max

    stmt = (
        select(models.TasteVectorSnapshot)
        .where(models.TasteVectorSnapshot.user_id == user_id)
        .order_by(models.TasteVectorSnapshot.created_at.desc(), models.TasteVectorSnapshot.id.desc())
        .limit(limit)
    )
    rows = (await session.execute(stmt)).scalars().all()
    points = [
        SnapshotPoint(created_at=models.as_utc(row.created_at), taste_vector=row.taste_vector or {})
        for row in rows
    ]
    return build_health_report(points, clamp_min, clamp_max)
