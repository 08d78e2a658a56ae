"""Embedding-distance lookup of celebrity looks for a user's taste."""

from __future__ import annotations

import logging

import numpy as np
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from refinda.db import models
from refinda.recommender.types import AnchorLook

logger = logging.getLogger(__name__)


def cosine_distances(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """``1 - cosine similarity`` of ``query`` against every row of ``matrix``."""

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    with np.errstate(divide="ignore", invalid="ignore"):
        similarity = (matrix @ query) / norms
    return 1.0 - similarity


class LookMatcher:
    """Ranks visible celebrity looks by distance to the profile's taste embedding."""

    async def match_for_user(
        self,
        session: AsyncSession,
        profile: models.Profile | None,
        limit: int,
    ) -> list[AnchorLook]:
        if profile is None or not profile.taste_embedding:
            logger.debug("No taste embedding for profile; skipping look matching")
            return []

        query = np.asarray(profile.taste_embedding, dtype=float)
        stmt = select(models.CelebrityLook).where(models.CelebrityLook.is_visible.is_(True))
        looks = [
            look
            for look in (await session.execute(stmt)).scalars().all()
            if look.embedding and len(look.embedding) == query.shape[0]
        ]
        if not looks:
            return []

        distances = cosine_distances(query, np.asarray([look.embedding for look in looks], dtype=float))
        ranked = sorted(
            (
                (look, float(distance))
                for look, distance in zip(looks, distances)
                if np.isfinite(distance)
            ),
            key=lambda pair: pair[1],
        )
        return [self._to_anchor(look, distance) for look, distance in ranked[:limit]]

    @staticmethod
    def _to_anchor(look: models.CelebrityLook, distance: float) -> AnchorLook:
        return AnchorLook(
            celebrity_look_id=look.id,
            celebrity_id=look.celebrity_id,
            celebrity_name=look.celebrity_name,
            distance=distance,
            canonical_text=look.canonical_text,
            style_profile=look.style_profile,
            image_url=look.image_url,
            display_asset_id=look.display_asset_id,
            has_public_image=look.has_public_image,
        )
