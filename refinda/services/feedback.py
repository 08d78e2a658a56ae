"""Feedback toggle: one active reaction per user and recommendation."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from refinda.db import models
from refinda.errors import RefindaError
from refinda.recommender.feedback_updater import FeedbackUpdater, TasteUpdateResult, load_run_recommendation
from refinda.taste.accumulator import FeedbackAction

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FeedbackOutcome:
    active_action: FeedbackAction | None
    taste_update: TasteUpdateResult | None = None


async def _find_row(
    session: AsyncSession, *, user_id: str, run_id: str, rec_index: int
) -> models.RecommendationFeedback | None:
    stmt = select(models.RecommendationFeedback).where(
        models.RecommendationFeedback.run_id == run_id,
        models.RecommendationFeedback.user_id == user_id,
        models.RecommendationFeedback.rec_index == rec_index,
    )
    return (await session.execute(stmt)).scalar_one_or_none()


class FeedbackService:
    """Stores the active reaction and feeds new reactions into the taste vector.

    Repeating the active action clears it without touching the taste vector.
    Any other action replaces the stored one and is learned from. When the
    taste update fails, the previously active reaction is put back.
    """

    def __init__(self, updater: FeedbackUpdater) -> None:
        self._updater = updater

    async def set_feedback(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        run_id: str,
        rec_index: int,
        action: FeedbackAction | str,
    ) -> FeedbackOutcome:
        action = FeedbackAction.parse(action)
        await load_run_recommendation(session, user_id=user_id, run_id=run_id, rec_index=rec_index)

        existing = await _find_row(session, user_id=user_id, run_id=run_id, rec_index=rec_index)
        previous = existing.action if existing is not None else None

        if previous == action.value:
            await session.delete(existing)
            await session.commit()
            logger.info("Feedback cleared for user %s on run %s #%d", user_id, run_id, rec_index)
            return FeedbackOutcome(active_action=None)

        if existing is None:
            session.add(
                models.RecommendationFeedback(
                    run_id=run_id,
                    user_id=user_id,
                    rec_index=rec_index,
                    action=action.value,
                )
            )
        else:
            existing.action = action.value
        await session.commit()

        try:
            result = await self._updater.apply(
                session,
                user_id=user_id,
                run_id=run_id,
                rec_index=rec_index,
                action=action,
            )
        except (RefindaError, SQLAlchemyError):
            await session.rollback()
            await self._restore(session, user_id=user_id, run_id=run_id, rec_index=rec_index, previous=previous)
            raise
        return FeedbackOutcome(active_action=action, taste_update=result)

    async def _restore(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        run_id: str,
        rec_index: int,
        previous: str | None,
    ) -> None:
        """Put the reaction back to ``previous`` (``None`` removes it)."""

        row = await _find_row(session, user_id=user_id, run_id=run_id, rec_index=rec_index)
        if row is None:
            return
        if previous is None:
            await session.delete(row)
        else:
            row.action = previous
        await session.commit()
        logger.warning(
            "Taste update failed for user %s on run %s #%d; reaction restored to %s",
            user_id,
            run_id,
            rec_index,
            previous,
        )
