"""Recommendation pipeline that coordinates anchors, the curator model and scoring."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from refinda.config.settings import Settings, get_settings
from refinda.db import models
from refinda.errors import UpstreamError
from refinda.metrics.prometheus_exporter import llm_failures_total, recommendation_runs_total
from refinda.nlp.curator_client import CuratorClient
from refinda.nlp.prompt_builder import CuratorPromptContext, PromptBuilder
from refinda.recommender.anchors import rerank_anchors
from refinda.recommender.scorer import score_recommendation
from refinda.recommender.types import AnchorLook, DenimRecommendation
from refinda.recommender.vibe import VibeConstraints, extract_constraints
from refinda.services.look_matcher import LookMatcher
from refinda.taste.summary import TasteSummary, enforce_vibe_on_fit_rise, pretty_vector, summarize_grouped

logger = logging.getLogger(__name__)

STUB_RECOMMENDATIONS: tuple[dict[str, Any], ...] = (
    {
        "brand": "Levi's",
        "model": "501",
        "era_inspiration": "90s supermodel",
        "fit": "straight",
        "rise": "mid",
        "wash": "medium indigo",
        "stretch_level": "rigid",
        "why_each_pick": "A timeless straight-leg jean that defined 90s off-duty supermodel style.",
        "search_queries": ["Levi's 501 vintage straight jean"],
    },
    {
        "brand": "Wrangler",
        "model": "13MWZ",
        "era_inspiration": "80s Americana",
        "fit": "cowboy cut",
        "rise": "high",
        "wash": "dark indigo",
        "stretch_level": "rigid",
        "why_each_pick": "Authentic cowboy-cut denim with structure and attitude.",
        "search_queries": ["Wrangler 13MWZ cowboy cut jean"],
    },
    {
        "brand": "Lee",
        "model": "Rider",
        "era_inspiration": "90s minimalist",
        "fit": "straight",
        "rise": "mid",
        "wash": "medium wash",
        "stretch_level": "rigid",
        "why_each_pick": "Clean, structured denim aligned with strong 90s minimalism.",
        "search_queries": ["Lee Rider straight leg jean"],
    },
)

FALLBACK_REASON = "Closest available anchor for this fallback pick (AI unavailable)."
FALLBACK_NO_ANCHOR_REASON = "No anchors available (AI unavailable)."
NON_AI_REASON = "Closest available anchor for this non-AI pick."
NON_AI_NO_ANCHOR_REASON = "No anchors available for this non-AI pick."


@dataclass(slots=True)
class RecommendationRequest:
    vibe: str | None = None
    size: str | None = None
    budget: float | None = None
    debug: bool = False

    def as_input(self, vibe: str | None) -> dict[str, Any]:
        return {"vibe": vibe, "size": self.size, "budget": self.budget}


@dataclass(slots=True)
class RecommendationOutcome:
    user_id: str
    run_id: str | None
    ai_used: bool
    ai_error: str | None
    input: dict[str, Any]
    recommendations: list[DenimRecommendation] = field(default_factory=list)
    debug: dict[str, Any] | None = None


def stub_recommendations(anchors: Sequence[AnchorLook], *, fallback: bool) -> list[DenimRecommendation]:
    """Fixed picks attributed to the closest anchor, if any."""

    anchor_id = anchors[0].celebrity_look_id if anchors else ""
    if fallback:
        reason = FALLBACK_REASON if anchor_id else FALLBACK_NO_ANCHOR_REASON
    else:
        reason = NON_AI_REASON if anchor_id else NON_AI_NO_ANCHOR_REASON
    return [
        DenimRecommendation(**stub, anchor_look_id=anchor_id, anchor_reason=reason)
        for stub in STUB_RECOMMENDATIONS
    ]


def score_all(
    recommendations: Sequence[DenimRecommendation],
    constraints: VibeConstraints,
    taste_summary: TasteSummary | None,
    anchors: Sequence[AnchorLook],
) -> list[DenimRecommendation]:
    distances = {look.celebrity_look_id: look.distance for look in anchors if look.distance is not None}
    return [
        rec.model_copy(
            update=score_recommendation(
                rec,
                constraints.allowed_fits,
                constraints.allowed_rises,
                taste_summary,
                distances.get(rec.anchor_look_id),
            ).as_fields()
        )
        for rec in recommendations
    ]


class RecommendationOrchestrator:
    """Produces a scored, persisted recommendation run for one user request."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        look_matcher: LookMatcher | None = None,
        client_factory: Callable[[], CuratorClient] | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._look_matcher = look_matcher or LookMatcher()
        self._client_factory = client_factory or (lambda: CuratorClient(self._settings))
        self._prompt_builder = prompt_builder or PromptBuilder(
            self._settings.min_recommendations,
            self._settings.max_recommendations,
        )

    async def recommend(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        request: RecommendationRequest,
    ) -> RecommendationOutcome:
        profile = await session.get(models.Profile, user_id)
        vibe = request.vibe or (profile.vibe_default if profile else None)
        vibe_profile = await session.get(models.StyleVibe, vibe) if vibe else None

        constraints = extract_constraints(vibe_profile.attributes if vibe_profile else None)
        taste_vector = profile.taste_vector if profile else None
        taste_summary = summarize_grouped(taste_vector)
        if vibe_profile is not None:
            taste_summary = enforce_vibe_on_fit_rise(taste_summary)

        looks: list[AnchorLook] = []
        if self._settings.use_ai:
            looks = await self._look_matcher.match_for_user(session, profile, self._settings.anchor_match_count)
        reranked = rerank_anchors(looks, constraints, taste_summary) if vibe_profile and looks else looks
        anchors = reranked[: self._settings.anchor_prompt_count]

        started = time.perf_counter()
        ai_used = False
        ai_error: str | None = None
        if self._settings.use_ai:
            context = CuratorPromptContext(
                vibe=vibe,
                vibe_profile=vibe_profile.as_prompt() if vibe_profile else None,
                constraints=constraints,
                taste_summary=taste_summary,
                anchors=anchors,
                size=request.size,
                budget=request.budget,
            )
            try:
                picks = await self._generate(context, anchors)
                ai_used = True
            except UpstreamError as exc:
                ai_error = exc.message
                llm_failures_total.inc()
                logger.error("AI generation failed for user %s, using stub: %s", user_id, ai_error)
                picks = stub_recommendations(anchors, fallback=True)
        else:
            picks = stub_recommendations(anchors, fallback=False)

        scored = score_all(picks, constraints, taste_summary, anchors)
        latency_ms = int((time.perf_counter() - started) * 1000)

        run_input = request.as_input(vibe)
        run_id = await self._persist_run(
            session,
            models.RecommendationRun(
                user_id=user_id,
                input=run_input,
                profile_snapshot=profile.snapshot() if profile else {},
                recommendations=[rec.model_dump() for rec in scored],
                ai_used=ai_used,
                ai_error=ai_error,
                model=self._settings.openai_model,
                latency_ms=latency_ms,
                recommendation_count=len(scored),
                top_anchor_look_ids=[look.celebrity_look_id for look in anchors],
            ),
        )
        recommendation_runs_total.labels(source="ai" if ai_used else "stub").inc()

        debug = None
        if request.debug:
            debug = {
                "model": self._settings.openai_model,
                "vibe": vibe,
                "vibe_profile_label": vibe_profile.label if vibe_profile else None,
                "allowed_fits": constraints.allowed_fits,
                "allowed_rises": constraints.allowed_rises,
                "taste_vector_raw": taste_vector,
                "taste_vector_pretty": pretty_vector(
                    taste_vector,
                    profile.taste_clamp_min if profile else None,
                    profile.taste_clamp_max if profile else None,
                ),
                "taste_summary": taste_summary.as_dict() if taste_summary else None,
                "anchor_looks": [look.model_dump() for look in reranked],
                "scored_preview": [
                    {
                        "brand": rec.brand,
                        "model": rec.model,
                        "confidence_score": rec.confidence_score,
                        "confidence_label": rec.confidence_label,
                    }
                    for rec in scored[:3]
                ],
                "latency_ms": latency_ms,
            }

        return RecommendationOutcome(
            user_id=user_id,
            run_id=run_id,
            ai_used=ai_used,
            ai_error=ai_error,
            input=run_input,
            recommendations=scored,
            debug=debug,
        )

    async def _generate(
        self,
        context: CuratorPromptContext,
        anchors: Sequence[AnchorLook],
    ) -> list[DenimRecommendation]:
        try:
            client = self._client_factory()
        except RuntimeError as exc:
            raise UpstreamError(str(exc)) from exc

        try:
            generated = await client.generate_recommendations(
                self._prompt_builder.build(context),
                self._prompt_builder.schema(),
                {look.celebrity_look_id for look in anchors},
            )
        finally:
            await client.close()

        if len(generated) < self._settings.min_recommendations:
            raise UpstreamError(f"Model returned too few recommendations ({len(generated)}).")
        return [DenimRecommendation.model_validate(pick.model_dump()) for pick in generated]

    async def _persist_run(self, session: AsyncSession, run: models.RecommendationRun) -> str | None:
        user_id = run.user_id
        try:
            session.add(run)
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.warning("recommendation_runs insert failed for user %s: %s", user_id, exc)
            return None
        return run.id
