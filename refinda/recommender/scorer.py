"""Deterministic confidence scoring for generated recommendations."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from refinda.recommender.types import ConfidenceLabel
from refinda.recommender.vibe import violates
from refinda.taste.summary import TasteItem, TasteSummary
from refinda.taste.vocabulary import TASTE_GROUPS, includes_any, key_to_needles, normalize_text

TEXT_FIELDS = (
    "era_inspiration",
    "fit",
    "rise",
    "wash",
    "stretch_level",
    "brand",
    "model",
    "why_each_pick",
    "anchor_reason",
)

LIKE_CAP = 2
DISLIKE_CAP = 1
LIKE_POINTS = 1.0
DISLIKE_POINTS = 1.2

VIOLATION_SCORE = 0.05
SATISFIED_SCORE = 1.0
UNCONSTRAINED_SCORE = 0.7
NEUTRAL_TASTE_SCORE = 0.5
MISSING_ANCHOR_SCORE = 0.25

BASE_SCORE = 0.12
VIBE_WEIGHT = 0.58
TASTE_WEIGHT = 0.22
ANCHOR_WEIGHT = 0.08

VIOLATION_CAP = 0.25
RISK_CAP = 0.69
WEAK_ANCHOR_DISTANCE = 0.55

STRONG_THRESHOLD = 0.78
GOOD_THRESHOLD = 0.60


@dataclass(frozen=True, slots=True)
class VibeScore:
    ok: bool
    score: float


@dataclass(frozen=True, slots=True)
class ConfidenceResult:
    score: float
    label: ConfidenceLabel

    def as_fields(self) -> dict[str, Any]:
        return {"confidence_score": self.score, "confidence_label": self.label}


def clamp01(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def _field(rec: Any, name: str) -> Any:
    if isinstance(rec, dict):
        return rec.get(name)
    return getattr(rec, name, None)


def recommendation_text(rec: Any) -> str:
    """All descriptive fields, normalised and space-joined."""

    return " ".join(normalize_text(_field(rec, name)) for name in TEXT_FIELDS).strip()


def _mentions(text: str, item: TasteItem) -> bool:
    needles = key_to_needles(item.key)
    return bool(needles) and includes_any(text, needles)


def _capped_hits(text: str, items: list[TasteItem], cap: int) -> int:
    hits = 0
    for item in items:
        if _mentions(text, item):
            hits += 1
        if hits >= cap:
            break
    return hits


def score_vibe_constraint(
    rec: Any,
    allowed_fits: list[str] | None,
    allowed_rises: list[str] | None,
) -> VibeScore:
    if violates(_field(rec, "fit"), allowed_fits) or violates(_field(rec, "rise"), allowed_rises):
        return VibeScore(ok=False, score=VIOLATION_SCORE)
    constrained = bool(allowed_fits or allowed_rises)
    return VibeScore(ok=True, score=SATISFIED_SCORE if constrained else UNCONSTRAINED_SCORE)


def score_taste_match(text: str, summary: TasteSummary | None) -> float:
    """Net like/dislike hits per group, rescaled into [0, 1] around 0.5."""

    if summary is None:
        return NEUTRAL_TASTE_SCORE

    points = 0.0
    max_points = 0.0
    for group in TASTE_GROUPS:
        bucket = summary.group(group)
        points += _capped_hits(text, bucket.likes, LIKE_CAP) * LIKE_POINTS
        points -= _capped_hits(text, bucket.dislikes, DISLIKE_CAP) * DISLIKE_POINTS
        max_points += LIKE_CAP * LIKE_POINTS + DISLIKE_CAP * DISLIKE_POINTS

    return clamp01(NEUTRAL_TASTE_SCORE + (points / (2 * max_points) if max_points > 0 else 0.0))


def score_anchor_strength(anchor_distance: float | None) -> float:
    """0.10 or closer is full strength, 0.60 or further is none."""

    if not _valid_distance(anchor_distance):
        return MISSING_ANCHOR_SCORE
    return clamp01(1 - (anchor_distance - 0.10) / 0.50)


def has_dislike_hit(text: str, summary: TasteSummary | None) -> bool:
    """Any disliked key mentioned anywhere, ignoring the per-group caps."""

    if summary is None:
        return False
    return any(
        _mentions(text, item) for group in TASTE_GROUPS for item in summary.group(group).dislikes
    )


def label_for(score: float) -> ConfidenceLabel:
    if score >= STRONG_THRESHOLD:
        return "strong"
    if score >= GOOD_THRESHOLD:
        return "good"
    return "bridge"


def score_recommendation(
    rec: Any,
    allowed_fits: list[str] | None,
    allowed_rises: list[str] | None,
    taste_summary: TasteSummary | None,
    anchor_distance: float | None,
) -> ConfidenceResult:
    """Blend vibe, taste and anchor sub-scores into a score and label."""

    text = recommendation_text(rec)
    vibe = score_vibe_constraint(rec, allowed_fits, allowed_rises)
    taste = score_taste_match(text, taste_summary)
    anchor = score_anchor_strength(anchor_distance)

    raw = BASE_SCORE + VIBE_WEIGHT * vibe.score + TASTE_WEIGHT * taste + ANCHOR_WEIGHT * anchor
    score = clamp01(raw) if vibe.ok else clamp01(min(raw, VIOLATION_CAP))
    label = label_for(score)

    weak_anchor = _valid_distance(anchor_distance) and anchor_distance > WEAK_ANCHOR_DISTANCE
    if weak_anchor or has_dislike_hit(text, taste_summary):
        label = "bridge"
        score = min(score, RISK_CAP)

    return ConfidenceResult(score=score, label=label)


def _valid_distance(distance: float | None) -> bool:
    return isinstance(distance, (int, float)) and not isinstance(distance, bool) and math.isfinite(distance)
