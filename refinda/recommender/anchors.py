"""Heuristic re-ranking of celebrity-look anchor candidates."""

from __future__ import annotations

import math
from typing import Sequence

from refinda.recommender.types import AnchorLook, StyleProfile
from refinda.recommender.vibe import VibeConstraints
from refinda.taste.summary import TasteSummary
from refinda.taste.vocabulary import TasteGroup, includes_any, normalize_text

PUBLIC_IMAGE_BONUS = 0.08
FIT_MATCH_BONUS = 0.12
FIT_MISS_PENALTY = -0.20
RISE_MATCH_BONUS = 0.10
RISE_MISS_PENALTY = -0.15
WASH_MATCH_BONUS = 0.06
DISLIKE_PENALTY = 0.06


def _disliked_fragments(summary: TasteSummary | None, group: TasteGroup) -> list[str]:
    if summary is None:
        return []
    return [normalize_text(item.key.replace(group.prefix, "", 1)) for item in summary.group(group).dislikes]


def score_anchor(
    look: AnchorLook,
    constraints: VibeConstraints,
    taste_summary: TasteSummary | None,
) -> float:
    distance = look.distance if look.distance is not None and math.isfinite(look.distance) else 1.0
    score = 1 - distance

    if look.has_public_image:
        score += PUBLIC_IMAGE_BONUS

    profile = StyleProfile.from_raw(look.style_profile)
    canonical = normalize_text(look.canonical_text)

    if constraints.allowed_fits:
        silhouette = " ".join(profile.silhouette)
        matched = includes_any(f"{silhouette} {canonical}", [normalize_text(f) for f in constraints.allowed_fits])
        score += FIT_MATCH_BONUS if matched else FIT_MISS_PENALTY

    if constraints.allowed_rises:
        matched = includes_any(f"{profile.rise} {canonical}", [normalize_text(r) for r in constraints.allowed_rises])
        score += RISE_MATCH_BONUS if matched else RISE_MISS_PENALTY

    wash_text = f"{profile.wash} {canonical}"
    if constraints.preferred_washes and includes_any(wash_text, constraints.preferred_washes):
        score += WASH_MATCH_BONUS

    disliked_washes = _disliked_fragments(taste_summary, TasteGroup.WASH)
    if disliked_washes and includes_any(wash_text, disliked_washes):
        score -= DISLIKE_PENALTY

    disliked_fabrics = _disliked_fragments(taste_summary, TasteGroup.FABRIC)
    if disliked_fabrics and includes_any(f"{profile.fabric} {canonical}", disliked_fabrics):
        score -= DISLIKE_PENALTY

    return score


def rerank_anchors(
    looks: Sequence[AnchorLook],
    constraints: VibeConstraints,
    taste_summary: TasteSummary | None,
) -> list[AnchorLook]:
    """Sort looks by composite score, highest first; ties keep input order."""

    scored = [(look, score_anchor(look, constraints, taste_summary)) for look in looks]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return [look for look, _ in scored]
