"""Grouped views over a taste vector, used for prompting, scoring and debug output."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from refinda.taste.vocabulary import TASTE_GROUPS, TasteGroup, group_for_key

SIGNAL_THRESHOLD = 0.25


@dataclass(frozen=True, slots=True)
class TasteItem:
    key: str
    weight: float

    def as_dict(self) -> dict[str, Any]:
        return {"key": self.key, "weight": self.weight}


@dataclass(slots=True)
class GroupTaste:
    likes: list[TasteItem] = field(default_factory=list)
    dislikes: list[TasteItem] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "likes": [item.as_dict() for item in self.likes],
            "dislikes": [item.as_dict() for item in self.dislikes],
        }


@dataclass(slots=True)
class TasteSummary:
    """Top likes and dislikes per feature group."""

    groups: dict[TasteGroup, GroupTaste] = field(
        default_factory=lambda: {group: GroupTaste() for group in TASTE_GROUPS},
    )

    def group(self, group: TasteGroup) -> GroupTaste:
        return self.groups.get(group) or GroupTaste()

    def is_empty(self) -> bool:
        return not any(bucket.likes or bucket.dislikes for bucket in self.groups.values())

    def as_dict(self) -> dict[str, Any]:
        return {group.value: self.group(group).as_dict() for group in TASTE_GROUPS}


def finite_entries(vector: Mapping[str, Any] | None) -> list[tuple[str, float]]:
    """Return ``(key, value)`` pairs whose value is a finite number."""

    entries: list[tuple[str, float]] = []
    for key, raw in (vector or {}).items():
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            continue
        value = float(raw)
        if math.isfinite(value):
            entries.append((key, value))
    return entries


def summarize_grouped(
    vector: Mapping[str, Any] | None,
    top_per_group: int = 2,
    bottom_per_group: int = 1,
    threshold: float = SIGNAL_THRESHOLD,
) -> TasteSummary | None:
    """Bucket the vector by group; ``None`` when there is no vector at all."""

    if vector is None:
        return None

    grouped: dict[TasteGroup, list[tuple[str, float]]] = {group: [] for group in TASTE_GROUPS}
    for key, value in finite_entries(vector):
        group = group_for_key(key)
        if group is not None:
            grouped[group].append((key, value))

    summary = TasteSummary()
    for group, entries in grouped.items():
        likes = sorted((e for e in entries if e[1] > threshold), key=lambda e: e[1], reverse=True)
        dislikes = sorted((e for e in entries if e[1] < -threshold), key=lambda e: e[1])
        summary.groups[group] = GroupTaste(
            likes=[TasteItem(key, value) for key, value in likes[:top_per_group]],
            dislikes=[TasteItem(key, value) for key, value in dislikes[:bottom_per_group]],
        )
    return summary


def enforce_vibe_on_fit_rise(summary: TasteSummary | None) -> TasteSummary | None:
    """Drop fit/rise likes so an active vibe owns the silhouette; keep the dislikes."""

    if summary is None:
        return None
    groups = dict(summary.groups)
    for group in (TasteGroup.FIT, TasteGroup.RISE):
        groups[group] = GroupTaste(likes=[], dislikes=list(summary.group(group).dislikes))
    return TasteSummary(groups=groups)


def embedding_text(vector: Mapping[str, Any] | None, top_n: int = 12) -> str:
    """Render the vector as the sentence embedded for look matching."""

    entries = finite_entries(vector)
    positives = sorted((e for e in entries if e[1] > SIGNAL_THRESHOLD), key=lambda e: e[1], reverse=True)
    negatives = sorted((e for e in entries if e[1] < -SIGNAL_THRESHOLD), key=lambda e: e[1])

    def _fmt(items: list[tuple[str, float]]) -> str:
        return ", ".join(f"{key}:{value:.2f}" for key, value in items[:top_n])

    return " ".join(
        [
            "Refinda user taste vector for denim traits.",
            f"Likes: {_fmt(positives)}." if positives else "Likes: none.",
            f"Dislikes: {_fmt(negatives)}." if negatives else "Dislikes: none.",
            "Keys are canonical: era_*, fit_*, rise_*, wash_*, fabric_*.",
        ]
    )


def pretty_vector(
    vector: Mapping[str, Any] | None,
    clamp_min: float | None = None,
    clamp_max: float | None = None,
    top_n: int = 12,
) -> dict[str, Any]:
    """Debug view: clamp bounds, key totals, grouped summary and extremes."""

    clamp = {"min": clamp_min, "max": clamp_max} if clamp_min is not None and clamp_max is not None else None
    if vector is None:
        return {"clamp": clamp, "totals": None, "groups": None, "top_positive": [], "top_negative": []}

    entries = finite_entries(vector)
    positives = sorted((e for e in entries if e[1] > 0), key=lambda e: e[1], reverse=True)
    negatives = sorted((e for e in entries if e[1] < 0), key=lambda e: e[1])
    summary = summarize_grouped(vector)
    return {
        "clamp": clamp,
        "totals": {"keys": len(entries), "positives": len(positives), "negatives": len(negatives)},
        "groups": summary.as_dict() if summary else None,
        "top_positive": [TasteItem(k, v).as_dict() for k, v in positives[:top_n]],
        "top_negative": [TasteItem(k, v).as_dict() for k, v in negatives[:top_n]],
    }
