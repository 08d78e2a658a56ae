"""Retrospective health metrics over taste-vector snapshots.

All percentages are rounded and clamped into ``[0, 100]``.

* drift: ``mean(|v_new - v_prev|) / range * 100`` over the union of keys
* stability: ``100 - drift``
* saturation: share of keys with ``|v| >= half_range * rail_threshold``
* dominance / diversity: largest group share of absolute mass and its complement
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Sequence

from refinda.taste.summary import TasteItem, finite_entries
from refinda.taste.vocabulary import TASTE_GROUPS, group_for_key

OTHER_GROUP = "other"


def meter_pct(value: float) -> int:
    return max(0, min(100, round(value)))


def safe_range(lower: float, upper: float) -> float:
    span = upper - lower
    return span if span != 0 else 1.0


def drift_pct(newer: Mapping[str, Any], older: Mapping[str, Any], clamp_min: float, clamp_max: float) -> int:
    span = safe_range(clamp_min, clamp_max)
    new_values = dict(finite_entries(newer))
    old_values = dict(finite_entries(older))
    keys = set(newer) | set(older)
    if not keys:
        return 0
    total = sum(abs(new_values.get(key, 0.0) - old_values.get(key, 0.0)) for key in keys)
    return meter_pct(total / len(keys) / span * 100)


def saturation_pct(
    vector: Mapping[str, Any],
    clamp_min: float,
    clamp_max: float,
    rail_threshold: float = 0.9,
) -> int:
    lower, upper = min(clamp_min, clamp_max), max(clamp_min, clamp_max)
    half_range = safe_range(lower, upper) / 2
    entries = finite_entries(vector)
    if not entries:
        return 0
    saturated = sum(1 for _, value in entries if abs(value) >= half_range * rail_threshold)
    return meter_pct(saturated / len(entries) * 100)


def group_shares(vector: Mapping[str, Any]) -> dict[str, float]:
    """Share of total absolute mass per group, ``other`` for foreign keys."""

    masses = {group.value: 0.0 for group in TASTE_GROUPS}
    masses[OTHER_GROUP] = 0.0
    for key, value in finite_entries(vector):
        group = group_for_key(key)
        masses[group.value if group else OTHER_GROUP] += abs(value)
    total = sum(masses.values())
    return {name: (mass / total if total > 0 else 0.0) for name, mass in masses.items()}


def top_signals(vector: Mapping[str, Any], n: int = 2) -> tuple[list[TasteItem], list[TasteItem]]:
    entries = [(key, value) for key, value in finite_entries(vector) if group_for_key(key) is not None]
    positives = sorted((e for e in entries if e[1] > 0), key=lambda e: e[1], reverse=True)[:n]
    negatives = sorted((e for e in entries if e[1] < 0), key=lambda e: e[1])[:n]
    return [TasteItem(*e) for e in positives], [TasteItem(*e) for e in negatives]


@dataclass(frozen=True, slots=True)
class SnapshotPoint:
    created_at: datetime
    taste_vector: Mapping[str, Any]


@dataclass(slots=True)
class TasteHealthReport:
    snapshot_count: int
    latest_at: datetime | None = None
    drift_pct: int = 0
    stability_pct: int = 100
    saturation_pct: int = 0
    dominance_pct: int = 0
    diversity_pct: int = 0
    group_shares: dict[str, float] = field(default_factory=dict)
    recent_drift: list[dict[str, Any]] = field(default_factory=list)
    top_positive: list[TasteItem] = field(default_factory=list)
    top_negative: list[TasteItem] = field(default_factory=list)


def build_health_report(
    snapshots: Sequence[SnapshotPoint],
    clamp_min: float,
    clamp_max: float,
) -> TasteHealthReport:
    """Compute metrics over snapshots ordered newest first."""

    if not snapshots:
        return TasteHealthReport(snapshot_count=0)

    latest = snapshots[0]
    shares = group_shares(latest.taste_vector)
    max_share = max(shares.values(), default=0.0)

    recent_drift = [
        {
            "created_at": newer.created_at,
            "drift_pct": drift_pct(newer.taste_vector, older.taste_vector, clamp_min, clamp_max),
        }
        for newer, older in zip(snapshots, snapshots[1:])
    ]
    drift = recent_drift[0]["drift_pct"] if recent_drift else 0
    positives, negatives = top_signals(latest.taste_vector)

    return TasteHealthReport(
        snapshot_count=len(snapshots),
        latest_at=latest.created_at,
        drift_pct=drift,
        stability_pct=meter_pct(100 - drift),
        saturation_pct=saturation_pct(latest.taste_vector, clamp_min, clamp_max),
        dominance_pct=meter_pct(max_share * 100),
        diversity_pct=meter_pct((1 - max_share) * 100),
        group_shares=shares,
        recent_drift=recent_drift,
        top_positive=positives,
        top_negative=negatives,
    )
