"""Incremental taste-vector learning.

A taste vector is a sparse mapping of feature key to signed affinity. Each
feedback event decays the stored vector by the time since its last update and
adds a signed delta for the rated item's features; every value is then
truncated into the profile's clamp range.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Iterable, Mapping

from refinda.errors import InvalidInputError

TasteVector = dict[str, float]

SECONDS_PER_DAY = 24 * 60 * 60

# values closer to zero than this are treated as absent
ZERO_EPSILON = 1e-9


class FeedbackAction(str, Enum):
    """Reactions a user can leave on a recommendation."""

    SAVE = "save"
    BOUGHT = "bought"
    NOT_FOR_ME = "not_for_me"

    @property
    def weight(self) -> float:
        return ACTION_WEIGHTS[self]

    @classmethod
    def parse(cls, raw: object) -> "FeedbackAction":
        """Return the action for ``raw`` or raise ``InvalidInputError``."""

        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError as exc:
            allowed = ", ".join(action.value for action in cls)
            raise InvalidInputError(f"Unknown feedback action {raw!r}; expected one of: {allowed}.") from exc


ACTION_WEIGHTS: dict[FeedbackAction, float] = {
    FeedbackAction.BOUGHT: 1.5,
    FeedbackAction.SAVE: 0.6,
    FeedbackAction.NOT_FOR_ME: -1.0,
}


def weight_for(action: FeedbackAction | str) -> float:
    return FeedbackAction.parse(action).weight


def build_delta(features: Iterable[str], weight: float) -> TasteVector:
    """Accumulate ``weight`` once per feature occurrence."""

    delta: TasteVector = {}
    for feature in features:
        delta[feature] = delta.get(feature, 0.0) + weight
    return delta


def days_between(earlier: datetime | None, later: datetime) -> float:
    """Elapsed days, floored at zero. A missing ``earlier`` means no elapsed time."""

    if earlier is None:
        return 0.0
    return max(0.0, (later - earlier).total_seconds() / SECONDS_PER_DAY)


def decay_factor(base_decay: float, days_elapsed: float) -> float:
    """``base_decay ** days_elapsed``; exactly 1.0 when no time has passed."""

    if not 0.0 < base_decay < 1.0:
        raise InvalidInputError(f"Taste decay must be in (0, 1), got {base_decay}.")
    days = max(0.0, days_elapsed)
    if days == 0.0:
        return 1.0
    return base_decay**days


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def apply_feedback(
    current: Mapping[str, float] | None,
    features: Iterable[str],
    weight: float,
    decay: float,
    clamp_min: float,
    clamp_max: float,
) -> TasteVector:
    """Decay ``current`` and add ``weight`` for every extracted feature."""

    return apply_delta(current, build_delta(features, weight), decay, clamp_min, clamp_max)


def apply_delta(
    current: Mapping[str, float] | None,
    delta: Mapping[str, float],
    decay: float,
    clamp_min: float,
    clamp_max: float,
) -> TasteVector:
    """Return ``clamp(current * decay + delta)`` over the union of keys.

    Non-numeric or non-finite stored values count as zero. Keys whose result
    is (numerically) zero are dropped, so absent and zero stay equivalent.
    """

    if clamp_min > clamp_max:
        raise InvalidInputError(f"Invalid clamp range [{clamp_min}, {clamp_max}].")

    current = current or {}
    updated: TasteVector = {}
    for key in dict.fromkeys([*current, *delta]):
        previous = _as_finite(current.get(key))
        value = clamp(previous * decay + _as_finite(delta.get(key)), clamp_min, clamp_max)
        if abs(value) > ZERO_EPSILON:
            updated[key] = value
    return updated


def _as_finite(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    number = float(value)
    return number if math.isfinite(number) else 0.0
