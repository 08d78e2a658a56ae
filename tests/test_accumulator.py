"""Tests for the taste accumulator."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from refinda.errors import InvalidInputError
from refinda.taste.accumulator import (
    FeedbackAction,
    apply_delta,
    apply_feedback,
    build_delta,
    days_between,
    decay_factor,
    weight_for,
)
from refinda.taste.vocabulary import extract_features


def test_action_weights() -> None:
    assert weight_for("bought") == 1.5
    assert weight_for("save") == 0.6
    assert weight_for(FeedbackAction.NOT_FOR_ME) == -1.0


@pytest.mark.parametrize("raw", ["like", "", None, 3])
def test_unknown_action_rejected(raw: object) -> None:
    with pytest.raises(InvalidInputError):
        FeedbackAction.parse(raw)


def test_build_delta_accumulates_repeated_features() -> None:
    assert build_delta(["fit_straight", "era_90s", "fit_straight"], 0.6) == {
        "fit_straight": pytest.approx(1.2),
        "era_90s": 0.6,
    }


def test_zero_delta_without_decay_is_identity() -> None:
    vector = {"fit_straight": 3.0, "wash_dark": -2.5, "era_90s": 0.4}

    assert apply_delta(vector, {}, 1.0, -1000, 1000) == vector
    assert apply_feedback(vector, [], 0.0, 1.0, -1000, 1000) == vector


def test_same_day_decay_is_idempotent() -> None:
    vector = {"rise_high": 7.25}

    assert decay_factor(0.985, 0) == 1.0
    assert apply_delta(vector, {}, decay_factor(0.985, 0), -30, 30) == vector


@pytest.mark.parametrize("magnitude", [1e6, -1e6, 31.0, -31.0])
def test_clamp_invariant(magnitude: float) -> None:
    updated = apply_delta({"fit_baggy": magnitude}, {"fit_baggy": magnitude, "wash_raw": magnitude}, 1.0, -30, 30)

    assert all(-30 <= value <= 30 for value in updated.values())


def test_decay_is_monotonic_in_elapsed_days() -> None:
    values = [apply_delta({"era_y2k": 12.0}, {}, decay_factor(0.985, days), -30, 30)["era_y2k"] for days in (0, 1, 5, 30)]

    assert values == sorted(values, reverse=True)


def test_negative_elapsed_days_are_floored() -> None:
    now = datetime(2025, 1, 10, tzinfo=timezone.utc)

    assert days_between(now + timedelta(days=2), now) == 0.0
    assert days_between(None, now) == 0.0
    assert days_between(now - timedelta(hours=36), now) == pytest.approx(1.5)
    assert decay_factor(0.985, -3) == 1.0


def test_decay_base_must_be_in_unit_interval() -> None:
    with pytest.raises(InvalidInputError):
        decay_factor(0.0, 1)
    with pytest.raises(InvalidInputError):
        decay_factor(1.2, 1)
    with pytest.raises(InvalidInputError):
        decay_factor(1.0, 1)


def test_inverted_clamp_range_rejected() -> None:
    with pytest.raises(InvalidInputError):
        apply_delta({}, {"fit_slim": 1.0}, 1.0, 5, -5)


def test_missing_vector_and_bad_values_count_as_zero() -> None:
    updated = apply_delta(
        {"fit_slim": float("nan"), "wash_dark": "3", "rise_low": math.inf},
        {"fit_slim": 0.6},
        1.0,
        -30,
        30,
    )

    assert updated == {"fit_slim": 0.6}
    assert apply_delta(None, {"era_90s": 1.5}, 1.0, -30, 30) == {"era_90s": 1.5}


def test_values_cancelling_to_zero_are_dropped() -> None:
    assert apply_delta({"wash_light": 1.0}, {"wash_light": -1.0}, 1.0, -30, 30) == {}


def test_first_purchase_on_empty_vector() -> None:
    features = extract_features({"fit": "straight", "era_inspiration": "90s"})

    updated = apply_feedback({}, features, FeedbackAction.BOUGHT.weight, 1.0, -30, 30)

    assert build_delta(features, 1.5) == {"fit_straight": 1.5, "era_90s": 1.5}
    assert updated == {"fit_straight": 1.5, "era_90s": 1.5}


def test_dislike_after_ten_days_of_decay() -> None:
    decay = decay_factor(0.985, 10)

    updated = apply_feedback({"wash_light": 10.0}, ["wash_light"], FeedbackAction.NOT_FOR_ME.weight, decay, -30, 30)

    assert 10 * decay == pytest.approx(8.60, abs=0.01)
    assert updated["wash_light"] == pytest.approx(7.60, abs=0.01)


def test_untouched_keys_decay_too() -> None:
    updated = apply_feedback({"era_80s": 4.0}, ["fit_relaxed"], 0.6, 0.5, -30, 30)

    assert updated == {"era_80s": 2.0, "fit_relaxed": 0.6}
