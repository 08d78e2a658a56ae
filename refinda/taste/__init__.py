"""Taste-vector learning primitives."""

from .accumulator import (
    ACTION_WEIGHTS,
    FeedbackAction,
    TasteVector,
    apply_delta,
    apply_feedback,
    build_delta,
    days_between,
    decay_factor,
)
from .summary import TasteItem, TasteSummary, enforce_vibe_on_fit_rise, summarize_grouped
from .vocabulary import TasteGroup, extract_features, key_to_needles

__all__ = [
    "ACTION_WEIGHTS",
    "FeedbackAction",
    "TasteGroup",
    "TasteItem",
    "TasteSummary",
    "TasteVector",
    "apply_delta",
    "apply_feedback",
    "build_delta",
    "days_between",
    "decay_factor",
    "enforce_vibe_on_fit_rise",
    "extract_features",
    "key_to_needles",
    "summarize_grouped",
]
