"""Tests for feature extraction and keyword needles."""

from __future__ import annotations

from refinda.recommender.types import DenimRecommendation
from refinda.taste.vocabulary import (
    TasteGroup,
    extract_features,
    group_for_key,
    key_to_needles,
    label_for_key,
    strip_group_prefix,
)


def test_extract_features_from_mapping() -> None:
    item = {
        "era_inspiration": "90s Supermodel",
        "fit": "Straight",
        "rise": "High",
        "wash": "Dark Indigo",
        "stretch_level": "Rigid",
    }

    assert extract_features(item) == ["era_90s", "fit_straight", "rise_high", "wash_dark", "fabric_rigid"]


def test_extract_features_from_model_instance() -> None:
    rec = DenimRecommendation(era_inspiration="80s Americana", fit="cowboy cut", wash="medium indigo")

    assert extract_features(rec) == ["era_80s", "fit_cowboy_cut", "wash_medium"]


def test_extract_features_matches_several_rules_per_field() -> None:
    # "mid" is both a rise and a wash pattern, but each group reads its own field
    item = {"rise": "mid", "wash": "faded light", "stretch_level": "non-stretch"}

    assert extract_features(item) == ["rise_mid", "wash_light", "wash_distressed", "fabric_rigid", "fabric_stretch"]


def test_extract_features_ignores_missing_and_non_string_fields() -> None:
    assert extract_features({"fit": None, "rise": 3}) == []
    assert extract_features({}) == []


def test_group_lookup_and_prefix_stripping() -> None:
    assert group_for_key("wash_light") is TasteGroup.WASH
    assert group_for_key("colour_blue") is None
    assert strip_group_prefix("fit_cowboy_cut") == "cowboy_cut"
    assert strip_group_prefix("colour_blue") == "colour_blue"
    assert label_for_key("fit_cowboy_cut") == "Fit: cowboy cut"


def test_key_to_needles_adds_group_synonyms() -> None:
    assert key_to_needles("wash_light") == ["light", "light wash", "faded"]
    assert key_to_needles("rise_high") == ["high", "high-rise", "high rise"]
    assert key_to_needles("fit_slim") == ["slim", "taper"]


def test_key_to_needles_keeps_underscored_form() -> None:
    assert key_to_needles("fit_cowboy_cut") == ["cowboy cut", "cowboy_cut"]


def test_key_to_needles_empty_base() -> None:
    assert key_to_needles("fit_") == []
