"""Canonical denim feature vocabulary.

Feature keys are namespaced by group prefix (``era_``, ``fit_``, ``rise_``,
``wash_``, ``fabric_``). Two lookups live here so the accumulator and the
confidence scorer never disagree on wording:

* ``extract_features`` maps free-text recommendation fields to keys through
  an ordered table of substring patterns.
* ``key_to_needles`` maps a key back to the phrases that count as a mention
  of it in recommendation text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable


class TasteGroup(str, Enum):
    """Feature groups, in the order they are reported."""

    ERA = "era"
    FIT = "fit"
    RISE = "rise"
    WASH = "wash"
    FABRIC = "fabric"

    @property
    def prefix(self) -> str:
        return f"{self.value}_"


TASTE_GROUPS: tuple[TasteGroup, ...] = tuple(TasteGroup)

# recommendation field read for each group
SOURCE_FIELDS: dict[TasteGroup, str] = {
    TasteGroup.ERA: "era_inspiration",
    TasteGroup.FIT: "fit",
    TasteGroup.RISE: "rise",
    TasteGroup.WASH: "wash",
    TasteGroup.FABRIC: "stretch_level",
}


@dataclass(frozen=True, slots=True)
class FeatureRule:
    """Emit ``key`` when the group's source text contains any of ``patterns``."""

    group: TasteGroup
    patterns: tuple[str, ...]
    key: str


FEATURE_RULES: tuple[FeatureRule, ...] = (
    FeatureRule(TasteGroup.ERA, ("90",), "era_90s"),
    FeatureRule(TasteGroup.ERA, ("80",), "era_80s"),
    FeatureRule(TasteGroup.ERA, ("y2k",), "era_y2k"),
    FeatureRule(TasteGroup.ERA, ("heritage", "vintage"), "era_heritage"),
    FeatureRule(TasteGroup.FIT, ("slim",), "fit_slim"),
    FeatureRule(TasteGroup.FIT, ("straight",), "fit_straight"),
    FeatureRule(TasteGroup.FIT, ("relaxed",), "fit_relaxed"),
    FeatureRule(TasteGroup.FIT, ("baggy", "skater"), "fit_baggy"),
    FeatureRule(TasteGroup.FIT, ("boot",), "fit_bootcut"),
    FeatureRule(TasteGroup.FIT, ("cowboy",), "fit_cowboy_cut"),
    FeatureRule(TasteGroup.RISE, ("low",), "rise_low"),
    FeatureRule(TasteGroup.RISE, ("mid",), "rise_mid"),
    FeatureRule(TasteGroup.RISE, ("high",), "rise_high"),
    FeatureRule(TasteGroup.WASH, ("light",), "wash_light"),
    FeatureRule(TasteGroup.WASH, ("medium", "mid"), "wash_medium"),
    FeatureRule(TasteGroup.WASH, ("dark",), "wash_dark"),
    FeatureRule(TasteGroup.WASH, ("raw",), "wash_raw"),
    FeatureRule(TasteGroup.WASH, ("distress", "faded"), "wash_distressed"),
    FeatureRule(TasteGroup.FABRIC, ("non", "rigid"), "fabric_rigid"),
    FeatureRule(TasteGroup.FABRIC, ("stretch",), "fabric_stretch"),
)

# (group, fragment of the key's base text) -> extra phrases counted as a mention
NEEDLE_SYNONYMS: tuple[tuple[TasteGroup, str, tuple[str, ...]], ...] = (
    (TasteGroup.WASH, "light", ("light wash", "faded")),
    (TasteGroup.WASH, "dark", ("dark wash", "rinse")),
    (TasteGroup.WASH, "medium", ("mid wash", "medium wash")),
    (TasteGroup.WASH, "black", ("black denim", "black")),
    (TasteGroup.RISE, "low", ("low-rise", "low rise")),
    (TasteGroup.RISE, "mid", ("mid-rise", "mid rise")),
    (TasteGroup.RISE, "high", ("high-rise", "high rise")),
    (TasteGroup.FIT, "straight", ("straight-leg", "straight leg")),
    (TasteGroup.FIT, "baggy", ("baggy", "loose")),
    (TasteGroup.FIT, "slim", ("slim", "taper")),
    (TasteGroup.FIT, "flare", ("flare", "bootcut")),
    (TasteGroup.FABRIC, "rigid", ("rigid", "non-stretch")),
    (TasteGroup.FABRIC, "stretch", ("stretch", "elastane")),
    (TasteGroup.FABRIC, "soft", ("soft",)),
)


def normalize_text(value: Any) -> str:
    """Lower-case and strip strings; anything else becomes an empty string."""

    return value.lower().strip() if isinstance(value, str) else ""


def includes_any(haystack: str, needles: Iterable[str]) -> bool:
    """Case-insensitive substring test against several needles."""

    lowered = haystack.lower()
    return any(needle and needle.lower() in lowered for needle in needles)


def group_for_key(key: str) -> TasteGroup | None:
    """Return the group a feature key belongs to, or ``None`` for foreign keys."""

    for group in TASTE_GROUPS:
        if key.startswith(group.prefix):
            return group
    return None


def strip_group_prefix(key: str) -> str:
    group = group_for_key(key)
    return key[len(group.prefix):] if group else key


def label_for_key(key: str) -> str:
    """Human readable label, e.g. ``fit_cowboy_cut`` -> ``Fit: cowboy cut``."""

    group = group_for_key(key)
    base = strip_group_prefix(key).replace("_", " ")
    if group is None:
        return base
    return f"{group.value.capitalize()}: {base}"


def _field_text(item: Any, field: str) -> str:
    if isinstance(item, dict):
        return normalize_text(item.get(field))
    return normalize_text(getattr(item, field, None))


def extract_features(item: Any) -> list[str]:
    """Return the deduplicated feature keys described by a recommendation.

    ``item`` may be a mapping or any object exposing the recommendation text
    fields as attributes. Order follows the rule table.
    """

    features: list[str] = []
    texts = {group: _field_text(item, field) for group, field in SOURCE_FIELDS.items()}
    for rule in FEATURE_RULES:
        if rule.key in features:
            continue
        if includes_any(texts[rule.group], rule.patterns):
            features.append(rule.key)
    return features


def key_to_needles(key: str) -> list[str]:
    """Phrases whose presence in recommendation text counts as matching ``key``."""

    lowered = key.lower()
    group = group_for_key(lowered)
    underscored = strip_group_prefix(lowered).strip()
    base = underscored.replace("_", " ").strip()
    if not base:
        return []

    extras: list[str] = []
    if group is not None:
        for synonym_group, fragment, phrases in NEEDLE_SYNONYMS:
            if synonym_group is group and fragment in base:
                extras.extend(phrases)

    needles: list[str] = []
    for phrase in (base, underscored, *extras):
        phrase = phrase.strip()
        if phrase and phrase not in needles:
            needles.append(phrase)
    return needles
