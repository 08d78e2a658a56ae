"""Vibe constraints derived from a style vibe's attributes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from refinda.taste.vocabulary import normalize_text


@dataclass(frozen=True, slots=True)
class VibeConstraints:
    """Allowed fits/rises (``None`` = unconstrained) and preferred washes."""

    allowed_fits: list[str] | None = None
    allowed_rises: list[str] | None = None
    preferred_washes: tuple[str, ...] = ()

    @property
    def has_any(self) -> bool:
        return bool(self.allowed_fits or self.allowed_rises)


def _string_list(value: Any) -> list[str] | None:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return None
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return items or None


def _dedupe(values: list[str] | None) -> list[str] | None:
    if not values:
        return None
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        lowered = value.lower()
        if lowered in seen:
            continue
        seen.add(lowered)
        unique.append(value)
    return unique


def _allowed(node: Any) -> list[str] | None:
    """Accept ``["Baggy"]`` or ``{"primary": ..., "secondary": ...}`` shapes."""

    if isinstance(node, list):
        return _dedupe(_string_list(node))
    if isinstance(node, dict):
        return _dedupe(_string_list(node.get("primary")) or _string_list(node.get("secondary")))
    return None


def extract_constraints(attributes: Any) -> VibeConstraints:
    """Read allowed fits/rises and the wash list from raw vibe attributes."""

    if not isinstance(attributes, dict):
        return VibeConstraints()

    wash = attributes.get("wash")
    washes = tuple(normalize_text(item) for item in wash if normalize_text(item)) if isinstance(wash, list) else ()
    return VibeConstraints(
        allowed_fits=_allowed(attributes.get("fit")),
        allowed_rises=_allowed(attributes.get("rise")),
        preferred_washes=washes,
    )


def violates(value: str, allowed: list[str] | None) -> bool:
    """True when a constraint list exists and ``value`` is not a case-insensitive member."""

    if not allowed:
        return False
    return normalize_text(value) not in {normalize_text(item) for item in allowed}
