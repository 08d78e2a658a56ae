"""Prompt and response schema for the denim curator model."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Sequence

from refinda.recommender.types import AnchorLook
from refinda.recommender.vibe import VibeConstraints
from refinda.taste.summary import TasteSummary

MAX_PROMPT_ANCHORS = 5

SYSTEM_PROMPT = """
You are Refinda's denim curator and you make decisive picks.
Reply with JSON that matches the provided schema and nothing else: no markdown, no code fences.

Taste:
- taste_summary lists per-group likes and dislikes. Lean into strong likes, steer away from dislikes.

Anchors:
- top_celebrity_looks are the inspiration anchors (celebrity_name, canonical_text, style_profile).
- Most picks must visibly echo at least one anchor through silhouette, rise, wash, fabric or vibe.
- Only mention celebrities that appear in top_celebrity_looks.
- For every pick set anchor_look_id to the single best matching look_id from top_celebrity_looks,
  and write anchor_reason as one sentence of 12-28 words naming the concrete shared traits.
  Never talk about distances or embeddings.

Vibe:
- When vibe_profile is present its attributes are the styling ground truth.
- When allowed_fits is present every fit must be one of allowed_fits.
- When allowed_rises is present every rise must be one of allowed_rises.
- Keep at least 70% of picks on the vibe's primary intent; at most 2 bridge picks may drift slightly.

Variety:
- Do not repeat one era/fit/rise/wash/stretch combination for every item.
- Cover at least 2 eras, 2 fits (inside allowed_fits), 2 washes, and mix rises and stretch levels.

Respect size and budget. Return between {min_items} and {max_items} items.
""".strip()

_STRING = {"type": "string"}

RECOMMENDATION_FIELDS = (
    "brand",
    "model",
    "era_inspiration",
    "fit",
    "rise",
    "wash",
    "stretch_level",
    "why_each_pick",
    "search_queries",
    "anchor_look_id",
    "anchor_reason",
)


def response_schema(min_items: int, max_items: int) -> dict[str, Any]:
    """Strict JSON schema the model output must satisfy."""

    properties: dict[str, Any] = {name: _STRING for name in RECOMMENDATION_FIELDS}
    properties["search_queries"] = {"type": "array", "minItems": 1, "maxItems": 3, "items": _STRING}
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "recommendations": {
                "type": "array",
                "minItems": min_items,
                "maxItems": max_items,
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": properties,
                    "required": list(RECOMMENDATION_FIELDS),
                },
            },
        },
        "required": ["recommendations"],
    }


@dataclass(slots=True)
class CuratorPromptContext:
    """Everything the curator needs to know about the request."""

    vibe: str | None
    vibe_profile: dict[str, Any] | None
    constraints: VibeConstraints
    taste_summary: TasteSummary | None
    anchors: Sequence[AnchorLook] = field(default_factory=list)
    size: str | None = None
    budget: float | None = None


class PromptBuilder:
    """Builds chat messages for the curator model."""

    def __init__(self, min_items: int = 7, max_items: int = 10) -> None:
        self._min_items = min_items
        self._max_items = max_items

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT.format(min_items=self._min_items, max_items=self._max_items)

    def user_payload(self, context: CuratorPromptContext) -> dict[str, Any]:
        return {
            "task": (
                f"Recommend {self._min_items}-{self._max_items} denim picks grounded in top_celebrity_looks, "
                "aligned with vibe_profile, size, budget and taste_summary."
            ),
            "vibe": context.vibe,
            "vibe_profile": context.vibe_profile,
            "allowed_fits": context.constraints.allowed_fits,
            "allowed_rises": context.constraints.allowed_rises,
            "size": context.size,
            "budget": context.budget,
            "taste_summary": context.taste_summary.as_dict() if context.taste_summary else None,
            "top_celebrity_looks": [
                {
                    "celebrity_name": look.celebrity_name,
                    "look_id": look.celebrity_look_id,
                    "distance": round(look.distance, 4) if look.distance is not None else None,
                    "canonical_text": look.canonical_text,
                    "style_profile": look.style_profile,
                }
                for look in list(context.anchors)[:MAX_PROMPT_ANCHORS]
            ],
        }

    def build(self, context: CuratorPromptContext) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": json.dumps(self.user_payload(context), ensure_ascii=False)},
        ]

    def schema(self) -> dict[str, Any]:
        return response_schema(self._min_items, self._max_items)
