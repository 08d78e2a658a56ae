"""Tests for the curator prompt builder."""

import json

from refinda.nlp.prompt_builder import CuratorPromptContext, PromptBuilder
from refinda.recommender.types import AnchorLook
from refinda.recommender.vibe import VibeConstraints
from refinda.taste.summary import summarize_grouped


def test_prompt_builder_includes_context() -> None:
    builder = PromptBuilder(7, 10)
    anchors = [
        AnchorLook(celebrity_look_id=f"look-{n}", celebrity_name=f"Celebrity {n}", distance=0.123456)
        for n in range(6)
    ]
    context = CuratorPromptContext(
        vibe="minimal",
        vibe_profile={"id": "minimal", "label": "Minimal"},
        constraints=VibeConstraints(allowed_fits=["Straight"]),
        taste_summary=summarize_grouped({"wash_dark": 3.0}),
        anchors=anchors,
        size="28",
        budget=200,
    )

    system, user = builder.build(context)
    payload = json.loads(user["content"])

    assert system["role"] == "system"
    assert "between 7 and 10 items" in system["content"]
    assert payload["allowed_fits"] == ["Straight"]
    assert payload["allowed_rises"] is None
    assert payload["taste_summary"]["wash"]["likes"] == [{"key": "wash_dark", "weight": 3.0}]
    assert len(payload["top_celebrity_looks"]) == 5
    assert payload["top_celebrity_looks"][0]["distance"] == 0.1235


def test_schema_requires_every_field() -> None:
    schema = PromptBuilder(7, 10).schema()
    items = schema["properties"]["recommendations"]

    assert items["minItems"] == 7
    assert items["maxItems"] == 10
    assert "anchor_look_id" in items["items"]["required"]
    assert items["items"]["properties"]["search_queries"]["maxItems"] == 3
