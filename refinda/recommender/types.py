"""Validated shapes for generated recommendations and anchor looks."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

ConfidenceLabel = Literal["strong", "good", "bridge"]

MIN_ANCHOR_REASON_LENGTH = 12


class DenimRecommendation(BaseModel):
    """One denim pick, as generated and as stored on a recommendation run."""

    model_config = ConfigDict(protected_namespaces=())

    brand: str = ""
    model: str = ""
    era_inspiration: str = ""
    fit: str = ""
    rise: str = ""
    wash: str = ""
    stretch_level: str = ""
    why_each_pick: str = ""
    search_queries: list[str] = Field(default_factory=list)
    anchor_look_id: str = ""
    anchor_reason: str = ""

    confidence_score: float | None = None
    confidence_label: ConfidenceLabel | None = None

    @field_validator("search_queries", mode="before")
    @classmethod
    def _keep_string_queries(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [query for query in value if isinstance(query, str)][:3]


class GeneratedRecommendation(DenimRecommendation):
    """A pick returned by the generator; must cite one of the offered anchors."""

    @field_validator("anchor_look_id")
    @classmethod
    def _anchor_offered(cls, value: str, info: ValidationInfo) -> str:
        if not value:
            raise ValueError("Recommendation missing anchor_look_id.")
        allowed = (info.context or {}).get("anchor_ids")
        if allowed is not None and value not in allowed:
            raise ValueError(f"anchor_look_id was not among the offered looks: {value}")
        return value

    @field_validator("anchor_reason")
    @classmethod
    def _reason_present(cls, value: str) -> str:
        if len(value.strip()) < MIN_ANCHOR_REASON_LENGTH:
            raise ValueError("Recommendation anchor_reason is missing or too short.")
        return value


class GeneratedRecommendations(BaseModel):
    recommendations: list[GeneratedRecommendation]


class StyleProfile(BaseModel):
    """Loose style description attached to a celebrity look."""

    era: str = ""
    rise: str = ""
    wash: str = ""
    fabric: str = ""
    silhouette: list[str] = Field(default_factory=list)
    vibe: list[str] = Field(default_factory=list)

    @field_validator("era", "rise", "wash", "fabric", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return value.lower().strip() if isinstance(value, str) else ""

    @field_validator("silhouette", "vibe", mode="before")
    @classmethod
    def _text_list(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item.lower().strip() for item in value if isinstance(item, str) and item.strip()]

    @classmethod
    def from_raw(cls, raw: Any) -> "StyleProfile":
        return cls.model_validate(raw) if isinstance(raw, dict) else cls()


class AnchorLook(BaseModel):
    """A celebrity look candidate with its embedding distance to the user."""

    celebrity_look_id: str
    celebrity_id: str | None = None
    celebrity_name: str = ""
    distance: float | None = None
    canonical_text: str | None = None
    style_profile: dict[str, Any] | None = None
    image_url: str | None = None
    display_asset_id: str | None = None
    has_public_image: bool = False
