"""SQLAlchemy models describing the core domain tables."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat those as UTC."""

    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for ORM models."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class Profile(Base):
    """Per-user taste state and learning parameters."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    vibe_default: Mapped[str | None] = mapped_column(String(64))

    taste_vector: Mapped[dict[str, float] | None] = mapped_column(JSON)
    taste_decay: Mapped[float | None] = mapped_column(Float)
    taste_clamp_min: Mapped[float | None] = mapped_column(Float)
    taste_clamp_max: Mapped[float | None] = mapped_column(Float)
    taste_last_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    taste_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    taste_embedding: Mapped[list[float] | None] = mapped_column(JSON)
    taste_embedding_model: Mapped[str | None] = mapped_column(String(64))
    taste_embedding_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def snapshot(self) -> dict[str, Any]:
        """JSON-safe copy stored alongside each recommendation run."""

        return {
            "id": self.id,
            "vibe_default": self.vibe_default,
            "taste_vector": self.taste_vector,
            "taste_decay": self.taste_decay,
            "taste_clamp_min": self.taste_clamp_min,
            "taste_clamp_max": self.taste_clamp_max,
            "taste_last_updated_at": (
                self.taste_last_updated_at.isoformat() if self.taste_last_updated_at else None
            ),
        }


class StyleVibe(Base):
    """Named style preset constraining acceptable fits and rises."""

    __tablename__ = "style_vibes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    label: Mapped[str] = mapped_column(String(128))
    attributes: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    core_jean_styles: Mapped[list[str] | None] = mapped_column(JSON)
    why: Mapped[list[str] | None] = mapped_column(JSON)

    def as_prompt(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "attributes": self.attributes,
            "core_jean_styles": self.core_jean_styles or [],
            "why": self.why,
        }


class CelebrityLook(Base):
    """Curated celebrity look used as an inspiration anchor."""

    __tablename__ = "celebrity_looks"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    celebrity_id: Mapped[str | None] = mapped_column(String(64))
    celebrity_name: Mapped[str] = mapped_column(String(128))
    canonical_text: Mapped[str | None] = mapped_column(Text)
    style_profile: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    image_url: Mapped[str | None] = mapped_column(String(512))
    display_asset_id: Mapped[str | None] = mapped_column(String(64))
    has_public_image: Mapped[bool] = mapped_column(Boolean, default=False)
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True)
    embedding: Mapped[list[float] | None] = mapped_column(JSON)


class RecommendationRun(Base):
    """One invocation of the recommendation generator."""

    __tablename__ = "recommendation_runs"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    input: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    profile_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    recommendations: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON)
    ai_used: Mapped[bool] = mapped_column(Boolean, default=False)
    ai_error: Mapped[str | None] = mapped_column(Text)
    model: Mapped[str | None] = mapped_column(String(64))
    latency_ms: Mapped[int | None] = mapped_column(Integer)
    recommendation_count: Mapped[int] = mapped_column(Integer, default=0)
    top_anchor_look_ids: Mapped[list[str] | None] = mapped_column(JSON)


class RecommendationFeedback(Base):
    """The single active reaction a user holds on one recommendation."""

    __tablename__ = "recommendation_feedback"
    __table_args__ = (UniqueConstraint("run_id", "user_id", "rec_index", name="uq_feedback_run_user_rec"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[str] = mapped_column(ForeignKey("recommendation_runs.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    rec_index: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)


class TasteEvent(Base):
    """Append-only log of feedback-driven taste deltas."""

    __tablename__ = "taste_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    run_id: Mapped[str] = mapped_column(String(32))
    rec_index: Mapped[int] = mapped_column(Integer)
    action: Mapped[str] = mapped_column(String(16))
    item_features: Mapped[list[str]] = mapped_column(JSON)
    delta: Mapped[dict[str, float]] = mapped_column(JSON)


class TasteVectorSnapshot(Base):
    """Periodic copy of a user's taste vector for drift analysis."""

    __tablename__ = "taste_vector_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    taste_vector: Mapped[dict[str, float]] = mapped_column(JSON)
