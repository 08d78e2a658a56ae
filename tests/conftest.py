"""Shared fixtures: isolated settings and an in-memory database."""

from __future__ import annotations

from typing import Any, AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from refinda.config.settings import Settings, get_settings
from refinda.db import models


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="", use_ai=False)


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with factory() as db_session:
        yield db_session
    await engine.dispose()


def make_recommendation(**overrides: Any) -> dict[str, Any]:
    rec = {
        "brand": "Levi's",
        "model": "501",
        "era_inspiration": "90s",
        "fit": "straight",
        "rise": "mid",
        "wash": "light",
        "stretch_level": "rigid",
        "why_each_pick": "Classic straight leg.",
        "search_queries": ["levis 501"],
        "anchor_look_id": "look-1",
        "anchor_reason": "Shares the straight leg and light wash of the anchor look.",
    }
    rec.update(overrides)
    return rec


@pytest_asyncio.fixture
async def run_factory(session: AsyncSession):
    """Persist a recommendation run owned by ``user_id`` and return it."""

    async def _create(user_id: str = "user-1", recommendations: list[dict[str, Any]] | None = None):
        run = models.RecommendationRun(
            user_id=user_id,
            input={"vibe": None},
            recommendations=recommendations if recommendations is not None else [make_recommendation()],
            recommendation_count=1,
        )
        session.add(run)
        await session.commit()
        return run

    return _create
