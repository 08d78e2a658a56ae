"""Connectivity checks for the database and the OpenAI API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from openai import OpenAIError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from refinda.nlp.curator_client import CuratorClient


@dataclass(slots=True)
class IntegrationCheckResult:
    """Structured result describing the integration check outcome."""

    name: str
    success: bool
    message: str


async def _run_check(
    name: str,
    factory: Callable[[], Awaitable[bool]],
    success_message: str,
) -> IntegrationCheckResult:
    try:
        result = await factory()
    except (RuntimeError, OpenAIError, SQLAlchemyError) as exc:
        return IntegrationCheckResult(name=name, success=False, message=str(exc))

    if result:
        return IntegrationCheckResult(name=name, success=True, message=success_message)
    return IntegrationCheckResult(
        name=name,
        success=False,
        message="Service responded with non-success status.",
    )


async def check_openai() -> IntegrationCheckResult:
    """List models on the configured OpenAI endpoint."""

    async def _ping() -> bool:
        client = CuratorClient()
        try:
            return await client.ping()
        finally:
            await client.close()

    return await _run_check(
        name="OpenAI",
        factory=_ping,
        success_message="OpenAI API is reachable.",
    )


async def check_database() -> IntegrationCheckResult:
    """Run ``SELECT 1`` against the configured database."""

    from refinda.db.session import engine

    async def _select_one() -> bool:
        async with engine.connect() as conn:
            return (await conn.execute(text("SELECT 1"))).scalar() == 1

    return await _run_check(
        name="Database",
        factory=_select_one,
        success_message="Database is reachable.",
    )


async def run_all_checks() -> list[IntegrationCheckResult]:
    """Execute all integration checks concurrently."""

    return list(await asyncio.gather(check_database(), check_openai()))
