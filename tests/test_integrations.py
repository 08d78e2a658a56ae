"""Tests for external integration connectivity helpers."""

from __future__ import annotations

import pytest
import pytest_mock

from refinda.config.settings import get_settings
from refinda.integrations.checks import check_openai, run_all_checks


@pytest.fixture(autouse=True)
def _setup_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://openai.test/v1")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.mark.asyncio
async def test_check_openai_success(mocker: pytest_mock.MockerFixture) -> None:
    client_mock = mocker.patch("refinda.integrations.checks.CuratorClient", autospec=True)
    instance = client_mock.return_value
    instance.ping = mocker.AsyncMock(return_value=True)
    instance.close = mocker.AsyncMock(return_value=None)

    result = await check_openai()

    assert result.success
    instance.ping.assert_awaited_once()
    instance.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_openai_failure(mocker: pytest_mock.MockerFixture) -> None:
    client_mock = mocker.patch("refinda.integrations.checks.CuratorClient", autospec=True)
    instance = client_mock.return_value
    instance.ping = mocker.AsyncMock(return_value=False)
    instance.close = mocker.AsyncMock(return_value=None)

    result = await check_openai()

    assert not result.success
    assert "non-success" in result.message.lower()


@pytest.mark.asyncio
async def test_check_openai_without_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "")
    get_settings.cache_clear()

    result = await check_openai()

    assert not result.success
    assert "not configured" in result.message


@pytest.mark.asyncio
async def test_run_all_checks_reports_each_service(mocker: pytest_mock.MockerFixture) -> None:
    mocker.patch(
        "refinda.integrations.checks.check_database",
        new=mocker.AsyncMock(return_value=mocker.Mock(name="Database", success=True)),
    )
    mocker.patch(
        "refinda.integrations.checks.check_openai",
        new=mocker.AsyncMock(return_value=mocker.Mock(name="OpenAI", success=False)),
    )

    results = await run_all_checks()

    assert [result.success for result in results] == [True, False]
