"""Tests for the OpenAI-backed curator client."""

from __future__ import annotations

import json

import pytest
import pytest_mock

from refinda.config.settings import Settings
from refinda.errors import UpstreamError
from refinda.nlp.curator_client import CuratorClient

ANCHORS = {"look-1", "look-2"}


def _item(**overrides) -> dict:
    item = {
        "brand": "Agolde",
        "model": "90s Pinch Waist",
        "era_inspiration": "90s",
        "fit": "straight",
        "rise": "high",
        "wash": "light",
        "stretch_level": "rigid",
        "why_each_pick": "Sharp waist, straight leg.",
        "search_queries": ["agolde pinch waist", "90s high rise", "light wash straight", "extra"],
        "anchor_look_id": "look-1",
        "anchor_reason": "Same pinched high waist and light wash as the anchor.",
    }
    item.update(overrides)
    return item


@pytest.fixture
def client_settings() -> Settings:
    return Settings(openai_api_key="test-key", embedding_dimensions=3)


def test_requires_api_key() -> None:
    with pytest.raises(RuntimeError):
        CuratorClient(Settings(openai_api_key=""))


def test_parse_valid_output() -> None:
    parsed = CuratorClient.parse_recommendations(json.dumps({"recommendations": [_item()]}), ANCHORS)

    assert parsed[0].brand == "Agolde"
    assert len(parsed[0].search_queries) == 3


@pytest.mark.parametrize(
    "content",
    [
        "not json at all",
        json.dumps({"recommendations": []}),
        json.dumps({"items": [_item()]}),
        json.dumps({"recommendations": [_item(anchor_look_id="look-9")]}),
        json.dumps({"recommendations": [_item(anchor_look_id="")]}),
        json.dumps({"recommendations": [_item(anchor_reason="close")]}),
    ],
)
def test_parse_rejects_invalid_output(content: str) -> None:
    with pytest.raises(UpstreamError):
        CuratorClient.parse_recommendations(content, ANCHORS)


@pytest.mark.asyncio
async def test_generate_recommendations_uses_strict_schema(
    client_settings: Settings, mocker: pytest_mock.MockerFixture
) -> None:
    client = CuratorClient(client_settings)
    message = mocker.Mock(content=json.dumps({"recommendations": [_item()]}))
    create = mocker.patch.object(
        client._client.chat.completions,
        "create",
        new=mocker.AsyncMock(return_value=mocker.Mock(choices=[mocker.Mock(message=message)])),
    )

    picks = await client.generate_recommendations([{"role": "user", "content": "hi"}], {"type": "object"}, ANCHORS)

    assert picks[0].anchor_look_id == "look-1"
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == client_settings.openai_model
    assert kwargs["response_format"]["json_schema"]["strict"] is True
    await client.close()


@pytest.mark.asyncio
async def test_generate_recommendations_empty_content(
    client_settings: Settings, mocker: pytest_mock.MockerFixture
) -> None:
    client = CuratorClient(client_settings)
    message = mocker.Mock(content="  ")
    mocker.patch.object(
        client._client.chat.completions,
        "create",
        new=mocker.AsyncMock(return_value=mocker.Mock(choices=[mocker.Mock(message=message)])),
    )

    with pytest.raises(UpstreamError):
        await client.generate_recommendations([], {}, ANCHORS)
    await client.close()


@pytest.mark.asyncio
async def test_embed_text_validates_length_and_values(
    client_settings: Settings, mocker: pytest_mock.MockerFixture
) -> None:
    client = CuratorClient(client_settings)
    create = mocker.patch.object(client._client.embeddings, "create", new=mocker.AsyncMock())

    create.return_value = mocker.Mock(data=[mocker.Mock(embedding=[0.1, 0.2, 0.3])])
    assert await client.embed_text("taste") == [0.1, 0.2, 0.3]

    create.return_value = mocker.Mock(data=[mocker.Mock(embedding=[0.1, 0.2])])
    with pytest.raises(UpstreamError):
        await client.embed_text("taste")

    create.return_value = mocker.Mock(data=[mocker.Mock(embedding=[0.1, float("nan"), 0.3])])
    with pytest.raises(UpstreamError):
        await client.embed_text("taste")
    await client.close()
