"""Tests for the OpenAI advisory client."""

import asyncio
import json
from dataclasses import dataclass, field

import pytest

from glucose_advisor.adapters.openai_advisory_client import OpenAIAdvisoryClient
from tests.conftest import advisory_payload


@dataclass
class FakeResponse:
    output_text: str


@dataclass
class FakeResponses:
    output_text: str
    calls: list[dict[str, object]] = field(default_factory=list)

    async def create(self, **kwargs: object) -> FakeResponse:
        self.calls.append(kwargs)
        return FakeResponse(output_text=self.output_text)


@dataclass
class FakeAsyncOpenAI:
    responses: FakeResponses
    closed: bool = False

    async def close(self) -> None:
        self.closed = True


def _complete(client: OpenAIAdvisoryClient, **overrides: object) -> dict[str, object]:
    params: dict[str, object] = {
        "model": "gpt-4o-mini",
        "reasoning_effort": None,
        "store": False,
        "instructions": "Be brief.",
        "prompt": "Analyze this meal",
        "schema": {"type": "object"},
    }
    params.update(overrides)
    return asyncio.run(client.complete(**params))


def test_complete_sends_structured_request() -> None:
    responses = FakeResponses(output_text=json.dumps(advisory_payload()))
    client = OpenAIAdvisoryClient(client=FakeAsyncOpenAI(responses=responses))

    result = _complete(client)

    assert result == advisory_payload()
    request = responses.calls[0]
    assert request["model"] == "gpt-4o-mini"
    assert request["store"] is False
    assert "reasoning" not in request
    text_format = request["text"]["format"]
    assert text_format["type"] == "json_schema"
    assert text_format["strict"] is True
    assert text_format["schema"] == {"type": "object"}
    assert request["input"][0]["content"][0]["text"] == "Analyze this meal"


def test_complete_passes_reasoning_effort() -> None:
    responses = FakeResponses(output_text="{}")
    client = OpenAIAdvisoryClient(client=FakeAsyncOpenAI(responses=responses))

    _complete(client, reasoning_effort="low")

    assert responses.calls[0]["reasoning"] == {"effort": "low"}


def test_complete_rejects_empty_output() -> None:
    client = OpenAIAdvisoryClient(
        client=FakeAsyncOpenAI(responses=FakeResponses(output_text=""))
    )

    with pytest.raises(RuntimeError):
        _complete(client)


def test_close_closes_underlying_client() -> None:
    fake = FakeAsyncOpenAI(responses=FakeResponses(output_text="{}"))
    client = OpenAIAdvisoryClient(client=fake)

    asyncio.run(client.close())

    assert fake.closed is True
