"""Tests for the OpenRouter client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from journey_narrator.errors import GenerationError
from journey_narrator.llm import DEFAULT_OPENROUTER_MODEL, OpenRouterClient, _extract_text


def _response(status=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def test_extract_text_string_content():
    payload = {"choices": [{"message": {"content": "  The story.  "}}]}
    assert _extract_text(payload) == "The story."


def test_extract_text_structured_content():
    payload = {"choices": [{"message": {"content": [
        {"type": "text", "text": "Part one."},
        {"type": "image"},
        {"type": "text", "text": " Part two. "},
    ]}}]}
    assert _extract_text(payload) == "Part one.\nPart two."


@pytest.mark.parametrize("payload", [
    {},
    {"choices": []},
    {"choices": ["nope"]},
    {"choices": [{"message": {"content": None}}]},
    {"choices": [{"message": {"content": [{"type": "image"}]}}]},
])
def test_extract_text_malformed(payload):
    with pytest.raises(GenerationError):
        _extract_text(payload)


def test_from_env_requires_key(monkeypatch):
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    with pytest.raises(GenerationError, match="OPENROUTER_API_KEY"):
        OpenRouterClient.from_env()


def test_from_env_defaults_and_overrides(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    monkeypatch.delenv("OPENROUTER_MODEL", raising=False)
    monkeypatch.delenv("OPENROUTER_BASE_URL", raising=False)
    assert OpenRouterClient.from_env().model == DEFAULT_OPENROUTER_MODEL

    monkeypatch.setenv("OPENROUTER_MODEL", "some/model")
    assert OpenRouterClient.from_env().model == "some/model"


@patch("journey_narrator.llm.requests.post")
def test_complete_sends_prompt(mock_post):
    mock_post.return_value = _response(payload={"choices": [{"message": {"content": "Hello."}}]})
    client = OpenRouterClient("sk-test", base_url="https://example.test/api/", model="m", timeout=5)
    assert client.complete("Tell a story", temperature=0.5) == "Hello."

    args, kwargs = mock_post.call_args
    assert args[0] == "https://example.test/api/chat/completions"
    assert kwargs["json"]["model"] == "m"
    assert kwargs["json"]["messages"] == [{"role": "user", "content": "Tell a story"}]
    assert kwargs["json"]["temperature"] == 0.5
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
    assert kwargs["timeout"] == 5


@patch("journey_narrator.llm.requests.post")
def test_complete_network_error(mock_post):
    mock_post.side_effect = requests.ConnectionError("refused")
    with pytest.raises(GenerationError, match="request failed") as info:
        OpenRouterClient("sk-test").complete("prompt")
    assert isinstance(info.value.__cause__, requests.ConnectionError)


@patch("journey_narrator.llm.requests.post")
def test_complete_http_error(mock_post):
    mock_post.return_value = _response(status=429, text="rate limited")
    with pytest.raises(GenerationError, match="HTTP 429: rate limited"):
        OpenRouterClient("sk-test").complete("prompt")


@patch("journey_narrator.llm.requests.post")
def test_complete_invalid_json(mock_post):
    mock_post.return_value = _response(payload=ValueError("bad json"))
    with pytest.raises(GenerationError, match="not valid JSON"):
        OpenRouterClient("sk-test").complete("prompt")
