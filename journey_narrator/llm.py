"""OpenRouter chat-completions client used for outline and segment text."""

import os
from typing import Any

import requests

from journey_narrator.errors import GenerationError

DEFAULT_OPENROUTER_MODEL = "google/gemini-2.5-flash"
DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


def _extract_text(payload: dict[str, Any]) -> str:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        raise GenerationError("OpenRouter response missing choices.")

    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        raise GenerationError("OpenRouter response missing message.")

    content = message.get("content")
    if isinstance(content, str):
        return content.strip()

    # Some providers return structured content arrays.
    if isinstance(content, list):
        parts = [
            item["text"].strip()
            for item in content
            if isinstance(item, dict) and isinstance(item.get("text"), str) and item["text"].strip()
        ]
        if parts:
            return "\n".join(parts)

    raise GenerationError("OpenRouter response does not contain text content.")


class OpenRouterClient:
    def __init__(self, api_key: str, base_url: str = DEFAULT_OPENROUTER_BASE_URL,
                 model: str = DEFAULT_OPENROUTER_MODEL, timeout: float = 120) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self.model = model
        self._timeout = timeout

    @classmethod
    def from_env(cls) -> "OpenRouterClient":
        api_key = os.environ.get("OPENROUTER_API_KEY", "").strip()
        if not api_key:
            raise GenerationError("OPENROUTER_API_KEY is not set.")
        base_url = os.environ.get("OPENROUTER_BASE_URL", "").strip() or DEFAULT_OPENROUTER_BASE_URL
        model = os.environ.get("OPENROUTER_MODEL", "").strip() or DEFAULT_OPENROUTER_MODEL
        return cls(api_key=api_key, base_url=base_url, model=model)

    def complete(self, prompt: str, temperature: float = 0.8) -> str:
        """Send a single-turn prompt and return the reply text. Blocking."""
        url = f"{self._base_url}/chat/completions"
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(url, json=payload, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            raise GenerationError(f"OpenRouter request failed: {exc}") from exc

        if response.status_code != 200:
            raise GenerationError(f"OpenRouter HTTP {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError as exc:
            raise GenerationError("OpenRouter response is not valid JSON.") from exc

        return _extract_text(data)
