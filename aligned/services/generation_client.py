"""Thin client for the Gemini ``generateContent`` REST endpoint."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from aligned.core.config import Settings, settings
from aligned.core.errors import EmptyResponseError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


@dataclass(frozen=True)
class GenerationConfig:
    """Model parameters. ``max_output_tokens`` must leave room for a full 4x13x7 plan."""

    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    max_output_tokens: int = 32768
    api_base: str = DEFAULT_API_BASE
    timeout_seconds: float = 120.0

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "GenerationConfig":
        source = source or settings
        return cls(
            api_key=source.gemini_api_key or None,
            model=source.gemini_model,
            temperature=source.gemini_temperature,
            max_output_tokens=source.gemini_max_output_tokens,
            api_base=source.gemini_api_base,
            timeout_seconds=source.generation_timeout_seconds,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.api_base.rstrip('/')}/{self.model}:generateContent"


class GeminiClient:
    """Issues one request per ``generate`` call. Retrying is the orchestrator's job."""

    def __init__(self, config: GenerationConfig, http_client: Optional[httpx.Client] = None) -> None:
        self.config = config
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_output_tokens,
            },
        }

    def _post(self, client: httpx.Client, prompt: str) -> httpx.Response:
        return client.post(
            self.config.endpoint,
            params={"key": self.config.api_key},
            json=self._payload(prompt),
            headers={"Content-Type": "application/json"},
        )

    def generate(self, prompt: str) -> str:
        """Return the raw text of the first candidate."""
        if not self.is_configured:
            raise TransportError("generation service is not configured")

        close_client = False
        client = self._http_client
        if client is None:
            client = httpx.Client(timeout=self.config.timeout_seconds)
            close_client = True

        try:
            response = self._post(client, prompt)
        except httpx.HTTPError as exc:
            raise TransportError(f"request to generation service failed: {exc.__class__.__name__}") from exc
        finally:
            if close_client:
                client.close()

        if not response.is_success:
            logger.warning("Generation service returned HTTP %s", response.status_code)
            raise TransportError(
                f"generation service returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError("generation service returned a non-JSON body", status_code=response.status_code) from exc

        return self._extract_text(body)

    @staticmethod
    def _extract_text(body: Any) -> str:
        candidates = body.get("candidates") if isinstance(body, dict) else None
        if not candidates or not isinstance(candidates[0], dict):
            raise EmptyResponseError("response carried no candidates")
        candidate = candidates[0]
        finish_reason = candidate.get("finishReason")
        if finish_reason and finish_reason != "STOP":
            logger.warning("Generation finished with reason %s", finish_reason)
        else:
            logger.debug("Generation finished with reason %s", finish_reason)

        parts = (candidate.get("content") or {}).get("parts") or []
        texts = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
        text = "".join(texts)
        if not text.strip():
            raise EmptyResponseError("response carried no text parts")
        return text
