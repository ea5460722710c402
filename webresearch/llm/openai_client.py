"""OpenAI-compatible chat completions client: tries configured model IDs in order, falls back on 429/5xx."""

from dataclasses import dataclass
from typing import Any

import httpx

from webresearch.core.config import config
from webresearch.core.logger import logger

PROVIDER = "openai_compatible"


@dataclass
class LLMResponse:
    text: str
    model: str
    tokens_used: int = 0


def message_text(content: Any) -> str:
    """Flatten message content: a string, or a list of text parts, to plain text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    raise ValueError(f"Unexpected message content type: {type(content).__name__}")


class ChatCompletionClient:

    def __init__(
        self,
        api_key: str | None = None,
        models: list[str] | None = None,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        self.models = models if models is not None else list(config.enrichment_models)
        self.api_key = (api_key if api_key is not None else config.enrichment_api_key).strip()
        self.base_url = (base_url or config.enrichment_base_url).rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.last_model_used: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.models)

    def _should_retry(self, e: Exception) -> bool:
        if isinstance(e, httpx.HTTPStatusError):
            return e.response.status_code in (429, 500, 502, 503, 504)
        return isinstance(e, httpx.TransportError)

    async def generate(
        self,
        prompt: str,
        system_message: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> LLMResponse:
        if not self.models:
            raise RuntimeError("No enrichment models configured")
        messages = []
        if system_message:
            messages.append({"role": "system", "content": system_message})
        messages.append({"role": "user", "content": prompt})
        payload_base = {
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        last_error: Exception | None = None
        for model in self.models:
            payload = {**payload_base, "model": model}
            logger.external_call(PROVIDER, model, payload)
            try:
                response = await self.client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                )
                response.raise_for_status()
                data = response.json()
                self.last_model_used = data.get("model") or model
                choice = (data.get("choices") or [{}])[0]
                message = choice.get("message") or {}
                text = message_text(message.get("content"))
                tokens_used = (data.get("usage") or {}).get("total_tokens", 0)
                logger.debug(
                    f"LLM {self.last_model_used}: {tokens_used} tokens, {len(text)} chars"
                )
                return LLMResponse(
                    text=text, model=self.last_model_used, tokens_used=tokens_used
                )
            except Exception as e:
                last_error = e
                if isinstance(e, httpx.HTTPStatusError):
                    body = e.response.text or ""
                    logger.error(f"LLM {model} {e.response.status_code}: {body[:300]}")
                else:
                    logger.error(f"LLM {model} failed: {e}")
                if self._should_retry(e):
                    continue
                raise
        if last_error:
            raise last_error
        raise RuntimeError("No enrichment models configured")

    async def close(self):
        if self._owns_client:
            await self.client.aclose()
