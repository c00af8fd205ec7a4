import json
import logging
from typing import AsyncIterator, Optional

import httpx

from .. import settings
from .errors import ProviderError
from .types import Completion

SYSTEM = "You are a helpful AI Assistant"

logger = logging.getLogger("uvicorn.error")


class ChatClient:
    """Thin client for an OpenAI-compatible ``/chat/completions`` endpoint.

    Built once at startup and handed to the app, so tests can pass a client
    wired to an ``httpx.MockTransport`` instead of the real provider.
    """

    def __init__(self, api_key: str, base_url: str = settings.OPENAI_API_BASE,
                 model: str = settings.LLM_MODEL, transport=None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "ChatClient":
        if not settings.OPENAI_API_KEY:
            raise RuntimeError("OPENAI_API_KEY is not set")
        return cls(settings.OPENAI_API_KEY, settings.OPENAI_API_BASE, settings.LLM_MODEL)

    def _headers(self):
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _payload(self, prompt: str, model, temperature, max_tokens, stream: bool = False):
        payload = {
            "model": model or self.model,
            "messages": [
                {"role": "system", "content": SYSTEM},
                {"role": "user", "content": prompt},
            ],
            "temperature": settings.LLM_TEMPERATURE if temperature is None else temperature,
            "max_tokens": max_tokens or settings.LLM_MAX_TOKENS,
        }
        if stream:
            payload["stream"] = True
        return payload

    def complete(self, prompt: str, model: Optional[str] = None,
                 temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> Completion:
        url = f"{self.base_url}/chat/completions"
        payload = self._payload(prompt, model, temperature, max_tokens)

        # no timeout: the request waits as long as the provider does
        with httpx.Client(timeout=None, transport=self._transport) as c:
            r = c.post(url, headers=self._headers(), json=payload)
            if r.status_code >= 400:
                logger.error("Provider error %s: %s", r.status_code, r.text)
                r.raise_for_status()
            data = r.json()

        choices = data.get("choices") or []
        if not choices:
            raise ProviderError("No text returned from the completions endpoint.")
        text = (choices[0].get("message") or {}).get("content") or ""
        usage = (data.get("usage") or {}).get("total_tokens")
        return Completion(text=text, usage=usage)

    async def stream(self, prompt: str, model: Optional[str] = None,
                     temperature: Optional[float] = None,
                     max_tokens: Optional[int] = None) -> AsyncIterator[str]:
        """Yield answer fragments as the provider sends them.

        Closing the generator early (e.g. the HTTP client went away) exits the
        ``async with`` blocks and closes the upstream response.
        """
        url = f"{self.base_url}/chat/completions"
        payload = self._payload(prompt, model, temperature, max_tokens, stream=True)

        async with httpx.AsyncClient(timeout=None, transport=self._transport) as c:
            async with c.stream("POST", url, headers=self._headers(), json=payload) as r:
                if r.status_code >= 400:
                    body = await r.aread()
                    logger.error("Provider error %s: %s", r.status_code, body.decode("utf-8", "replace"))
                    r.raise_for_status()
                async for line in r.aiter_lines():
                    line = line.strip()
                    if not line.startswith("data:"):
                        continue
                    message = line[len("data:"):].strip()
                    if message == "[DONE]":
                        return
                    chunk = json.loads(message)
                    choices = chunk.get("choices") or []
                    if not choices:
                        continue
                    text = (choices[0].get("delta") or {}).get("content")
                    if text:
                        yield text
