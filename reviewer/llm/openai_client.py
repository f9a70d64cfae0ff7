"""OpenAI-compatible chat-completions client.

Uses the ``openai`` SDK pointed at ``API_URL`` so any OpenAI-compatible
gateway works. SDK retries are disabled: a failed call is reported once
and the caller decides whether to re-run the whole pipeline.

Env vars:
  - API_URL    (required, e.g. https://api.openai.com/v1)
  - API_KEY    (required, sent as a bearer token)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
import openai

from reviewer.core.config import settings
from reviewer.llm.base import ChatOutcome

logger = logging.getLogger(__name__)


class OpenAIChatClient:
    """Async chat client that turns every call into a ``ChatOutcome``."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            base_url=base_url or settings.API_URL,
            api_key=api_key or settings.API_KEY,
            max_retries=0,
            http_client=http_client,
        )

    async def complete(self, payload: dict[str, Any]) -> ChatOutcome:
        model = payload.get("model", "")
        try:
            response = await self._client.chat.completions.create(**payload)
        except openai.APIStatusError as e:
            return ChatOutcome(
                model=model,
                status_code=e.status_code,
                error=f"API returned HTTP {e.status_code}",
                reason=f"http-{e.status_code}",
            )
        except openai.APITimeoutError as e:
            return ChatOutcome(model=model, error=f"request timed out: {e}", reason="timeout")
        except openai.APIConnectionError as e:
            return ChatOutcome(model=model, error=f"connection error: {e}", reason="transport")
        except Exception as e:
            logger.error("Chat completion error [%s]: %s", model, e)
            return ChatOutcome(model=model, error=str(e), reason="transport")

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        usage = response.usage

        return ChatOutcome(
            content=content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=response.model or model,
        )

    async def aclose(self) -> None:
        await self._client.close()


def build_chat_client() -> OpenAIChatClient:
    return OpenAIChatClient()
