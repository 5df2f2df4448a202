from __future__ import annotations

import asyncio
from typing import Any, Callable

import openai
from openai import OpenAI

from controller.errors import LlmCallFailed
from controller.models import LlmRequest


class LlmClient:
    """
    Sends assembled requests to an OpenAI-compatible chat endpoint.

    One SDK client is kept per endpoint URL since templates may point at
    different backends. The SDK is synchronous, so calls run in a worker thread.
    """

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: float,
        client_factory: Callable[..., Any] | None = None,
    ) -> None:
        self.api_key = api_key
        self.timeout_seconds = float(timeout_seconds)
        self._client_factory = client_factory or OpenAI
        self._clients: dict[str, Any] = {}

    def client_for(self, chat_url: str) -> Any:
        client = self._clients.get(chat_url)
        if client is None:
            client = self._client_factory(
                api_key=self.api_key,
                base_url=chat_url,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
            self._clients[chat_url] = client
        return client

    async def complete(self, request: LlmRequest) -> str:
        client = self.client_for(request.chat_url)
        print(
            f"[LLM] {request.template_key}: model={request.model} "
            f"messages={len(request.messages)} num_ctx={request.context_size}"
        )
        try:
            resp = await asyncio.to_thread(
                client.chat.completions.create,
                model=request.model,
                messages=request.chat_messages(),
                temperature=request.temperature,
                # Ollama reads the context window from `options`; other backends ignore it.
                extra_body={"options": {"num_ctx": request.context_size}},
            )
        except openai.APIError as e:
            raise LlmCallFailed(f"{request.template_key} call to {request.chat_url} failed: {e}") from e

        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise LlmCallFailed(f"{request.template_key}: malformed response: {e}") from e
        if not content or not str(content).strip():
            raise LlmCallFailed(f"{request.template_key}: empty response")
        return str(content).strip()
