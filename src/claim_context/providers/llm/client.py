"""Async LLM client routed through LiteLLM for multi-provider support.

Supports ``anthropic/``, ``bedrock/``, ``openai/``, ``gemini/`` and
``ollama/`` model prefixes transparently.  Gateway failures surface as
``RetryableError`` / ``NonRetryableError`` with the provider status code
preserved; whether to re-run a stage is the orchestrator's decision.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

from claim_context.core.config import LLMConfig
from claim_context.exceptions import NonRetryableError, RetryableError

log = logging.getLogger(__name__)


class LLMClient:
    """Async LLM client using LiteLLM. Implements ``IGenerator``."""

    def __init__(self, config: LLMConfig) -> None:
        self._config = config

    @property
    def model(self) -> str:
        return self._config.model

    @staticmethod
    def _status_code(exc: Exception) -> int | None:
        code = getattr(exc, "status_code", None)
        return code if isinstance(code, int) else None

    @staticmethod
    def _is_retryable(exc: Exception) -> bool:
        """Classify whether an LLM API error should be retried.

        Non-retryable: AuthenticationError, BadRequestError, NotFoundError,
        PermissionDeniedError (4xx non-429).
        Retryable (default): rate limits, quota, timeouts, connection errors, 5xx.
        """
        from litellm.exceptions import (
            AuthenticationError,
            BadRequestError,
            NotFoundError,
            PermissionDeniedError,
        )

        non_retryable = (AuthenticationError, BadRequestError, NotFoundError, PermissionDeniedError)
        return not isinstance(exc, non_retryable)

    def _build_messages(
        self,
        prompt: str,
        system_prompt: str | None,
        content_blocks: list[dict[str, Any]] | None,
    ) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        if content_blocks:
            user_content: Any = [{"type": "text", "text": prompt}, *content_blocks]
        else:
            user_content = prompt
        messages.append({"role": "user", "content": user_content})
        return messages

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        model: str | None = None,
        content_blocks: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
    ) -> str:
        """Single completion, returns content string.

        Args:
            prompt: User message text.
            system_prompt: Optional system message.
            model: Override model ID. Supports LiteLLM prefixes (e.g. ``gemini/``).
            content_blocks: Extra multimodal user content (e.g. a base64 PDF
                ``image_url`` block), appended after the prompt text.
            temperature: Override temperature.
        """
        from litellm import acompletion

        kwargs: dict[str, Any] = {
            "model": model or self._config.model,
            "messages": self._build_messages(prompt, system_prompt, content_blocks),
            "temperature": temperature if temperature is not None else self._config.temperature,
            "top_p": self._config.top_p,
            "timeout": self._config.timeout,
            "max_tokens": self._config.max_tokens,
        }
        if self._config.api_key not in ("", "no-key"):
            kwargs["api_key"] = self._config.api_key
        if self._config.provider in ("ollama", "litellm", "openai") and self._config.base_url:
            kwargs["api_base"] = self._config.base_url
        if self._config.seed is not None:
            kwargs["seed"] = self._config.seed

        max_retries = self._config.max_retries
        last_error: Exception | None = None
        for attempt in range(max_retries):
            try:
                response = await acompletion(**kwargs)
                return response.choices[0].message.content or ""
            except Exception as e:
                last_error = e
                status_code = self._status_code(e)

                if not self._is_retryable(e):
                    log.error("LLM non-retryable error (status=%s): %s", status_code, e)
                    raise NonRetryableError(f"Non-retryable LLM error: {e}", status_code=status_code) from e

                if attempt < max_retries - 1:
                    base_wait = min(2**attempt, self._config.retry_max_delay)
                    wait = base_wait + random.uniform(0, base_wait * self._config.retry_jitter_factor)
                    log.warning(
                        "LLM retry %d/%d: %s (status=%s, wait=%.1fs)",
                        attempt + 1, max_retries, e, status_code, wait,
                    )
                    await asyncio.sleep(wait)

        raise RetryableError(
            f"LLM API failed after {max_retries} attempt(s): {last_error}",
            status_code=self._status_code(last_error) if last_error else None,
        ) from last_error

    async def close(self) -> None:
        """No-op — LiteLLM manages its own connection pooling."""
