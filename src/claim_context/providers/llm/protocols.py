"""Generator protocol: the black-box text generation capability every stage consumes."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IGenerator(Protocol):
    """Anything that turns (system prompt, user prompt) into text."""

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        model: str | None = None,
        content_blocks: list[dict[str, Any]] | None = None,
    ) -> str:
        """Return the raw response text. Raises ``TransportError`` on gateway failure."""
        ...
