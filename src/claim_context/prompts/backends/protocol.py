"""Protocol for pluggable prompt backends."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IPromptBackend(Protocol):
    """Interface for prompt storage backends.

    Implementations must be synchronous — prompt resolution happens inline
    during module ``__getattr__`` calls which cannot be async.
    """

    def get(self, domain: str, category: str, name: str) -> str:
        """Retrieve a prompt template.

        Args:
            domain: Domain namespace (e.g. ``"claims"``).
            category: Prompt category (e.g. ``"estimate"``).
            name: Constant name (e.g. ``"ESTIMATE_SYSTEM_PROMPT"``).

        Raises:
            KeyError: If the prompt is not found.
        """
        ...
