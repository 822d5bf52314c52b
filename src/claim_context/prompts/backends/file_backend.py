"""File-based prompt backend — loads ``_PROMPT_DATA`` from template modules.

Reads the dict directly, bypassing module ``__getattr__`` and avoiding
infinite recursion (``__getattr__`` delegates to ``get_prompt()`` which
calls back into this backend).
"""

from __future__ import annotations

import importlib
from typing import Any


class FilePromptBackend:
    """Loads prompts from Python modules on disk via importlib.

    Module path convention: ``claim_context.prompts.templates.{domain}.{category}``
    """

    def __init__(self) -> None:
        self._modules: dict[tuple[str, str], Any] = {}

    def get(self, domain: str, category: str, name: str) -> str:
        key = (domain, category)
        if key not in self._modules:
            module_path = f"claim_context.prompts.templates.{domain}.{category}"
            try:
                self._modules[key] = importlib.import_module(module_path)
            except ModuleNotFoundError as exc:
                raise KeyError(f"Prompt module not found: {module_path}") from exc

        data: dict[str, str] | None = getattr(self._modules[key], "_PROMPT_DATA", None)
        if data is not None and name in data:
            return data[name]

        raise KeyError(f"Prompt {name!r} not found in {domain}/{category}")
