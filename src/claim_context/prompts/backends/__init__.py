"""Prompt storage backends."""

from __future__ import annotations

from claim_context.prompts.backends.file_backend import FilePromptBackend
from claim_context.prompts.backends.protocol import IPromptBackend

__all__ = ["FilePromptBackend", "IPromptBackend"]
