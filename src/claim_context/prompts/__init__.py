"""Prompt management: registry and claim-context prompt templates."""

from __future__ import annotations

from claim_context.prompts.registry import configure, get_prompt, reset

__all__ = ["configure", "get_prompt", "reset"]
