"""Prompt registry with a pluggable backend.

Usage::

    # Default (file backend, auto-configured on first call):
    prompt = get_prompt("claims", "estimate", "ESTIMATE_SYSTEM_PROMPT")

    # Explicit backend, e.g. a tuned prompt set for a carrier:
    from claim_context.prompts import configure
    configure(backend=MyBackend(), fallback_to_file=True)
"""

from __future__ import annotations

import logging

from claim_context.prompts.backends.file_backend import FilePromptBackend
from claim_context.prompts.backends.protocol import IPromptBackend

logger = logging.getLogger(__name__)

_primary_backend: IPromptBackend | None = None
_fallback_backend: IPromptBackend | None = None


def configure(*, backend: IPromptBackend | None = None, fallback_to_file: bool = True) -> None:
    """Initialize the registry. If never called, the first lookup uses the file backend."""
    global _primary_backend, _fallback_backend

    if backend is None:
        _primary_backend = FilePromptBackend()
        _fallback_backend = None
    else:
        _primary_backend = backend
        _fallback_backend = FilePromptBackend() if fallback_to_file else None


def get_prompt(domain: str, category: str, name: str) -> str:
    """Look up a prompt template by domain, category, and name.

    Raises:
        KeyError: If the prompt is not found in any backend.
    """
    if _primary_backend is None:
        configure()
    assert _primary_backend is not None

    try:
        return _primary_backend.get(domain, category, name)
    except KeyError:
        if _fallback_backend is not None:
            logger.debug("Primary backend miss for %s/%s/%s, trying fallback", domain, category, name)
            return _fallback_backend.get(domain, category, name)
        raise


def reset() -> None:
    """Reset the registry to unconfigured state (for testing)."""
    global _primary_backend, _fallback_backend
    _primary_backend = None
    _fallback_backend = None
