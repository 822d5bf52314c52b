"""Generator transport: LiteLLM client, protocol, and JSON extraction."""

from __future__ import annotations

from claim_context.providers.llm.client import LLMClient
from claim_context.providers.llm.json_parser import extract_json
from claim_context.providers.llm.protocols import IGenerator

__all__ = ["IGenerator", "LLMClient", "extract_json"]
