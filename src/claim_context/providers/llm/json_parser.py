"""JSON extraction from raw generator text.

Generators wrap JSON in code fences, lead with prose, or trail off with
commentary.  ``extract_json`` returns the first well-formed object or array
and raises ``JSONParseError`` when there is none, so an unparseable reply is
never mistaken for an empty result.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from claim_context.exceptions import JSONParseError

log = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)
_PY_NONE_RE = re.compile(r"\bNone\b")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_CLOSERS = {"{": "}", "[": "]"}


def _try_parse(s: str, expect: type | tuple[type, ...] = (dict, list)) -> dict[str, Any] | list[Any] | None:
    """Attempt JSON parse with common fixups. Only values of type *expect* count."""
    s = s.strip()
    if not s:
        return None
    for candidate in (s, _TRAILING_COMMA_RE.sub(r"\1", _PY_NONE_RE.sub("null", s))):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, expect):
            return value
    return None


def _shape(value: Any) -> str:
    return "object" if isinstance(value, dict) else "array"


def _balanced_span(content: str, start: int) -> int | None:
    """Index just past the bracket matching ``content[start]``, or None."""
    stack: list[str] = []
    in_string = False
    escape = False
    for i in range(start, len(content)):
        ch = content[i]
        if escape:
            escape = False
            continue
        if ch == "\\":
            escape = in_string
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return i + 1
    return None


def extract_json(
    content: str | None,
    expect: type | tuple[type, ...] = (dict, list),
) -> dict[str, Any] | list[Any]:
    """Parse the first JSON object or array out of an LLM response.

    Pass ``expect=dict`` (or ``list``) when only one shape is acceptable;
    candidates of the other shape are skipped, so prose such as
    "photos [1] and [2]" ahead of the payload is not mistaken for it.  A
    response that is entirely JSON of the other shape is still an error.

    Raises:
        JSONParseError: If no well-formed value of the expected shape can be found.
    """
    content = content or ""

    # Strategy 1: fenced blocks, in order of appearance
    for match in _FENCE_RE.finditer(content):
        result = _try_parse(match.group(1), expect)
        if result is not None:
            return result

    # Strategy 2: whole response is JSON
    result = _try_parse(content)
    if result is not None:
        if isinstance(result, expect):
            return result
        raise JSONParseError(
            f"Generator response is a JSON {_shape(result)}, not the expected shape",
            raw_response=content,
        )

    # Strategy 3: first balanced { ... } or [ ... ] that parses
    for i, ch in enumerate(content):
        if ch not in _CLOSERS:
            continue
        end = _balanced_span(content, i)
        if end is None:
            continue
        result = _try_parse(content[i:end], expect)
        if result is not None:
            return result

    log.error(
        "Failed to parse JSON from LLM response",
        extra={"response_length": len(content), "response_preview": content[:200]},
    )
    raise JSONParseError("No JSON object or array found in generator response", raw_response=content)
