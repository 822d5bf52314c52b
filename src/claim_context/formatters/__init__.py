"""Estimate export formatters.

Usage::

    from claim_context.formatters import get_formatter

    data = get_formatter("tsv").format(estimate_result)
"""

from __future__ import annotations

from claim_context.formatters.json_formatter import JSONFormatter
from claim_context.formatters.protocols import IEstimateFormatter
from claim_context.formatters.tsv_formatter import TSVFormatter

__all__ = ["IEstimateFormatter", "JSONFormatter", "TSVFormatter", "get_formatter"]

_FORMATTERS: dict[str, type] = {"json": JSONFormatter, "tsv": TSVFormatter}


def get_formatter(name: str) -> IEstimateFormatter:
    """Look up a formatter by name. Raises KeyError for unknown formats."""
    try:
        return _FORMATTERS[name.lower()]()
    except KeyError:
        raise KeyError(f"Unknown estimate format {name!r}; choose from {sorted(_FORMATTERS)}") from None
