"""Tab-separated export of estimate line items, one row per item.

The layout pastes directly into a spreadsheet or estimating tool::

    Scope   Code    Description     Qty     Unit    Basis   Assumptions
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from claim_context.models import EstimateResult

HEADER = ("Scope", "Code", "Description", "Qty", "Unit", "Basis", "Assumptions")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return " ".join(str(value).split("\t")).replace("\r", " ").replace("\n", " ")


class TSVFormatter:
    """Renders estimate line items as tab-separated text."""

    def rows(self, result: EstimateResult) -> list[tuple[str, ...]]:
        rows = [HEADER]
        for group in result.estimate:
            for item in group.items:
                rows.append(
                    tuple(
                        _cell(v)
                        for v in (
                            group.scope,
                            item.line_code,
                            item.description,
                            item.qty,
                            item.unit,
                            item.qty_basis,
                            item.assumptions,
                        )
                    )
                )
        return rows

    def format(self, result: EstimateResult, **kwargs: Any) -> bytes:
        return "\n".join("\t".join(row) for row in self.rows(result)).encode()

    def format_to_file(self, result: EstimateResult, path: Path, **kwargs: Any) -> Path:
        path.write_bytes(self.format(result, **kwargs))
        return path

    @property
    def content_type(self) -> str:
        return "text/tab-separated-values"
