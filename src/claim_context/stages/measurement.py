"""Stage 1: normalize a third-party measurement report document."""

from __future__ import annotations

import base64
import logging
import mimetypes

from pydantic import ValidationError

from claim_context.core.config import AppSettings
from claim_context.exceptions import MalformedOutputError
from claim_context.models import MeasurementReport
from claim_context.prompts.registry import get_prompt
from claim_context.providers.llm.json_parser import extract_json
from claim_context.providers.llm.protocols import IGenerator

log = logging.getLogger(__name__)

DEFAULT_DOCUMENT_NAME = "report.pdf"
_EMPTY_DOCUMENT_NOTE = "No measurement document provided; all sections left at zero."
_NO_DATA_NOTE = "No measurements could be extracted from the document."


def document_content_block(document_bytes: bytes, document_name: str) -> dict:
    """Multimodal ``image_url`` block carrying the document as a base64 data URL."""
    mime, _ = mimetypes.guess_type(document_name)
    encoded = base64.b64encode(document_bytes).decode("ascii")
    return {
        "type": "image_url",
        "image_url": {"url": f"data:{mime or 'application/pdf'};base64,{encoded}"},
    }


class MeasurementParser:
    """Extracts a ``MeasurementReport`` from an EagleView/Hover/Symbility style document.

    Missing or unreadable documents soft-fail to an all-zero report whose
    ``notes`` say why; downstream stages tolerate that.  A generator reply
    without usable JSON is still a hard ``MalformedOutputError``.
    """

    def __init__(self, generator: IGenerator, settings: AppSettings) -> None:
        self._generator = generator
        self._settings = settings

    async def parse(
        self,
        document_bytes: bytes | None,
        document_name: str | None = None,
    ) -> MeasurementReport:
        name = document_name or DEFAULT_DOCUMENT_NAME
        if not document_bytes:
            log.info("No measurement document supplied, returning empty report")
            return MeasurementReport(notes=_EMPTY_DOCUMENT_NOTE)

        raw = await self._generator.complete(
            get_prompt("claims", "measurement", "MEASUREMENT_USER_PROMPT").format(document_name=name),
            system_prompt=get_prompt("claims", "measurement", "MEASUREMENT_SYSTEM_PROMPT"),
            model=self._settings.model_for("measurement"),
            content_blocks=[document_content_block(document_bytes, name)],
        )
        parsed = extract_json(raw, expect=dict)
        if not isinstance(parsed, dict):
            raise MalformedOutputError("Measurement response is not a JSON object", raw_response=raw)

        try:
            report = MeasurementReport.model_validate(parsed)
        except ValidationError as exc:
            raise MalformedOutputError(f"Measurement report failed validation: {exc}", raw_response=raw) from exc

        if not report.has_data() and not report.notes.strip():
            report = report.model_copy(update={"notes": _NO_DATA_NOTE})

        log.info(
            "Parsed measurement report %s: source=%s sections_with_data=%s",
            name, report.source, report.sections_with_data(),
        )
        return report
