"""Stage 2: turn claim photo references into typed damage findings."""

from __future__ import annotations

import json
import logging

from claim_context.core.config import AppSettings
from claim_context.guardrails import log_corrections
from claim_context.guardrails.findings import sanitize_findings
from claim_context.models import ClaimPhoto, DamageFinding
from claim_context.prompts.registry import get_prompt
from claim_context.providers.llm.json_parser import extract_json
from claim_context.providers.llm.protocols import IGenerator

log = logging.getLogger(__name__)


def describe_photo(photo: ClaimPhoto) -> str:
    """One text block per photo, built from whatever prior analysis it carries."""
    lines = [f"Photo: {photo.file_name or photo.id} [{photo.category or 'general'}]"]
    if photo.caption:
        lines.append(f"  Description: {photo.caption}")
    if photo.material_type:
        lines.append(f"  Material: {photo.material_type}")
    if photo.condition_rating:
        lines.append(f"  Condition: {photo.condition_rating}")
    if photo.analysis_summary:
        lines.append(f"  Analysis: {photo.analysis_summary}")
    if photo.detected_damages:
        lines.append(f"  Damages: {json.dumps(photo.detected_damages)}")
    if photo.url:
        lines.append(f"  URL: {photo.url}")
    return "\n".join(lines)


class PhotoFindingExtractor:
    """Produces ``DamageFinding`` records from photo references and claim text."""

    def __init__(self, generator: IGenerator, settings: AppSettings) -> None:
        self._generator = generator
        self._settings = settings

    async def extract(
        self,
        description: str | None,
        loss_cause: str | None,
        photos: list[ClaimPhoto],
    ) -> list[DamageFinding]:
        if not photos:
            log.info("No photos on claim, skipping finding extraction")
            return []

        system_prompt = get_prompt("claims", "photo_findings", "PHOTO_FINDINGS_SYSTEM_PROMPT").format(
            loss_cause=loss_cause or "unknown",
            description=description or "none",
            photo_count=len(photos),
        )
        raw = await self._generator.complete(
            "\n\n".join(describe_photo(p) for p in photos),
            system_prompt=system_prompt,
            model=self._settings.model_for("photo_findings"),
        )

        findings, corrections = sanitize_findings(extract_json(raw))
        log_corrections("extract", corrections)
        log.info("Extracted %d finding(s) from %d photo(s)", len(findings), len(photos))
        return findings
