"""Intake orchestrator: parse -> match -> validate -> triage.

Each run turns one input (text block, cell grid or workbook) into CutPart
drafts, optionally resolves catalog ids, validates every part and splits
them into three buckets:

    rejected  validation errors (cannot be cut as-is)
    review    valid, but confidence below min_confidence
    accepted  valid and confident

Usage:
    from cutlist_intake.pipeline import IntakePipeline

    pipeline = IntakePipeline()
    result = pipeline.from_text("Side panel: 720x560 x2 GL white 18mm L1L2")
    result.accepted[0].size.L  # 720.0

With catalog matching:
    pipeline = asyncio.run(IntakePipeline.for_org("org-1", JsonCatalog("catalog.json")))
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..config import Config, default_config
from ..contracts import MatchingSummary, PartsValidationResult
from ..matching.batch import apply_smart_matching
from ..matching.catalog import CatalogSource
from ..matching.matcher import MatcherContext, init_material_matcher
from ..models.cutlist import CutlistDocument
from ..models.part import CutPart, generate_part_id
from ..parsers.tabular_parser import TabularParseOptions, parse_tabular
from ..parsers.text_parser import TextParseOptions, parse_text_batch
from ..parsers.workbook import WorkbookSource, parse_workbook
from ..validators.part_validator import ValidationOptions, validate_parts

logger = logging.getLogger(__name__)


@dataclass
class IntakeResult:
    """
    Outcome of one intake run.

    Attributes:
        source_method: How the input was captured
        accepted: Valid parts at or above min_confidence
        review: Valid parts below min_confidence
        rejected: Parts with validation errors
        parse_errors: Items that produced no part: {"ref", "text", "errors"}
        skipped: Header/separator lines ignored by the text parser
        sheet: Name of the parsed sheet (workbook input only)
        matching: Matching statistics (None when no catalog was used)
        validation: Per-part validation results
    """
    source_method: str = ""
    accepted: List[CutPart] = field(default_factory=list)
    review: List[CutPart] = field(default_factory=list)
    rejected: List[CutPart] = field(default_factory=list)
    parse_errors: List[Dict[str, Any]] = field(default_factory=list)
    skipped: int = 0
    sheet: Optional[str] = None
    matching: Optional[MatchingSummary] = None
    validation: Optional[PartsValidationResult] = None

    @property
    def parts(self) -> List[CutPart]:
        return self.accepted + self.review + self.rejected

    @property
    def average_confidence(self) -> float:
        parts = self.parts
        if not parts:
            return 0.0
        return sum(p.audit.confidence for p in parts) / len(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-safe dict."""
        return {
            "sourceMethod": self.source_method,
            "sheet": self.sheet,
            "accepted": [p.to_dict() for p in self.accepted],
            "review": [p.to_dict() for p in self.review],
            "rejected": [p.to_dict() for p in self.rejected],
            "parseErrors": self.parse_errors,
            "skipped": self.skipped,
            "averageConfidence": self.average_confidence,
            "matching": self.matching.to_dict() if self.matching else None,
            "validation": self.validation.to_dict() if self.validation else None,
        }


class IntakePipeline:
    """
    Parse, match and validate cut parts from one input.

    Args:
        matcher: Matcher context for catalog matching (None = keep parsed ids)
        min_confidence: Review threshold (default: config.auto_accept_confidence)
        validation_options: Part thresholds (default: from config)
        config: Pipeline configuration
    """

    def __init__(
        self,
        matcher: Optional[MatcherContext] = None,
        min_confidence: Optional[float] = None,
        validation_options: Optional[ValidationOptions] = None,
        config: Optional[Config] = None,
    ):
        self.config = config or default_config
        self.matcher = matcher
        self.min_confidence = (self.config.auto_accept_confidence
                               if min_confidence is None else min_confidence)
        self.validation_options = validation_options or ValidationOptions.from_config(self.config)

    @classmethod
    async def for_org(
        cls,
        org_id: str,
        source: CatalogSource,
        config: Optional[Config] = None,
        **kwargs,
    ) -> "IntakePipeline":
        """Build a pipeline whose matcher is initialized from an organization's catalog."""
        ctx = await init_material_matcher(org_id, source, config)
        return cls(matcher=ctx, config=config, **kwargs)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def from_text(self, text: str, options: Optional[TextParseOptions] = None) -> IntakeResult:
        """Run intake on a block of free text (one part per line)."""
        options = options or TextParseOptions(
            default_thickness_mm=self.config.default_thickness_mm,
            default_material_id=self.config.default_material_id,
        )
        batch = parse_text_batch(text, options)
        result = IntakeResult(source_method=options.source_method, skipped=batch.total_skipped)
        for failed in batch.failed:
            result.parse_errors.append({
                "ref": failed.part.audit.source_ref,
                "text": failed.original_text,
                "errors": list(failed.errors),
            })
        return self.process([r.part for r in batch.parts], result)

    def from_rows(self, grid: List[List[Any]],
                  options: Optional[TabularParseOptions] = None) -> IntakeResult:
        """Run intake on a grid of cells (header row plus data rows)."""
        options = options or TabularParseOptions()
        parsed = parse_tabular(grid, options)
        result = IntakeResult(source_method=options.source_method)
        self._collect_row_errors(parsed.rows, result)
        return self.process(parsed.parts, result)

    def from_workbook(
        self,
        source: WorkbookSource,
        sheet: Optional[Union[str, int]] = None,
        options: Optional[TabularParseOptions] = None,
    ) -> IntakeResult:
        """Run intake on a workbook or CSV file (see parse_workbook)."""
        info, parsed = parse_workbook(source, sheet=sheet, options=options, config=self.config)
        result = IntakeResult(
            source_method=options.source_method if options else "file_upload",
            sheet=info.name,
        )
        self._collect_row_errors(parsed.rows, result)
        return self.process(parsed.parts, result)

    @staticmethod
    def _collect_row_errors(rows, result: IntakeResult) -> None:
        for row in rows:
            if row.part is None:
                result.parse_errors.append({
                    "ref": f"row:{row.row_index}",
                    "text": ", ".join(v for v in row.raw_data.values() if v),
                    "errors": list(row.errors),
                })

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def process(self, parts: List[CutPart], result: Optional[IntakeResult] = None) -> IntakeResult:
        """
        Match, validate and triage already-parsed parts.

        Validation diagnostics are copied onto each part's audit.
        """
        result = result or IntakeResult()

        if self.matcher is not None and parts:
            result.matching = apply_smart_matching(parts, self.matcher)

        validation = validate_parts(parts, self.validation_options)
        result.validation = validation

        for part, checked in zip(parts, validation.results):
            for error in checked.errors:
                if error.message not in part.audit.errors:
                    part.audit.errors.append(error.message)
            for warning in checked.warnings:
                if warning.message not in part.audit.warnings:
                    part.audit.warnings.append(warning.message)

            if not checked.valid:
                result.rejected.append(part)
            elif part.audit.confidence < self.min_confidence:
                result.review.append(part)
            else:
                result.accepted.append(part)

        logger.info(
            "Intake (%s): %d accepted, %d for review, %d rejected, %d unparsed",
            result.source_method or "parts", len(result.accepted), len(result.review),
            len(result.rejected), len(result.parse_errors),
        )
        return result


def merge_into(
    document: CutlistDocument,
    result: IntakeResult,
    include_review: bool = False,
) -> List[str]:
    """
    Append accepted parts (and optionally review parts) to a cutlist.

    Parts whose id already exists in the document get a fresh id.

    Returns:
        Ids of the parts added, in order
    """
    existing = set(document.part_ids)
    incoming = list(result.accepted)
    if include_review:
        incoming.extend(result.review)

    added = []
    for part in incoming:
        if part.part_id in existing:
            new_id = generate_part_id()
            while new_id in existing:
                new_id = generate_part_id()
            logger.debug("Part id %s already in %s, re-issued as %s",
                         part.part_id, document.doc_id, new_id)
            part.part_id = new_id
        existing.add(part.part_id)
        document.parts.append(part)
        added.append(part.part_id)
    return added
