"""Inter-stage data contracts for the intake pipeline.

parse (text / tabular / workbook) -> match (material / edgeband) -> validate
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .models.part import CutPart


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

@dataclass
class TextParseResult:
    """
    Output of parsing one line of free text.

    Attributes:
        part: The parsed part (a zero-size empty part on failure)
        confidence: Overall confidence, product of the stage confidences
        warnings: Non-fatal notes ("Quantity not specified, defaulting to 1")
        errors: Fatal problems; non-empty means the line produced no usable part
        original_text: The line as given
        field_confidence: Per-stage confidence ("dimensions", "quantity", "grain")
        skipped: True for header/separator lines that were not parsed at all
    """
    part: CutPart
    confidence: float
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    original_text: str = ""
    field_confidence: Dict[str, float] = field(default_factory=dict)
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors and self.part.size.L > 0 and self.part.size.W > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "part": self.part.to_dict(),
            "confidence": self.confidence,
            "warnings": self.warnings,
            "errors": self.errors,
            "originalText": self.original_text,
            "fieldConfidence": self.field_confidence,
            "skipped": self.skipped,
        }


@dataclass
class TextBatchParseResult:
    """Output of parsing a multi-line block. ``parts`` holds successful lines only."""
    parts: List[TextParseResult] = field(default_factory=list)
    failed: List[TextParseResult] = field(default_factory=list)
    total_lines: int = 0
    total_parsed: int = 0
    total_errors: int = 0
    total_skipped: int = 0
    average_confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parts": [r.to_dict() for r in self.parts],
            "failed": [r.to_dict() for r in self.failed],
            "totalLines": self.total_lines,
            "totalParsed": self.total_parsed,
            "totalErrors": self.total_errors,
            "totalSkipped": self.total_skipped,
            "averageConfidence": self.average_confidence,
        }


@dataclass
class ParsedRow:
    """Output of parsing one spreadsheet row. ``part`` is None on a fatal row error."""
    row_index: int
    part: Optional[CutPart]
    confidence: float
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    raw_data: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rowIndex": self.row_index,
            "part": self.part.to_dict() if self.part else None,
            "confidence": self.confidence,
            "warnings": self.warnings,
            "errors": self.errors,
            "rawData": self.raw_data,
        }


@dataclass
class TabularParseResult:
    """Output of parsing a 2-D grid of cells."""
    rows: List[ParsedRow] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    mapping: Dict[str, Any] = field(default_factory=dict)
    total_rows: int = 0
    success_count: int = 0
    error_count: int = 0
    average_confidence: float = 0.0

    @property
    def parts(self) -> List[CutPart]:
        return [r.part for r in self.rows if r.part is not None]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [r.to_dict() for r in self.rows],
            "headers": self.headers,
            "mapping": self.mapping,
            "totalRows": self.total_rows,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "averageConfidence": self.average_confidence,
        }


@dataclass
class SheetInfo:
    """Summary of one workbook sheet, with its parts-sheet score."""
    name: str
    index: int
    row_count: int
    column_count: int
    headers: List[str] = field(default_factory=list)
    header_row_index: int = 0
    score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "index": self.index,
            "rowCount": self.row_count,
            "columnCount": self.column_count,
            "headers": self.headers,
            "headerRowIndex": self.header_row_index,
            "score": self.score,
        }


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

class MatchType(Enum):
    """How a catalog entry was resolved."""
    EXACT = "exact"                    # Normalized name equality
    FUZZY = "fuzzy"                    # Fuzzy name score, or thickness elimination
    KEYWORD = "keyword"                # Shared registered keyword
    MATERIAL_MATCH = "material_match"  # Edgeband correlated with the sheet material
    DEFAULT = "default"                # Fallback ladder


@dataclass
class MaterialMatchResult:
    """Resolved material for a raw material reference."""
    material_id: str
    material_name: str
    confidence: float
    match_type: MatchType
    matched_on: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "materialId": self.material_id,
            "materialName": self.material_name,
            "confidence": self.confidence,
            "matchType": self.match_type.value,
            "matchedOn": self.matched_on,
        }


@dataclass
class EdgebandMatchResult:
    """Resolved edgeband for a raw edgeband reference or a sheet material."""
    edgeband_id: str
    edgeband_name: str
    confidence: float
    match_type: MatchType
    matched_on: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "edgebandId": self.edgeband_id,
            "edgebandName": self.edgeband_name,
            "confidence": self.confidence,
            "matchType": self.match_type.value,
            "matchedOn": self.matched_on,
        }


@dataclass
class MatchingSummary:
    """Aggregate statistics of a batch matching run."""
    materials_matched: int = 0
    edgebands_matched: int = 0
    avg_material_confidence: float = 0.0
    avg_edgeband_confidence: float = 0.0
    by_match_type: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "materialsMatched": self.materials_matched,
            "edgebandsMatched": self.edgebands_matched,
            "avgMaterialConfidence": self.avg_material_confidence,
            "avgEdgebandConfidence": self.avg_edgeband_confidence,
            "byMatchType": self.by_match_type,
        }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@dataclass
class ValidationError:
    """A single diagnostic. ``severity`` is "error" or "warning"."""
    field: str
    message: str
    code: str
    severity: str = "error"

    def to_dict(self) -> Dict[str, str]:
        return {
            "field": self.field,
            "message": self.message,
            "code": self.code,
            "severity": self.severity,
        }


@dataclass
class ValidationResult:
    """Diagnostics for one part. Errors block acceptance, warnings never do."""
    part_id: str = ""
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[ValidationError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self.errors] + [w.code for w in self.warnings]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "partId": self.part_id,
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class PartsValidationResult:
    """Diagnostics for a list of parts, one result per part in input order."""
    results: List[ValidationResult] = field(default_factory=list)

    @property
    def total_errors(self) -> int:
        return sum(len(r.errors) for r in self.results)

    @property
    def total_warnings(self) -> int:
        return sum(len(r.warnings) for r in self.results)

    @property
    def valid(self) -> bool:
        return self.total_errors == 0

    def for_part(self, part_id: str) -> List[ValidationResult]:
        """All results for a part id (more than one when ids are duplicated)."""
        return [r for r in self.results if r.part_id == part_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "totalErrors": self.total_errors,
            "totalWarnings": self.total_warnings,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class CutlistSummary:
    """Counts and flags describing a validated cutlist."""
    total_parts: int = 0
    valid_parts: int = 0
    invalid_parts: int = 0
    total_pieces: int = 0
    materials_used: List[str] = field(default_factory=list)
    has_edge_banding: bool = False
    has_cnc_operations: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalParts": self.total_parts,
            "validParts": self.valid_parts,
            "invalidParts": self.invalid_parts,
            "totalPieces": self.total_pieces,
            "materialsUsed": self.materials_used,
            "hasEdgeBanding": self.has_edge_banding,
            "hasCNCOperations": self.has_cnc_operations,
        }


@dataclass
class CutlistValidationResult:
    """Document-level diagnostics plus the per-part results."""
    cutlist_errors: List[ValidationError] = field(default_factory=list)
    cutlist_warnings: List[ValidationError] = field(default_factory=list)
    part_results: PartsValidationResult = field(default_factory=PartsValidationResult)
    summary: CutlistSummary = field(default_factory=CutlistSummary)

    @property
    def valid(self) -> bool:
        return not self.cutlist_errors and self.part_results.valid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "cutlistErrors": [e.to_dict() for e in self.cutlist_errors],
            "cutlistWarnings": [w.to_dict() for w in self.cutlist_warnings],
            "partResults": self.part_results.to_dict(),
            "summary": self.summary.to_dict(),
        }


@dataclass
class QuickValidationResult:
    """Fast-path check result: plain messages, no field diagnostics."""
    valid: bool
    errors: List[str] = field(default_factory=list)
