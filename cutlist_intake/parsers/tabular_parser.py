"""Parse spreadsheet/CSV grids into CutPart drafts.

Input is a 2-D grid of cells (already split into rows and columns). A
ColumnMapping says which column holds which field, either by index or by
header name (case-insensitive). When no mapping is given it is detected from
the header row.

Usage:
    from cutlist_intake.parsers.tabular_parser import parse_tabular, TabularParseOptions

    grid = [["Part", "Length", "Width", "Qty"], ["Side", "720", "560", "2"]]
    result = parse_tabular(grid)
    result.rows[0].part.size.L   # 720.0
"""

import logging
import re
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..config import default_config
from ..contracts import ParsedRow, TabularParseResult
from ..models.part import (
    EDGE_IDS,
    GRAIN_ALONG_L,
    GRAIN_NONE,
    CutPart,
    EdgeOp,
    EdgingOps,
    PartAudit,
    PartNotes,
    PartOps,
    Size,
    generate_part_id,
)
from .patterns import COLUMN_HEADER_PATTERNS
from .text_parser import extract_edges
from .units import parse_number

logger = logging.getLogger(__name__)

ColumnRef = Union[int, str]
Grid = Sequence[Sequence[Any]]

REQUIRED_COLUMNS = ("L", "W")

_GRAIN_TRUE = {"yes", "true", "1", "y", "gl", "along_l", "length"}
_FALSY = {"no", "false", "0", "n", "none", "off"}
_COMPACT_EDGES = re.compile(r'(?<![A-Za-z])(2[LW]|[LW]{2})(?![A-Za-z])', re.IGNORECASE)


@dataclass
class ColumnMapping:
    """Column reference (index or header name) per part field; None = unmapped."""
    label: Optional[ColumnRef] = None
    qty: Optional[ColumnRef] = None
    L: Optional[ColumnRef] = None
    W: Optional[ColumnRef] = None
    thickness_mm: Optional[ColumnRef] = None
    material: Optional[ColumnRef] = None
    grain: Optional[ColumnRef] = None
    rotation: Optional[ColumnRef] = None
    group_id: Optional[ColumnRef] = None
    notes: Optional[ColumnRef] = None
    edging: Optional[ColumnRef] = None
    edging_L1: Optional[ColumnRef] = None
    edging_L2: Optional[ColumnRef] = None
    edging_W1: Optional[ColumnRef] = None
    edging_W2: Optional[ColumnRef] = None

    def to_dict(self) -> Dict[str, ColumnRef]:
        return {f.name: getattr(self, f.name) for f in fields(self)
                if getattr(self, f.name) is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, ColumnRef]) -> "ColumnMapping":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class TabularParseOptions:
    """
    Options for grid parsing.

    Attributes:
        header_row_index: Row holding the column headers
        data_row_start: First data row (default: the row after the header)
        data_row_end: Last data row, inclusive (default: last row)
        mapping: Column mapping (default: auto-detected from the header row)
        default_thickness_mm: Thickness when the cell is empty
        default_material_id: Material id when the cell is empty
        source_method: Recorded in part.audit.source_method
    """
    header_row_index: int = 0
    data_row_start: Optional[int] = None
    data_row_end: Optional[int] = None
    mapping: Optional[ColumnMapping] = None
    default_thickness_mm: float = default_config.default_thickness_mm
    default_material_id: str = default_config.default_material_id
    source_method: str = "excel_table"


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------

def cell_text(value: Any) -> str:
    """Render a cell as trimmed text; integral floats lose their ".0"."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def is_truthy(value: str) -> bool:
    """True for yes/true/1/y/x/check-mark style cells."""
    return value.strip().lower() in default_config.truthy_tokens


def parse_grain(value: str) -> str:
    """Read a grain cell ("yes", "GL", "along length", ...) as a grain tag."""
    lower = value.strip().lower()
    if not lower or lower in _FALSY or lower.startswith("no "):
        return GRAIN_NONE
    if lower in _GRAIN_TRUE or "grain" in lower or "length" in lower:
        return GRAIN_ALONG_L
    return GRAIN_NONE


def parse_rotation(value: str) -> Optional[bool]:
    """Read a rotation cell: True/False when stated, None when blank or unclear."""
    lower = value.strip().lower()
    if not lower:
        return None
    if lower in _FALSY:
        return False
    if is_truthy(lower) or lower in ("ok", "allowed"):
        return True
    return None


def parse_edging_cell(value: str) -> List[str]:
    """Read a combined edging cell ("yes", "L1L2", "2L", "all", "L1, W2")."""
    if not value.strip():
        return []
    if is_truthy(value):
        return list(EDGE_IDS)
    spaced = _COMPACT_EDGES.sub(r' \1 ', value)
    return extract_edges(f"EB: {spaced}")


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------

def auto_detect_mapping(headers: Sequence[Any]) -> ColumnMapping:
    """
    Detect a column mapping from header names.

    Headers are scanned left to right. Each field takes the first header that
    matches any of its patterns; fields already assigned are skipped, and a
    column is assigned to at most one field.
    """
    mapping = ColumnMapping()
    for index, header in enumerate(headers):
        name = cell_text(header).lower()
        if not name:
            continue
        for field_name, regexes in COLUMN_HEADER_PATTERNS:
            if getattr(mapping, field_name) is not None:
                continue
            if any(regex.search(name) for regex in regexes):
                setattr(mapping, field_name, index)
                logger.debug("Column %d (%r) mapped to %s", index, name, field_name)
                break
    return mapping


def validate_mapping(mapping: ColumnMapping) -> Tuple[bool, List[str]]:
    """
    Check that the required columns are mapped.

    Returns:
        (is_valid, missing field names)
    """
    missing = [name for name in REQUIRED_COLUMNS if getattr(mapping, name) is None]
    return not missing, missing


def column_index(headers: Sequence[Any], ref: Optional[ColumnRef]) -> Optional[int]:
    """Resolve a column reference to an index; None when it cannot be resolved."""
    if ref is None:
        return None
    if isinstance(ref, int):
        return ref if ref >= 0 else None
    wanted = str(ref).strip().lower()
    for index, header in enumerate(headers):
        if cell_text(header).lower() == wanted:
            return index
    return None


def _get(row: Sequence[Any], index: Optional[int]) -> str:
    if index is None or index >= len(row):
        return ""
    return cell_text(row[index])


def _resolve(headers: Sequence[Any], mapping: ColumnMapping) -> Dict[str, Optional[int]]:
    return {f.name: column_index(headers, getattr(mapping, f.name)) for f in fields(mapping)}


def preview_mapping(
    grid: Grid,
    mapping: Optional[ColumnMapping] = None,
    header_row_index: int = 0,
    limit: int = 5,
) -> List[Dict[str, str]]:
    """
    Show what a mapping would read from the first data rows.

    Returns:
        One dict per row: mapped field name -> cell text
    """
    headers = list(grid[header_row_index]) if len(grid) > header_row_index else []
    mapping = mapping or auto_detect_mapping(headers)
    columns = {name: idx for name, idx in _resolve(headers, mapping).items() if idx is not None}

    preview = []
    for row in grid[header_row_index + 1:]:
        if len(preview) >= limit:
            break
        if all(not cell_text(cell) for cell in row):
            continue
        preview.append({name: _get(row, idx) for name, idx in columns.items()})
    return preview


# ---------------------------------------------------------------------------
# Row parsing
# ---------------------------------------------------------------------------

def _parse_row(
    row: Sequence[Any],
    row_index: int,
    headers: List[str],
    columns: Dict[str, Optional[int]],
    options: TabularParseOptions,
) -> ParsedRow:
    warnings: List[str] = []
    errors: List[str] = []
    confidence = default_config.tabular_row_confidence
    raw_data = {header or f"col{i}": _get(row, i) for i, header in enumerate(headers)}

    def failed(message: str) -> ParsedRow:
        errors.append(message)
        return ParsedRow(row_index=row_index, part=None, confidence=0.0,
                         warnings=warnings, errors=errors, raw_data=raw_data)

    # --- Dimensions (required) ---
    L = parse_number(_get(row, columns["L"]))
    if not L or L <= 0:
        return failed("Missing or invalid Length")
    W = parse_number(_get(row, columns["W"]))
    if not W or W <= 0:
        return failed("Missing or invalid Width")

    # --- Quantity ---
    qty_text = _get(row, columns["qty"])
    qty_value = parse_number(qty_text)
    if qty_value is None or qty_value <= 0:
        if qty_text:
            warnings.append("Invalid quantity, defaulting to 1")
            confidence *= default_config.tabular_bad_quantity_multiplier
        else:
            warnings.append("Quantity not specified, defaulting to 1")
        qty = 1
    else:
        qty = max(1, int(round(qty_value)))

    thickness = parse_number(_get(row, columns["thickness_mm"]))
    if thickness is None:
        thickness = options.default_thickness_mm
    elif thickness <= 0:
        warnings.append(f"Invalid thickness {thickness:g}, defaulting to {options.default_thickness_mm:g}mm")
        thickness = options.default_thickness_mm

    material = _get(row, columns["material"])

    # --- Grain / rotation ---
    grain = parse_grain(_get(row, columns["grain"]))
    rotation = parse_rotation(_get(row, columns["rotation"]))
    allow_rotation = (grain == GRAIN_NONE) if rotation is None else rotation

    # --- Edging: combined column, then per-edge columns ---
    edges = set(parse_edging_cell(_get(row, columns["edging"])))
    for edge in EDGE_IDS:
        if is_truthy(_get(row, columns[f"edging_{edge}"])):
            edges.add(edge)

    ops = None
    if edges:
        ops = PartOps(edging=EdgingOps(
            edges={edge: EdgeOp(apply=True) for edge in EDGE_IDS if edge in edges}))

    notes = _get(row, columns["notes"])
    part = CutPart(
        part_id=generate_part_id(),
        size=Size(L=L, W=W),
        qty=qty,
        thickness_mm=thickness,
        material_id=material or options.default_material_id,
        label=_get(row, columns["label"]) or None,
        grain=grain,
        allow_rotation=allow_rotation,
        group_id=_get(row, columns["group_id"]) or None,
        ops=ops,
        notes=PartNotes(operator=notes) if notes else None,
        material_raw=material or None,
        audit=PartAudit(
            source_method=options.source_method,
            source_ref=f"row:{row_index}",
            confidence=confidence,
            warnings=list(warnings),
        ),
    )
    return ParsedRow(row_index=row_index, part=part, confidence=confidence,
                     warnings=warnings, errors=errors, raw_data=raw_data)


def parse_tabular(grid: Grid, options: Optional[TabularParseOptions] = None) -> TabularParseResult:
    """
    Parse a grid of cells into one ParsedRow per non-empty data row.

    Rows without a positive Length/Width produce ``part=None`` at confidence
    0; every other row is parsed independently.

    Args:
        grid: Rows of cells (strings or spreadsheet values)
        options: Header/data row range and column mapping

    Returns:
        TabularParseResult with per-row results in input order
    """
    options = options or TabularParseOptions()
    if len(grid) <= options.header_row_index:
        return TabularParseResult()

    headers = [cell_text(h) for h in grid[options.header_row_index]]
    mapping = options.mapping or auto_detect_mapping(headers)
    columns = _resolve(headers, mapping)

    start = options.header_row_index + 1 if options.data_row_start is None else options.data_row_start
    end = len(grid) - 1 if options.data_row_end is None else min(options.data_row_end, len(grid) - 1)
    data_rows = list(grid[start:end + 1])

    result = TabularParseResult(headers=headers, mapping=mapping.to_dict(), total_rows=len(data_rows))
    valid, missing = validate_mapping(mapping)
    if not valid:
        logger.warning("Column mapping is missing required fields: %s", ", ".join(missing))

    total_confidence = 0.0
    for offset, row in enumerate(data_rows):
        if all(not cell_text(cell) for cell in row):
            continue
        row_index = start + offset
        try:
            parsed = _parse_row(row, row_index, headers, columns, options)
        except Exception as e:
            logger.warning("Row %d could not be parsed: %s", row_index, e)
            parsed = ParsedRow(row_index=row_index, part=None, confidence=0.0,
                               errors=[f"Parse failed: {e}"])
        result.rows.append(parsed)
        if parsed.part is not None:
            result.success_count += 1
            total_confidence += parsed.confidence
        else:
            result.error_count += 1

    if result.success_count:
        result.average_confidence = total_confidence / result.success_count

    logger.info(
        "Parsed %d rows: %d parts, %d errors",
        len(result.rows), result.success_count, result.error_count,
    )
    return result
