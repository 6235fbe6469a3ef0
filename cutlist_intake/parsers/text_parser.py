"""Parse free-typed text into CutPart drafts.

One line describes one part. Each stage reads the canonicalized line with
an ordered regex ladder (see patterns.py) and contributes a confidence:

    dimensions (required) -> label -> operations -> quantity
    -> grain/rotation -> material hints -> thickness -> edge banding

Rows pasted from a spreadsheet (tab or multi-space separated cells) are
read by column position instead of by the dimension ladder.

A line without dimensions is fatal for that line only: the result carries a
zero-size part at confidence 0 and an error, and batches keep going.

Usage:
    from cutlist_intake.parsers.text_parser import parse_text_line, parse_text_batch

    result = parse_text_line("Side panel: 720x560 x2 GL white 18mm L1L2")
    result.part.size.L      # 720.0
    result.part.qty         # 2
    result.confidence       # 0.855

    batch = parse_text_batch("Top 600x300 x2; Shelf 564x280 qty 4")
    batch.total_parsed      # 2
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Tuple

from ..config import default_config
from ..contracts import TextBatchParseResult, TextParseResult
from ..models.part import (
    EDGE_IDS,
    GRAIN_ALONG_L,
    GRAIN_NONE,
    CutPart,
    EdgeOp,
    EdgingOps,
    GrooveOp,
    HoleOp,
    PartAudit,
    PartOps,
    RoutingOp,
    Size,
    generate_part_id,
)
from .normalize import canonicalize
from .patterns import (
    DIMENSION_PATTERNS,
    EDGE_ALL,
    EDGE_ALL_CODE,
    EDGE_CODE,
    EDGE_CODES,
    EDGE_LONG,
    EDGE_PAIR,
    EDGE_PREFIX,
    EDGE_SHORT,
    EDGE_TOKEN,
    GRAIN_GENERIC,
    GRAIN_PATTERNS,
    GROOVE_CODE,
    GROOVE_WORD,
    HEADER_KEYWORDS,
    HOLE_PATTERNS,
    LABEL_PATTERNS,
    LEADING_QUANTITY,
    MATERIAL_HINT_PATTERNS,
    NO_GRAIN_PATTERNS,
    QUANTITY_PATTERNS,
    ROUTING_PATTERNS,
    SKIP_LINE_PATTERNS,
    THICKNESS_HINT,
    THICKNESS_PATTERNS,
    first_match,
)
from .spoken import words_to_digits
from .units import apply_dim_order, check_dim_order, check_units, parse_number, to_mm

logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r'[\r\n;|]+')
_CELL_SPLIT = re.compile(r'\t|\s{2,}')
_INTEGER = re.compile(r'^\d+$')
_ALNUM = re.compile(r'[A-Za-z0-9]')
_WHITESPACE = re.compile(r'\s+')
_SNIPPET_LENGTH = 200

# Edge mark columns after the quantity, left to right
_EDGE_COLUMNS = ("L1", "W1", "L2", "W2")

NO_DIMENSIONS_ERROR = "Could not extract dimensions (expected format: LxW, e.g., 720x560)"
NON_DATA_ERROR = "Header or non-data line"
DEFAULT_QUANTITY_WARNING = "Quantity not specified, defaulting to 1"


@dataclass
class TextParseOptions:
    """
    Options for text parsing.

    Attributes:
        default_thickness_mm: Thickness when none is found in the text
        default_material_id: Material id given to every parsed part
        dim_order_hint: "LxW", "WxL" or "infer" (larger value becomes L)
        units: Units of the numbers in the text ("mm", "cm", "inch")
        source_method: Recorded in part.audit.source_method; "voice" also
            converts number words to digits before parsing
        min_confidence: Threshold used by quick_parse()
    """
    default_thickness_mm: float = default_config.default_thickness_mm
    default_material_id: str = default_config.default_material_id
    dim_order_hint: str = default_config.default_dim_order
    units: str = default_config.default_units
    source_method: str = "paste_parser"
    min_confidence: float = default_config.quick_parse_min_confidence

    def __post_init__(self):
        check_units(self.units)
        check_dim_order(self.dim_order_hint)


@dataclass
class PastedRow:
    """Fields read by position from a row pasted out of a spreadsheet."""
    L: float
    W: float
    qty: Optional[int] = None
    label: Optional[str] = None
    edges: List[str] = field(default_factory=list)
    rest: str = ""                  # Cells not consumed by position
    warnings: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------

def split_lines(text: str) -> List[str]:
    """Split a block on newline, semicolon or pipe; drop blank entries."""
    if not text:
        return []
    return [line.strip() for line in _LINE_SPLIT.split(text) if line.strip()]


def is_header_line(line: str) -> bool:
    """True if the line names two or more distinct column headers."""
    found = {m.group(1).lower() for m in HEADER_KEYWORDS.finditer(line)}
    return len(found) >= 2


def is_non_data_line(line: str) -> bool:
    """
    True for headers, separators, totals and similar lines.

    A line that contains a dimension pair is always treated as data.
    """
    text = canonicalize(line)
    if len(_ALNUM.findall(text)) < 2:
        return True
    if first_match(DIMENSION_PATTERNS, text)[1] is not None:
        return False
    if is_header_line(text):
        return True
    return first_match(SKIP_LINE_PATTERNS, text)[1] is not None


# ---------------------------------------------------------------------------
# Extraction stages
# ---------------------------------------------------------------------------

def _extract_dimensions(
    text: str, options: TextParseOptions
) -> Optional[Tuple[float, float, Tuple[int, int]]]:
    for name, pattern in DIMENSION_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        first = parse_number(match.group(1))
        second = parse_number(match.group(2))
        if not first or not second:
            continue
        L, W = apply_dim_order(to_mm(first, options.units), to_mm(second, options.units),
                               options.dim_order_hint)
        logger.debug("Dimensions %sx%s matched by %r", L, W, name)
        return L, W, match.span()
    return None


def _extract_quantity(text: str) -> Tuple[Optional[int], List[str]]:
    warnings = []
    for name, pattern in QUANTITY_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        qty = int(match.group(1))
        if 0 < qty <= default_config.max_quantity_parsed:
            logger.debug("Quantity %d matched by %r", qty, name)
            return qty, warnings
        warnings.append(f"Quantity {qty} out of range, ignored")
    return None, warnings


def _extract_grain(text: str) -> Tuple[str, bool, float]:
    """Return (grain, allow_rotation, confidence)."""
    explicit = default_config.grain_explicit_confidence
    if first_match(GRAIN_PATTERNS, text)[1] is not None:
        return GRAIN_ALONG_L, False, explicit
    if first_match(NO_GRAIN_PATTERNS, text)[1] is not None:
        return GRAIN_NONE, True, explicit
    if GRAIN_GENERIC.search(text):
        return GRAIN_ALONG_L, False, 0.75
    return GRAIN_NONE, True, default_config.grain_default_confidence


def _extract_label(text: str, dim_start: int) -> Optional[str]:
    name, match = first_match(LABEL_PATTERNS, text)
    if match is None:
        return None
    if name != "quoted" and match.end(1) > dim_start:
        return None
    label = (match.group(1) or match.group(2) or "").strip()
    return label[:default_config.label_max_length] or None


def _format_mm(value: float) -> str:
    return f"{value:g}mm"


def _extract_material_hints(text: str) -> List[str]:
    hits = []
    for hint, pattern in MATERIAL_HINT_PATTERNS:
        match = pattern.search(text)
        if match:
            hits.append((match.start(), hint))
    for match in THICKNESS_HINT.finditer(text):
        value = float(match.group(1))
        if default_config.min_thickness_mm <= value <= default_config.max_thickness_mm:
            hits.append((match.start(), _format_mm(value)))

    hints = []
    for _, hint in sorted(hits, key=lambda hit: hit[0]):
        if hint not in hints:
            hints.append(hint)
    return hints


def _extract_thickness(text: str, units: str = "mm") -> Optional[float]:
    for name, pattern in THICKNESS_PATTERNS:
        for match in pattern.finditer(text):
            value = float(match.group(1))
            if not match.group(2):
                value = to_mm(value, units)
            if default_config.min_thickness_mm <= value <= default_config.max_thickness_mm:
                logger.debug("Thickness %s matched by %r", value, name)
                return value
    return None


def extract_edges(text: str) -> List[str]:
    """
    Find edge-banding instructions in text.

    Handles L1/L2/W1/W2 tokens (also run together: "L1L2"), "all edges",
    "4 sides", "long edges", "short edges", bare shortcodes ("2L2W", "2L",
    "L2W", "4S", "ALL") and prefixed lists such as "EB: all" or "edge: 2L".

    Returns:
        Edge ids in canonical order (L1, L2, W1, W2)
    """
    edges = set()
    if EDGE_ALL.search(text) or EDGE_ALL_CODE.search(text):
        edges.update(EDGE_IDS)
    for match in EDGE_CODE.finditer(text):
        edges.update(EDGE_CODES[match.group(1).upper()])
    for match in EDGE_TOKEN.finditer(text):
        edges.update(pair.upper() for pair in EDGE_PAIR.findall(match.group(1)))
    if EDGE_LONG.search(text):
        edges.update(("L1", "L2"))
    if EDGE_SHORT.search(text):
        edges.update(("W1", "W2"))
    for match in EDGE_PREFIX.finditer(text):
        listed = match.group(1).lower()
        if re.search(r'\ball\b', listed):
            edges.update(EDGE_IDS)
        if re.search(r'\b(?:2l|ll)\b', listed):
            edges.update(("L1", "L2"))
        if re.search(r'\b(?:2w|ww)\b', listed):
            edges.update(("W1", "W2"))
    return [edge for edge in EDGE_IDS if edge in edges]


def _blank(pattern: Pattern[str], text: str) -> str:
    return pattern.sub(lambda m: " " * len(m.group(0)), text)


def _groove_sides(selector: Optional[str]) -> Tuple[str, ...]:
    selector = (selector or "").upper().lstrip("-")
    if selector in ("", "ALL"):
        return EDGE_IDS
    if selector in ("L", "W"):
        return (f"{selector}1", f"{selector}2")
    return (selector,)


def _code_id(match: re.Match) -> str:
    value = match.groupdict().get("id") or match.group(0)
    return _WHITESPACE.sub(" ", value).upper()


def extract_operations(text: str) -> Tuple[PartOps, str]:
    """
    Find groove, drilling and CNC instructions in text.

    Grooves: "GW2-4-10" (edge, width, offset), "GL-4-12", "G-ALL-4-10",
    or the words "groove"/"dado" with an optional edge ("groove: L1"),
    which use the configured back-panel groove.
    Holes: "H2-100", "HD-CC128", "SP-32", "KN-CTR", "32mm system",
    "hinge: 35mm", "holes: shelf".
    Routing: "CUTOUT-SINK-500x400", "POCKET-100x50x10", "RADIUS-50",
    "cnc: lock".

    Matched spans are blanked out so later stages do not read "G-4-10"
    as grain or "32mm system" as a thickness.

    Returns:
        (PartOps without edging, remaining text)
    """
    ops = PartOps()

    for match in GROOVE_CODE.finditer(text):
        width, offset = float(match.group(2)), float(match.group(3))
        for side in _groove_sides(match.group(1)):
            ops.grooves.append(GrooveOp(side=side, offset_mm=offset, width_mm=width,
                                        notes=match.group(0).upper()))
    text = _blank(GROOVE_CODE, text)

    for match in GROOVE_WORD.finditer(text):
        sides = _groove_sides(match.group(1)) if match.group(1) else (default_config.default_groove_side,)
        for side in sides:
            ops.grooves.append(GrooveOp(side=side,
                                        offset_mm=default_config.default_groove_offset_mm,
                                        width_mm=default_config.default_groove_width_mm))
    text = _blank(GROOVE_WORD, text)

    for name, pattern in HOLE_PATTERNS:
        for match in pattern.finditer(text):
            ops.holes.append(HoleOp(pattern_id=_code_id(match), notes=name))
        text = _blank(pattern, text)

    for name, pattern in ROUTING_PATTERNS:
        for match in pattern.finditer(text):
            ops.routing.append(RoutingOp(profile_id=_code_id(match), notes=name))
        text = _blank(pattern, text)

    if ops.has_cnc:
        logger.debug("Operations: %d grooves, %d holes, %d routing",
                     len(ops.grooves), len(ops.holes), len(ops.routing))
    return ops, text


def split_cells(line: str) -> List[str]:
    """Split a pasted spreadsheet row on tabs or runs of 2+ spaces."""
    return [canonicalize(cell) for cell in _CELL_SPLIT.split(line.strip()) if cell.strip()]


def parse_pasted_row(text: str, options: Optional[TextParseOptions] = None) -> Optional[PastedRow]:
    """
    Read a row pasted from a spreadsheet by column position.

    Expected layout: [row no.] [label] L W [qty] [edge marks / other cells]

    - A small integer in the first cell is a row number when a label
      follows it, or when it is smaller than the two numbers after it
    - The first two numeric cells after that are L and W
    - A whole number directly after W is the quantity
    - In the cells after the quantity, "X" marks L1, W1, L2, W2 by
      position and "XX" marks both edges of that side

    Returns:
        PastedRow, or None when the line has fewer than 3 cells or fewer
        than 2 numeric cells (free text such as "Side 720x560 x2")
    """
    options = options or TextParseOptions()
    cells = split_cells(text)
    if len(cells) < 3:
        return None

    numbers = []
    for index, cell in enumerate(cells):
        value = parse_number(cell)
        if value is not None and value > 0:
            numbers.append((index, value))
    if len(numbers) < 2:
        return None

    start = 0
    first_index, first_value = numbers[0]
    if first_index == 0 and first_value.is_integer() and first_value < 1000:
        label_follows = parse_number(cells[1]) is None
        if label_follows or (len(numbers) >= 3 and first_value < min(numbers[1][1], numbers[2][1])):
            numbers = numbers[1:]
            start = 1
    if len(numbers) < 2:
        return None

    (l_index, first), (w_index, second) = numbers[0], numbers[1]
    L, W = apply_dim_order(to_mm(first, options.units), to_mm(second, options.units),
                           options.dim_order_hint)
    row = PastedRow(L=L, W=W)

    label = " ".join(cells[i] for i in range(start, l_index) if parse_number(cells[i]) is None)
    row.label = label[:default_config.label_max_length] or None

    marks_from = w_index + 1
    if marks_from < len(cells) and _INTEGER.match(cells[marks_from]):
        qty = int(cells[marks_from])
        if 0 < qty <= default_config.max_quantity_parsed:
            row.qty = qty
        else:
            row.warnings.append(f"Quantity {qty} out of range, ignored")
        marks_from += 1

    edges = set()
    rest = []
    for position, cell in enumerate(cells[marks_from:]):
        mark = cell.upper()
        if mark in ("X", "XX") and position < len(_EDGE_COLUMNS):
            side = _EDGE_COLUMNS[position]
            edges.add(side)
            if mark == "XX":
                edges.update((f"{side[0]}1", f"{side[0]}2"))
        else:
            rest.append(cell)
    row.edges = [edge for edge in EDGE_IDS if edge in edges]
    row.rest = " ".join(rest)

    logger.debug("Pasted row %r read as %sx%s qty %s", text, L, W, row.qty)
    return row


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def create_empty_part(options: Optional[TextParseOptions] = None) -> CutPart:
    """Zero-size placeholder returned when a line cannot be parsed."""
    options = options or TextParseOptions()
    return CutPart(
        part_id=generate_part_id(),
        size=Size(L=0.0, W=0.0),
        qty=1,
        thickness_mm=options.default_thickness_mm,
        material_id=options.default_material_id,
        audit=PartAudit(source_method=options.source_method, confidence=0.0),
    )


def _failed(text: str, options: TextParseOptions, errors: List[str],
            skipped: bool = False, source_ref: Optional[str] = None) -> TextParseResult:
    part = create_empty_part(options)
    part.audit.source_ref = source_ref
    part.audit.parsed_text_snippet = text[:_SNIPPET_LENGTH] or None
    part.audit.errors = list(errors)
    return TextParseResult(
        part=part,
        confidence=0.0,
        errors=errors,
        original_text=text,
        skipped=skipped,
    )


def parse_text_line(
    text: str,
    options: Optional[TextParseOptions] = None,
    source_ref: Optional[str] = None,
) -> TextParseResult:
    """
    Parse one line of free text into a CutPart draft.

    Args:
        text: The line ("Side panel: 720x560 x2 GL white 18mm L1L2")
        options: Parse options (defaults from config)
        source_ref: Optional provenance reference stored on the audit ("line:3")

    Returns:
        TextParseResult; never raises for malformed input
    """
    options = options or TextParseOptions()
    original = text or ""

    line = canonicalize(original)
    if options.source_method == "voice":
        line = canonicalize(words_to_digits(line))

    if not line:
        return _failed(original, options, ["Empty input"], source_ref=source_ref)
    if is_non_data_line(line):
        return _failed(original, options, [NON_DATA_ERROR], skipped=True, source_ref=source_ref)

    warnings: List[str] = []

    row = parse_pasted_row(original, options)
    if row is not None:
        # --- 1-2. Dimensions, label and quantity by column position ---
        L, W = row.L, row.W
        dim_confidence = default_config.pasted_row_confidence
        label = row.label
        qty = row.qty
        warnings.extend(row.warnings)
        found_ops, rest = extract_operations(row.rest)
        marked_edges = row.edges
    else:
        # "2x 720x560": peel the leading count off before looking for dimensions
        body = line
        leading_qty = None
        lead = LEADING_QUANTITY.match(line)
        if lead and _extract_dimensions(line[lead.end():], options) is not None:
            leading_qty = int(lead.group(1))
            body = line[lead.end():]

        # --- 1. Dimensions (fatal when missing) ---
        dims = _extract_dimensions(body, options)
        if dims is None:
            logger.debug("No dimensions in %r", original)
            return _failed(original, options, [NO_DIMENSIONS_ERROR], source_ref=source_ref)
        L, W, (dim_start, dim_end) = dims
        dim_confidence = default_config.dimension_confidence
        label = _extract_label(body, dim_start)
        found_ops, rest = extract_operations(f"{body[:dim_start]} {body[dim_end:]}")
        marked_edges = []

        # --- 2. Quantity ---
        if leading_qty is not None and 0 < leading_qty <= default_config.max_quantity_parsed:
            qty = leading_qty
        else:
            qty, qty_warnings = _extract_quantity(rest)
            warnings.extend(qty_warnings)

    if qty is None:
        qty = 1
        qty_confidence = default_config.default_quantity_confidence
        warnings.append(DEFAULT_QUANTITY_WARNING)
    else:
        qty_confidence = default_config.quantity_confidence

    # --- 3. Grain / rotation ---
    grain, allow_rotation, grain_confidence = _extract_grain(rest)

    # --- 4-6. Material hints, thickness, edges ---
    hints = _extract_material_hints(rest)
    thickness = _extract_thickness(rest, options.units)
    if thickness is None:
        thickness = options.default_thickness_mm
    edges = set(marked_edges) | set(extract_edges(rest))

    confidence = dim_confidence * qty_confidence
    # Grain is optional: a missing grain marker only costs a little
    if grain_confidence < 0.7:
        confidence *= default_config.grain_missing_multiplier
    confidence = max(0.0, min(1.0, confidence))

    ops = None
    if edges or found_ops.has_cnc:
        ops = found_ops
        if edges:
            ops.edging = EdgingOps(edges={edge: EdgeOp(apply=True) for edge in EDGE_IDS if edge in edges})

    part = CutPart(
        part_id=generate_part_id(),
        size=Size(L=L, W=W),
        qty=qty,
        thickness_mm=thickness,
        material_id=options.default_material_id,
        label=label,
        grain=grain,
        allow_rotation=allow_rotation,
        ops=ops,
        tags=hints,
        material_raw=" ".join(hints) or None,
        audit=PartAudit(
            source_method=options.source_method,
            source_ref=source_ref,
            parsed_text_snippet=original[:_SNIPPET_LENGTH],
            confidence=confidence,
            warnings=list(warnings),
        ),
    )

    return TextParseResult(
        part=part,
        confidence=confidence,
        warnings=warnings,
        original_text=original,
        field_confidence={
            "dimensions": dim_confidence,
            "quantity": qty_confidence,
            "grain": grain_confidence,
        },
    )


def parse_text_batch(text: str, options: Optional[TextParseOptions] = None) -> TextBatchParseResult:
    """
    Parse a multi-line block, one part per line.

    Lines are split on newline, semicolon and pipe. Each line is parsed
    independently; header/separator lines are counted as skipped, lines
    without dimensions as errors.

    Args:
        text: Block of text
        options: Parse options shared by every line

    Returns:
        TextBatchParseResult with successful lines in ``parts`` (input order)
    """
    options = options or TextParseOptions()
    lines = split_lines(text)
    batch = TextBatchParseResult(total_lines=len(lines))

    for index, line in enumerate(lines, start=1):
        try:
            result = parse_text_line(line, options, source_ref=f"line:{index}")
        except Exception as e:
            logger.warning("Line %d could not be parsed: %s", index, e)
            result = _failed(line, options, [f"Parse failed: {e}"], source_ref=f"line:{index}")

        if result.skipped:
            batch.total_skipped += 1
        elif result.errors:
            batch.total_errors += 1
            batch.failed.append(result)
        else:
            batch.parts.append(result)

    batch.total_parsed = len(batch.parts)
    if batch.parts:
        batch.average_confidence = sum(r.confidence for r in batch.parts) / len(batch.parts)

    logger.info(
        "Parsed %d of %d lines (%d errors, %d skipped, avg confidence %.2f)",
        batch.total_parsed, batch.total_lines, batch.total_errors,
        batch.total_skipped, batch.average_confidence,
    )
    return batch


def quick_parse(
    text: str,
    min_confidence: Optional[float] = None,
    options: Optional[TextParseOptions] = None,
) -> Optional[CutPart]:
    """
    Parse a single manual-entry field.

    Returns:
        The part, or None if any error was recorded or the confidence is
        below ``min_confidence`` (default: options.min_confidence)
    """
    options = options or TextParseOptions(source_method="manual")
    threshold = options.min_confidence if min_confidence is None else min_confidence
    result = parse_text_line(text, options)
    if result.errors or result.confidence < threshold:
        return None
    return result.part
