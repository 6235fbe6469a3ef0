"""Turn CSV text and spreadsheet workbooks into cell grids.

CSV text is split with a quote-aware reader; the delimiter is detected from
the header row when not given. Workbooks (.xlsx) are read with openpyxl, one
grid per sheet, and the sheet most likely to hold the parts list is chosen
by a scoring heuristic:

    +10  sheet name looks like a parts list ("Parts", "Cutlist", "BOM")
    +5   per header family found (length, width, quantity, material)
    +3   row count within sheet_row_range
    +2   column count within sheet_column_range
    -15  sheet name looks like documentation ("Instructions", "Notes", ...)

Ties keep the first sheet.
"""

import csv
import io
import logging
from pathlib import Path
from typing import Any, BinaryIO, List, Optional, Sequence, Tuple, Union

import openpyxl

from ..config import Config, default_config
from ..contracts import SheetInfo, TabularParseResult
from ..utils.io import read_text_robust
from .patterns import NON_PARTS_SHEET_NAME, PARTS_SHEET_NAME, SHEET_HEADER_PATTERNS
from .tabular_parser import TabularParseOptions, cell_text, parse_tabular

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = (",", ";", "\t")
TEXT_SUFFIXES = {".csv", ".tsv", ".txt"}

WorkbookSource = Union[str, Path, bytes, BinaryIO]
Grid = List[List[Any]]


class WorkbookReadError(RuntimeError):
    """Raised when a workbook or CSV file cannot be read."""


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def split_csv_line(line: str, delimiter: str = ",") -> List[str]:
    """Split one line on ``delimiter``, keeping delimiters inside double quotes."""
    cells = next(csv.reader([line], delimiter=delimiter), [])
    return [cell.strip() for cell in cells]


def detect_delimiter(text: str) -> str:
    """
    Pick the delimiter (comma, semicolon or tab) used by the first line.

    Delimiters inside quoted fields are ignored; comma wins when none occur.
    """
    first_line = next((line for line in text.splitlines() if line.strip()), "")
    counts = {}
    in_quotes = False
    for char in first_line:
        if char == '"':
            in_quotes = not in_quotes
        elif not in_quotes and char in CANDIDATE_DELIMITERS:
            counts[char] = counts.get(char, 0) + 1
    if not counts:
        return ","
    # max() keeps the first of equal counts, in CANDIDATE_DELIMITERS order
    return max(CANDIDATE_DELIMITERS, key=lambda d: counts.get(d, 0))


def parse_csv_text(text: str, delimiter: Optional[str] = None) -> Grid:
    """
    Convert CSV text into a grid of trimmed string cells.

    Blank lines are dropped. ``delimiter`` defaults to detect_delimiter().
    """
    if not text:
        return []
    delimiter = delimiter or detect_delimiter(text)
    lines = [line for line in text.splitlines() if line.strip()]
    return [[cell.strip() for cell in row] for row in csv.reader(lines, delimiter=delimiter)]


# ---------------------------------------------------------------------------
# Workbooks
# ---------------------------------------------------------------------------

def _trim_row(row: Sequence[Any]) -> List[Any]:
    cells = list(row)
    while cells and not cell_text(cells[-1]):
        cells.pop()
    return cells


def load_workbook_grids(source: WorkbookSource) -> List[Tuple[str, Grid]]:
    """
    Read every sheet of an .xlsx workbook.

    Args:
        source: File path, raw bytes or binary file object

    Returns:
        List of (sheet name, grid) in workbook order; cached formula values
        are read, trailing empty cells dropped

    Raises:
        WorkbookReadError: If openpyxl cannot open the workbook
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)

    try:
        wb = openpyxl.load_workbook(source, read_only=True, data_only=True)
    except Exception as exc:
        raise WorkbookReadError(f"Failed to open workbook: {exc}") from exc

    try:
        sheets = []
        for name in wb.sheetnames:
            ws = wb[name]
            grid = [_trim_row(row) for row in ws.iter_rows(values_only=True)]
            while grid and not grid[-1]:
                grid.pop()
            sheets.append((name, grid))
    finally:
        wb.close()

    logger.debug("Loaded %d sheets: %s", len(sheets), [name for name, _ in sheets])
    return sheets


def _header_row(grid: Grid, scan_rows: int) -> Tuple[int, int]:
    """Return (row index, header families matched) of the likeliest header row."""
    best_index, best_hits = None, 0
    for index, row in enumerate(grid[:scan_rows]):
        texts = [cell_text(cell) for cell in row if cell_text(cell)]
        if not texts:
            continue
        if best_index is None:
            best_index = index
        hits = sum(1 for pattern in SHEET_HEADER_PATTERNS
                   if any(pattern.search(text) for text in texts))
        if hits > best_hits:
            best_index, best_hits = index, hits
    return (best_index or 0), best_hits


def score_sheet(name: str, grid: Grid, index: int = 0,
                config: Optional[Config] = None) -> SheetInfo:
    """
    Describe a sheet and score how likely it is to hold the parts list.

    Args:
        name: Sheet name
        grid: Sheet cells
        index: Position of the sheet in the workbook
        config: Heuristic weights and ranges (default: default_config)

    Returns:
        SheetInfo with row/column counts, detected headers and score
    """
    config = config or default_config
    rows = [row for row in grid if any(cell_text(cell) for cell in row)]
    row_count = len(rows)
    column_count = max((len(_trim_row(row)) for row in rows), default=0)
    header_index, header_hits = _header_row(grid, config.sheet_header_scan_rows)
    headers = [cell_text(cell) for cell in grid[header_index]] if grid else []

    score = 0
    if PARTS_SHEET_NAME.search(name):
        score += config.sheet_name_bonus
    if NON_PARTS_SHEET_NAME.search(name):
        score -= config.sheet_penalty
    score += config.sheet_header_bonus * header_hits
    low, high = config.sheet_row_range
    if low <= row_count <= high:
        score += config.sheet_row_bonus
    low, high = config.sheet_column_range
    if low <= column_count <= high:
        score += config.sheet_column_bonus

    return SheetInfo(
        name=name,
        index=index,
        row_count=row_count,
        column_count=column_count,
        headers=headers,
        header_row_index=header_index,
        score=score,
    )


def select_parts_sheet(sheets: Sequence[SheetInfo]) -> int:
    """Index of the highest-scoring sheet; ties keep the first. 0 when empty."""
    best = 0
    for position, info in enumerate(sheets):
        if info.score > sheets[best].score:
            best = position
    return best


def _is_text_source(source: WorkbookSource) -> bool:
    return isinstance(source, (str, Path)) and Path(source).suffix.lower() in TEXT_SUFFIXES


def load_grids(source: WorkbookSource) -> List[Tuple[str, Grid]]:
    """Read a CSV/TSV file as a single sheet, or every sheet of a workbook."""
    if not _is_text_source(source):
        return load_workbook_grids(source)

    text, error = read_text_robust(source)
    if error:
        raise WorkbookReadError(error)
    delimiter = "\t" if Path(source).suffix.lower() == ".tsv" else None
    return [(Path(source).stem, parse_csv_text(text, delimiter))]


def list_sheets(source: WorkbookSource, config: Optional[Config] = None) -> List[SheetInfo]:
    """Describe and score every sheet of a workbook (or the single CSV sheet)."""
    return [score_sheet(name, grid, index, config)
            for index, (name, grid) in enumerate(load_grids(source))]


def _pick(sheets: List[SheetInfo], sheet: Optional[Union[str, int]]) -> int:
    if isinstance(sheet, int):
        if 0 <= sheet < len(sheets):
            return sheet
        logger.warning("Sheet index %d out of range, selecting automatically", sheet)
    elif sheet:
        wanted = sheet.strip().lower()
        for position, info in enumerate(sheets):
            if info.name.strip().lower() == wanted:
                return position
        logger.warning("Sheet %r not found, selecting automatically", sheet)
    return select_parts_sheet(sheets)


def parse_workbook(
    source: WorkbookSource,
    sheet: Optional[Union[str, int]] = None,
    options: Optional[TabularParseOptions] = None,
    config: Optional[Config] = None,
) -> Tuple[SheetInfo, TabularParseResult]:
    """
    Parse the parts sheet of a workbook or CSV file.

    Args:
        source: .xlsx path/bytes/file object, or a .csv/.tsv/.txt path
        sheet: Sheet name (case-insensitive) or index; default is the
            highest-scoring sheet
        options: Tabular options; by default the header row detected for the
            sheet is used and rows are tagged "file_upload"
        config: Sheet-selection weights

    Returns:
        (SheetInfo of the parsed sheet, TabularParseResult)

    Raises:
        WorkbookReadError: If the file cannot be read
    """
    grids = load_grids(source)
    if not grids:
        raise WorkbookReadError("Workbook has no sheets")

    sheets = [score_sheet(name, grid, index, config) for index, (name, grid) in enumerate(grids)]
    chosen = _pick(sheets, sheet)
    info = sheets[chosen]
    logger.info("Parsing sheet %r (score %d, %d rows)", info.name, info.score, info.row_count)

    if options is None:
        options = TabularParseOptions(header_row_index=info.header_row_index,
                                      source_method="file_upload")
    return info, parse_tabular(grids[chosen][1], options)
