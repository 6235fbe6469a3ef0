"""Parsers: free text, spreadsheet grids and workbooks into CutPart drafts."""

from .normalize import (
    canonicalize,
    colors_match,
    extract_keywords,
    fuzzy_score,
    keyword_overlap,
    normalize_text,
)
from .spoken import words_to_digits
from .units import apply_dim_order, parse_number, to_mm
from .text_parser import (
    PastedRow,
    TextParseOptions,
    extract_edges,
    extract_operations,
    parse_pasted_row,
    parse_text_batch,
    parse_text_line,
    quick_parse,
    split_lines,
)
from .tabular_parser import (
    ColumnMapping,
    TabularParseOptions,
    auto_detect_mapping,
    parse_tabular,
    preview_mapping,
    validate_mapping,
)
from .workbook import (
    WorkbookReadError,
    detect_delimiter,
    list_sheets,
    parse_csv_text,
    parse_workbook,
    select_parts_sheet,
    split_csv_line,
)

__all__ = [
    # Normalization
    "canonicalize",
    "colors_match",
    "extract_keywords",
    "fuzzy_score",
    "keyword_overlap",
    "normalize_text",
    "words_to_digits",
    "apply_dim_order",
    "parse_number",
    "to_mm",
    # Text
    "PastedRow",
    "TextParseOptions",
    "extract_edges",
    "extract_operations",
    "parse_pasted_row",
    "parse_text_batch",
    "parse_text_line",
    "quick_parse",
    "split_lines",
    # Tabular
    "ColumnMapping",
    "TabularParseOptions",
    "auto_detect_mapping",
    "parse_tabular",
    "preview_mapping",
    "validate_mapping",
    # Workbook / CSV
    "WorkbookReadError",
    "detect_delimiter",
    "list_sheets",
    "parse_csv_text",
    "parse_workbook",
    "select_parts_sheet",
    "split_csv_line",
]
