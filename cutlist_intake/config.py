"""
Configuration for the cutlist intake pipeline.

All settings centralized here. Override by creating a Config instance
with custom values, or by passing explicit option records to the parsers
and validators.

Usage:
    from cutlist_intake.config import Config, default_config

    # Use defaults
    print(default_config.default_thickness_mm)  # 18.0

    # Override for a run
    my_config = Config(standard_sheet_length_mm=2440, standard_sheet_width_mm=1220)
"""

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class Config:
    """
    Central configuration for the intake pipeline.

    Every option record in the package takes its defaults from here.
    Create a new instance to override any setting.
    """

    # === Parser defaults ===
    default_thickness_mm: float = 18.0
    default_material_id: str = "default"
    default_dim_order: str = "LxW"       # "LxW", "WxL" or "infer"
    default_units: str = "mm"            # "mm", "cm" or "inch"
    quick_parse_min_confidence: float = 0.5
    max_quantity_parsed: int = 1000      # Parsed quantities above this are rejected
    min_thickness_mm: float = 3.0        # Plausible thickness range for extraction
    max_thickness_mm: float = 100.0
    label_max_length: int = 100          # Parsed labels are truncated beyond this

    # === Text parser confidence ===
    dimension_confidence: float = 0.95
    quantity_confidence: float = 0.9
    default_quantity_confidence: float = 0.6
    grain_explicit_confidence: float = 0.85
    grain_default_confidence: float = 0.5
    grain_missing_multiplier: float = 0.95   # Grain is optional, penalize lightly
    pasted_row_confidence: float = 0.8       # Dimensions taken by column position

    # === Operations parsed from text ===
    default_groove_side: str = "W2"      # Back-panel groove when no edge is given
    default_groove_width_mm: float = 4.0
    default_groove_offset_mm: float = 10.0

    # === Tabular parser ===
    tabular_row_confidence: float = 1.0
    tabular_bad_quantity_multiplier: float = 0.9
    truthy_tokens: Tuple[str, ...] = ("yes", "true", "1", "y", "x", "✓", "✔")

    # === Material / edgeband matching ===
    material_fuzzy_accept: float = 0.8
    edgeband_fuzzy_candidate: float = 0.7
    edgeband_correlation_accept: float = 0.4
    edgeband_correlation_cap: float = 0.85
    thickness_bonus: float = 0.05
    exact_match_confidence: float = 0.95
    fuzzy_match_cap: float = 0.9
    keyword_match_confidence: float = 0.7
    thickness_match_confidence: float = 0.6
    default_org_confidence: float = 0.5
    default_first_material_confidence: float = 0.3
    default_first_edgeband_confidence: float = 0.3
    synthetic_default_confidence: float = 0.1

    # === Part validation ===
    min_dimension_mm: float = 10.0
    max_dimension_mm: float = 3000.0
    min_area_mm2: float = 100.0
    max_area_mm2: float = 10_000_000.0   # 10 m2
    allowed_thicknesses_mm: List[float] = field(
        default_factory=lambda: [3, 6, 9, 12, 15, 16, 18, 19, 22, 25, 30, 35, 40]
    )
    grained_material_ids: List[str] = field(
        default_factory=lambda: ["MAT-OAK-18", "MAT-WALNUT-18", "MAT-PLY-18"]
    )
    max_quantity: int = 1000
    allow_oversized: bool = False
    standard_sheet_length_mm: float = 2800.0
    standard_sheet_width_mm: float = 2070.0
    max_label_length: int = 100

    # === Cutlist validation ===
    max_unique_parts: int = 10_000
    max_total_pieces: int = 100_000

    # === Workbook sheet selection ===
    sheet_name_bonus: int = 10
    sheet_header_bonus: int = 5
    sheet_row_bonus: int = 3
    sheet_column_bonus: int = 2
    sheet_penalty: int = 15
    sheet_row_range: Tuple[int, int] = (5, 500)
    sheet_column_range: Tuple[int, int] = (4, 20)
    sheet_header_scan_rows: int = 10     # Rows inspected when looking for headers

    # === Intake pipeline ===
    auto_accept_confidence: float = 0.7  # Parts at or above this skip manual review

    # === Cutlist editor ===
    max_undo_steps: int = 30


# Default configuration instance
default_config = Config()
