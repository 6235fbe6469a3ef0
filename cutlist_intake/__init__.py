"""
Cutlist Intake v1.0

Parsing and matching pipeline for cut parts (panels to be cut from sheet
material).

Stages:
- Parse: free text lines, voice transcripts, spreadsheet grids, CSV and
  .xlsx workbooks into CutPart drafts with confidence scores
- Match: raw material / edgeband text to an organization's catalog
- Validate: part-level and cutlist-level business rules
- Triage: accept, send to review, or reject each part
"""

__version__ = "1.0.0"


def __getattr__(name):
    """Lazy imports so that importing a single submodule (models, config)
    does not pull in openpyxl and the whole pipeline."""

    _parser_names = {
        "TextParseOptions", "TabularParseOptions", "ColumnMapping",
        "parse_text_line", "parse_text_batch", "quick_parse",
        "parse_tabular", "parse_workbook", "list_sheets",
    }
    _matching_names = {
        "InMemoryCatalog", "JsonCatalog", "MatcherContext",
        "init_material_matcher", "match_material", "match_edgeband",
        "apply_smart_matching",
    }
    _validator_names = {
        "ValidationOptions", "CutlistValidationOptions",
        "validate_part", "validate_parts", "validate_cutlist",
    }
    _pipeline_names = {
        "IntakePipeline", "IntakeResult", "merge_into",
        "CutlistEditor", "PartPatch",
    }
    _model_names = {
        "CutPart", "CutlistDocument", "MaterialDef", "EdgebandDef",
    }

    if name in _parser_names:
        from . import parsers
        return getattr(parsers, name)
    elif name in _matching_names:
        from . import matching
        return getattr(matching, name)
    elif name in _validator_names:
        from . import validators
        return getattr(validators, name)
    elif name in _pipeline_names:
        from . import pipeline
        return getattr(pipeline, name)
    elif name in _model_names:
        from . import models
        return getattr(models, name)

    raise AttributeError(f"module 'cutlist_intake' has no attribute {name!r}")
