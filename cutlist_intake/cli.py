"""Command-line entry point.

Usage:
    cutlist-intake text parts.txt [--catalog catalog.json --org ORG] [--json]
    cutlist-intake sheet parts.xlsx [--sheet "Parts List"] [--list]
    cutlist-intake validate cutlist.json [--require-refs]

Exit codes: 0 success, 1 rejected parts / invalid cutlist, 2 unreadable input.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .matching.catalog import JsonCatalog
from .models.cutlist import CutlistDocument
from .parsers.text_parser import TextParseOptions
from .parsers.workbook import WorkbookReadError, list_sheets
from .pipeline.intake import IntakePipeline, IntakeResult
from .report.intake_report import build_intake_report
from .utils.io import load_json_robust, read_text_robust, write_json
from .validators.cutlist_validator import CutlistValidationOptions, validate_cutlist

logger = logging.getLogger(__name__)


def _build_pipeline(args: argparse.Namespace) -> IntakePipeline:
    if args.catalog:
        return asyncio.run(IntakePipeline.for_org(
            args.org, JsonCatalog(args.catalog), min_confidence=args.min_confidence,
        ))
    return IntakePipeline(min_confidence=args.min_confidence)


def _emit(result: IntakeResult, source: str, args: argparse.Namespace) -> int:
    report = build_intake_report(result, source=source)
    if args.out:
        write_json(result.to_dict(), args.out)
        logger.info("Wrote %s", args.out)
    if args.json:
        print(json.dumps({"report": report.to_dict(), "result": result.to_dict()}, indent=2))
    else:
        print(report.to_markdown())
    return 1 if result.rejected else 0


def _cmd_text(args: argparse.Namespace) -> int:
    if args.file == "-":
        text = sys.stdin.read()
    else:
        text, error = read_text_robust(args.file)
        if error:
            print(f"Error: {error}", file=sys.stderr)
            return 2
    options = TextParseOptions(source_method="voice" if args.voice else "paste_parser",
                               units=args.units)
    result = _build_pipeline(args).from_text(text, options)
    return _emit(result, args.file, args)


def _cmd_sheet(args: argparse.Namespace) -> int:
    try:
        if args.list:
            for info in list_sheets(args.file):
                print(f"[{info.index}] {info.name}: score {info.score}, "
                      f"{info.row_count} rows x {info.column_count} columns")
            return 0
        sheet = int(args.sheet) if args.sheet and args.sheet.isdigit() else args.sheet
        result = _build_pipeline(args).from_workbook(args.file, sheet=sheet)
    except WorkbookReadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    return _emit(result, f"{args.file} [{result.sheet}]", args)


def _cmd_validate(args: argparse.Namespace) -> int:
    data, error = load_json_robust(args.file)
    if error:
        print(f"Error: {error}", file=sys.stderr)
        return 2
    try:
        document = CutlistDocument.from_dict(data)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    options = CutlistValidationOptions(
        require_defined_materials=args.require_refs,
        require_defined_edgebands=args.require_refs,
    )
    result = validate_cutlist(document, options)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        summary = result.summary
        print(f"Cutlist {document.doc_id}: {'VALID' if result.valid else 'INVALID'}")
        print(f"  Parts: {summary.valid_parts}/{summary.total_parts} valid, "
              f"{summary.total_pieces} pieces")
        print(f"  Materials: {', '.join(summary.materials_used) or '-'}")
        for diag in result.cutlist_errors + result.cutlist_warnings:
            print(f"  [{diag.severity}] {diag.code}: {diag.message}")
        for part_result in result.part_results.results:
            for diag in part_result.errors + part_result.warnings:
                print(f"  [{diag.severity}] {part_result.part_id} {diag.code}: {diag.message}")
    return 0 if result.valid else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cutlist-intake",
        description="Parse, match and validate cut parts from text, spreadsheets and cutlists",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--catalog", help="Catalog JSON for material/edgeband matching")
    common.add_argument("--org", default="default", help="Organization id in the catalog")
    common.add_argument("--min-confidence", type=float, default=None,
                        help="Confidence below which parts go to review")
    common.add_argument("--json", action="store_true", help="Print JSON instead of markdown")
    common.add_argument("--out", help="Write the full intake result to this JSON file")

    text = subparsers.add_parser("text", parents=[common], help="Parse free text, one part per line")
    text.add_argument("file", help="Text file, or - for stdin")
    text.add_argument("--voice", action="store_true", help="Input is a voice transcript")
    text.add_argument("--units", default="mm", choices=["mm", "cm", "inch"],
                      help="Units of the dimensions")
    text.set_defaults(func=_cmd_text)

    sheet = subparsers.add_parser("sheet", parents=[common], help="Parse an .xlsx or .csv file")
    sheet.add_argument("file", help="Workbook or CSV file")
    sheet.add_argument("--sheet", help="Sheet name or index (default: best scoring sheet)")
    sheet.add_argument("--list", action="store_true", help="List sheets with their scores")
    sheet.set_defaults(func=_cmd_sheet)

    validate = subparsers.add_parser("validate", help="Validate a cutlist JSON document")
    validate.add_argument("file", help="Cutlist JSON file")
    validate.add_argument("--json", action="store_true", help="Print JSON result")
    validate.add_argument("--require-refs", action="store_true",
                          help="Require every material/edgeband id to be declared")
    validate.set_defaults(func=_cmd_validate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
