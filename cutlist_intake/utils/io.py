"""File I/O utilities.

Readers return ``(data, error)`` tuples instead of raising, so callers can
report an unreadable catalog or input file and carry on.
"""

import json
from pathlib import Path
from typing import Any, Callable, Optional, Tuple, Union

# Spreadsheet exports (CSV from Excel on Windows) often carry a BOM or a
# legacy code page
ENCODINGS = ["utf-8-sig", "utf-8", "latin-1"]

PathLike = Union[str, Path]


def _read_with_fallback(
    filepath: PathLike,
    decode: Callable[[str], Any],
) -> Tuple[Optional[Any], Optional[str]]:
    path = Path(filepath)
    if not path.exists():
        return None, f"File not found: {path}"

    for encoding in ENCODINGS:
        try:
            text = path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
        except OSError as e:
            return None, f"Error: {str(e)[:100]}"

        try:
            return decode(text), None
        except json.JSONDecodeError as e:
            # A stray BOM only decodes cleanly under utf-8-sig
            if "BOM" in str(e) and encoding == "utf-8":
                continue
            return None, f"JSON error: {str(e)[:100]}"

    return None, f"Failed all encodings for: {path}"


def read_text_robust(filepath: PathLike) -> Tuple[Optional[str], Optional[str]]:
    """
    Read a text file, trying utf-8-sig, utf-8 and latin-1 in turn.

    Returns:
        Tuple of (text, error):
        - On success: (str, None)
        - On failure: (None, error_message)
    """
    return _read_with_fallback(filepath, lambda text: text)


def load_json_robust(filepath: PathLike) -> Tuple[Optional[Any], Optional[str]]:
    """
    Load a JSON file (catalog, cutlist document) with BOM handling.

    Args:
        filepath: Path to JSON file

    Returns:
        Tuple of (data, error)

    Example:
        data, err = load_json_robust("catalog.json")
        if err:
            logger.warning("Catalog not loaded: %s", err)
    """
    return _read_with_fallback(filepath, json.loads)


def write_json(data: Any, filepath: PathLike, indent: int = 2) -> Path:
    """Write data as UTF-8 JSON, creating parent directories. Returns the path."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=indent, ensure_ascii=False), encoding="utf-8")
    return path
