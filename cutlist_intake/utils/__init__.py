"""Utility modules (file I/O)."""

from .io import load_json_robust, read_text_robust, write_json

__all__ = [
    "load_json_robust",
    "read_text_robust",
    "write_json",
]
