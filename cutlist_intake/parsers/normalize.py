"""Normalize free text before pattern matching and catalog lookup.

Two levels:
- canonicalize(): symbol cleanup that keeps the text readable (used by parsers)
- normalize_text(): lowercase alphanumeric form (used for matching and scoring)
"""

import re
from typing import Dict, Iterable, List


# Symbol normalization map: variants -> canonical form
SYMBOL_MAP: Dict[str, str] = {
    # Multiplication
    '×': 'x',
    '✕': 'x',
    '✖': 'x',
    '⨯': 'x',

    # Dash variants
    '–': '-',       # En dash
    '—': '-',       # Em dash
    '−': '-',       # Minus sign

    # Quotes
    '‘': "'",
    '’': "'",
    '“': '"',
    '”': '"',
    '″': '"',       # Double prime (inch mark)

    # Whitespace oddities from pasted documents
    '\u00a0': ' ',  # Non-breaking space
    '\u2009': ' ',  # Thin space
    '\t': ' ',
}

# Regex-based replacements (applied after symbol map)
REGEX_REPLACEMENTS = [
    # Collapse runs of spaces
    (re.compile(r' {2,}'), ' '),
]

# Words carrying no matching signal: articles, units, generic sheet nouns
STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "mm", "inch", "x", "board", "sheet", "panel",
})

# Finish/colour vocabulary shared by sheet materials and their edgebands
COLOR_WORDS = (
    "white", "black", "grey", "gray", "brown", "beige", "cream", "ivory",
    "oak", "walnut", "maple", "cherry", "mahogany", "wenge", "ash", "birch",
    "natural", "clear", "dark", "light", "anthracite", "graphite",
)

_NON_ALNUM = re.compile(r'[^a-z0-9\s]')
_WHITESPACE = re.compile(r'\s+')


def canonicalize(text: str) -> str:
    """
    Canonicalize raw input text for consistent downstream parsing.

    Steps:
    1. Apply symbol map (multiplication signs, dashes, quotes, odd spaces)
    2. Apply regex-based normalization
    3. Strip leading/trailing whitespace

    Args:
        text: Raw line as typed, pasted or transcribed

    Returns:
        Canonicalized text; empty string for empty input
    """
    if not text:
        return ""

    result = text
    for old, new in SYMBOL_MAP.items():
        result = result.replace(old, new)

    for pattern, replacement in REGEX_REPLACEMENTS:
        result = pattern.sub(replacement, result)

    return result.strip()


def normalize_text(text: str) -> str:
    """Lowercase, replace non-alphanumerics with spaces, collapse whitespace."""
    if not text:
        return ""
    result = _NON_ALNUM.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", result).strip()


def extract_keywords(text: str) -> List[str]:
    """
    Tokenize text into matching keywords.

    Tokens of length <= 2 and stop words are dropped. Order is preserved
    and duplicates are removed.
    """
    seen = set()
    keywords = []
    for word in normalize_text(text).split():
        if len(word) <= 2 or word in STOP_WORDS or word in seen:
            continue
        seen.add(word)
        keywords.append(word)
    return keywords


def fuzzy_score(a: str, b: str) -> float:
    """
    Score the similarity of two normalized strings in [0, 1].

    - 1.0 when equal
    - 0.7 + 0.3 * (shorter / longer) when one contains the other
    - otherwise shared words / max(word count), 0 if either is empty
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    if a in b or b in a:
        shorter = min(len(a), len(b))
        longer = max(len(a), len(b))
        return 0.7 + (shorter / longer) * 0.3

    words_a = set(a.split())
    words_b = set(b.split())
    max_words = max(len(words_a), len(words_b))
    if max_words == 0:
        return 0.0
    return len(words_a & words_b) / max_words


def keyword_overlap(a: Iterable[str], b: Iterable[str]) -> int:
    """Count the keywords of ``a`` that also appear in ``b``."""
    set_b = set(b)
    return sum(1 for word in a if word in set_b)


def colors_match(a: str, b: str) -> bool:
    """True if both texts share a token from the colour/finish vocabulary."""
    tokens_a = set(normalize_text(a).split())
    tokens_b = set(normalize_text(b).split())
    return any(color in tokens_a and color in tokens_b for color in COLOR_WORDS)
