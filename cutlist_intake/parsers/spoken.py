"""Number words in voice transcripts.

Dictated cut lists arrive as text like "side panel seven twenty by five sixty,
two pieces". words_to_digits() rewrites each run of number words as digits
so the regular text patterns apply: "side panel 720 by 560, 2 pieces".
Punctuation ends a run.

Spoken shorthand is supported: a single digit followed by a tens word reads
as hundreds ("seven twenty" -> 720, "five sixty five" -> 565).
"""

import re
from typing import List


NUMBER_WORDS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4,
    "five": 5, "six": 6, "seven": 7, "eight": 8, "nine": 9,
    "ten": 10, "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
    "hundred": 100, "thousand": 1000,
}

_WORD = r'(?:' + '|'.join(sorted(NUMBER_WORDS, key=len, reverse=True)) + r')'
_RUN = re.compile(r'\b' + _WORD + r'(?:(?:[\s-]+and)?[\s-]+' + _WORD + r')*\b', re.IGNORECASE)
_SPLIT = re.compile(r'[\s-]+')


def _run_value(words: List[str]) -> int:
    total = 0
    current = 0
    for word in words:
        value = NUMBER_WORDS[word]
        if value == 100:
            current = (current or 1) * 100
        elif value == 1000:
            total += (current or 1) * 1000
            current = 0
        elif 0 < current < 10 and 10 <= value < 100:
            current = current * 100 + value
        else:
            current += value
    return total + current


def spoken_to_number(text: str) -> int:
    """Convert one run of number words to an integer ("twelve hundred" -> 1200)."""
    words = [w for w in _SPLIT.split(text.lower()) if w and w != "and"]
    return _run_value(words)


def words_to_digits(text: str) -> str:
    """Replace every run of number words in ``text`` with its digits."""
    if not text:
        return ""
    return _RUN.sub(lambda m: str(spoken_to_number(m.group(0))), text)
