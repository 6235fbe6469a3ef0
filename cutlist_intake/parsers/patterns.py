"""Ordered regex ladders for parsing canonicalized part descriptions.

Every ladder is a list of (name, compiled pattern) pairs and is evaluated
first-match-wins, so ORDER MATTERS: later patterns overlap earlier ones.

Usage:
    from cutlist_intake.parsers.patterns import first_match, DIMENSION_PATTERNS

    name, match = first_match(DIMENSION_PATTERNS, "Side panel 720x560")
    # name == "NxN", match.group(1) == "720", match.group(2) == "560"
"""

import re
from typing import Dict, List, Optional, Pattern, Tuple


Ladder = List[Tuple[str, Pattern[str]]]

_NUM = r'(\d+(?:\.\d+)?)'
_UNIT = r'(?:\s*(?:mm|cm))?'


# ===========================================================================
# Dimensions (required)
# ===========================================================================

# Examples: "720x560", "720 x 560", "720mm x 560mm", "720 by 560",
#           "L:720 W:560", "length 720 width 560"
DIMENSION_PATTERNS: Ladder = [
    ("NxN", re.compile(_NUM + _UNIT + r'\s*[xX]\s*' + _NUM + _UNIT)),
    ("N by N", re.compile(_NUM + _UNIT + r'\s+by\s+' + _NUM + _UNIT, re.IGNORECASE)),
    ("L:N W:N", re.compile(r'\bL[:=\s]*' + _NUM + _UNIT + r'[\s,;]*W[:=\s]*' + _NUM + _UNIT,
                           re.IGNORECASE)),
    ("length N width N", re.compile(r'\blength[:=\s]*' + _NUM + _UNIT + r'[\s,;]*width[:=\s]*'
                                    + _NUM + _UNIT, re.IGNORECASE)),
]

# "2x 720x560": a leading count in front of a complete dimension pair
LEADING_QUANTITY = re.compile(r'^\s*(\d+)\s*[xX]\s+(?=\d)')


# ===========================================================================
# Quantity (optional)
# ===========================================================================

# Evaluated on the text with the dimension span already removed.
# Examples: "qty 2", "quantity=2", "x2", "2 pcs", "2x ...", "q2", "(2)", "times 2"
QUANTITY_PATTERNS: Ladder = [
    ("qty N", re.compile(r'\b(?:qty|quantity)[:=\s]*(\d+)', re.IGNORECASE)),
    ("xN", re.compile(r'(?:^|\s)[xX*]\s*(\d+)\b(?!\s*(?:mm|cm)\b)')),
    ("N pcs", re.compile(r'\b(\d+)\s*(?:pcs?|pieces?|off)\b', re.IGNORECASE)),
    ("Nx", re.compile(r'^\s*(\d+)\s*[xX]\s')),
    ("qN", re.compile(r'\bq(\d+)\b', re.IGNORECASE)),
    ("(N)", re.compile(r'[(\[]\s*(\d+)\s*[)\]]\s*$')),
    ("times N", re.compile(r'\btimes\s*(\d+)', re.IGNORECASE)),
]


# ===========================================================================
# Grain / rotation
# ===========================================================================

# Grain constrained: force grain="along_L", no rotation
GRAIN_PATTERNS: Ladder = [
    ("grain along length", re.compile(r'\bgrain(?:ed)?\s*(?:along\s*)?(?:the\s*)?(?:length|L)\b',
                                      re.IGNORECASE)),
    ("length grain", re.compile(r'\blength\s*grain\b', re.IGNORECASE)),
    ("along grain", re.compile(r'\balong\s*(?:the\s*)?grain\b', re.IGNORECASE)),
    ("with grain", re.compile(r'\bwith\s*(?:the\s*)?grain\b', re.IGNORECASE)),
    ("GL", re.compile(r'\bGL\b')),
    ("GW", re.compile(r'\bGW\b')),
    ("no rotation", re.compile(r"\b(?:no|don'?t)\s*rotat(?:e|ion)\b", re.IGNORECASE)),
    ("rotation off", re.compile(r'\brotation\s*(?:off|no|false)\b', re.IGNORECASE)),
    ("fixed", re.compile(r'\bfixed\b', re.IGNORECASE)),
    ("locked", re.compile(r'\blocked\b', re.IGNORECASE)),
]

# Generic grain mention, weaker evidence than the explicit forms above
GRAIN_GENERIC = re.compile(r'\bgrain(?:ed)?\b', re.IGNORECASE)

# Explicitly unconstrained: force grain="none", rotation allowed
NO_GRAIN_PATTERNS: Ladder = [
    ("no grain", re.compile(r'\bno\s*grain\b', re.IGNORECASE)),
    ("can rotate", re.compile(r'\bcan\s*rotate\b', re.IGNORECASE)),
    ("rotate ok", re.compile(r'\brotat(?:e|ion)\s*(?:ok|yes|true|allowed)\b', re.IGNORECASE)),
    ("free", re.compile(r'\bfree\b', re.IGNORECASE)),
]


# ===========================================================================
# Label
# ===========================================================================

LABEL_PATTERNS: Ladder = [
    # "Side panel: 720x560", "Shelf - 600x300"
    ("leading words", re.compile(r'^([A-Za-z][A-Za-z\s]{1,30}?)\s*[:,-]+\s*(?=\d)')),
    # Same without a separator: "Shelf 600x300"
    ("leading words bare", re.compile(r'^([A-Za-z][A-Za-z\s]{1,30}?)\s+(?=\d)')),
    # "\"Top shelf\" 600x300"
    ("quoted", re.compile(r'"([^"]+)"|\'([^\']+)\'')),
]


# ===========================================================================
# Material hints (all matches collected, in text order)
# ===========================================================================

MATERIAL_HINT_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    ("white", re.compile(r'\bwhite\b', re.IGNORECASE)),
    ("black", re.compile(r'\bblack\b', re.IGNORECASE)),
    ("grey", re.compile(r'\bgr[ae]y\b', re.IGNORECASE)),
    ("oak", re.compile(r'\boak\b', re.IGNORECASE)),
    ("walnut", re.compile(r'\bwalnut\b', re.IGNORECASE)),
    ("maple", re.compile(r'\bmaple\b', re.IGNORECASE)),
    ("birch", re.compile(r'\bbirch\b', re.IGNORECASE)),
    ("cherry", re.compile(r'\bcherry\b', re.IGNORECASE)),
    ("melamine", re.compile(r'\b(?:melamine|mel)\b', re.IGNORECASE)),
    ("MDF", re.compile(r'\bmdf\b', re.IGNORECASE)),
    ("HDF", re.compile(r'\bhdf\b', re.IGNORECASE)),
    ("PLY", re.compile(r'\bply(?:wood)?\b', re.IGNORECASE)),
    ("PB", re.compile(r'\b(?:pb|particle\s*board|chipboard)\b', re.IGNORECASE)),
]

# Board thickness used as a material hint: "18mm" -> "18mm"
THICKNESS_HINT = re.compile(r'\b(\d{1,2}(?:\.\d+)?)\s*mm\b', re.IGNORECASE)


# ===========================================================================
# Thickness
# ===========================================================================

# group(2) is "mm" when the unit is written; bare values are in the active units
THICKNESS_PATTERNS: Ladder = [
    ("tN", re.compile(r'\bt[:=\s]*(\d+(?:\.\d+)?)\s*(mm)?\b', re.IGNORECASE)),
    ("thk N", re.compile(r'\b(?:thk|thick(?:ness)?)[:=\s]*(\d+(?:\.\d+)?)\s*(mm)?', re.IGNORECASE)),
    ("N mm", re.compile(r'\b(\d+(?:\.\d+)?)\s*(mm)\b', re.IGNORECASE)),
]


# ===========================================================================
# Edge banding
# ===========================================================================

# "L1", "W2", also run together: "L1L2", "L1W1W2"
EDGE_TOKEN = re.compile(r'(?<![A-Za-z0-9])((?:[LW][12])+)(?![A-Za-z0-9])', re.IGNORECASE)
EDGE_PAIR = re.compile(r'[LW][12]', re.IGNORECASE)

EDGE_ALL = re.compile(r'\b(?:all\s*(?:edges?|sides?)|(?:4|four)\s*(?:edges?|sides?))\b',
                      re.IGNORECASE)
EDGE_LONG = re.compile(r'\blong\s*(?:edges?|sides?)\b', re.IGNORECASE)
EDGE_SHORT = re.compile(r'\bshort\s*(?:edges?|sides?)\b', re.IGNORECASE)

# "EB: all", "edge: 2L", "edging=L1,W1"
EDGE_PREFIX = re.compile(r'\b(?:eb|edges?|edging)\s*[:=]\s*([A-Za-z0-9 ,/+&]+)', re.IGNORECASE)

# Bare shop shortcodes: "2L2W", "2L", "L2W" (one long + both short), "4S"
EDGE_CODES: Dict[str, Tuple[str, ...]] = {
    "2L2W": ("L1", "L2", "W1", "W2"),
    "4S": ("L1", "L2", "W1", "W2"),
    "2L1W": ("L1", "L2", "W1"),
    "2LW": ("L1", "L2", "W1"),
    "L2W1": ("L1", "W1", "W2"),
    "L2W": ("L1", "W1", "W2"),
    "2L": ("L1", "L2"),
    "2W": ("W1", "W2"),
}
EDGE_CODE = re.compile(r'(?<![A-Za-z0-9])(2L2W|4S|2L1W|2LW|L2W1|L2W|2L|2W)(?![A-Za-z0-9])',
                       re.IGNORECASE)

# Upper-case only: lower-case "all" is ordinary prose
EDGE_ALL_CODE = re.compile(r'\bALL\b')


# ===========================================================================
# Grooves, drilling and CNC (matched spans are removed before other stages)
# ===========================================================================

# G[edge]-[width]-[offset]: "GW2-4-10", "GL-4-12", "G-ALL-4-10", "G-4-10"
GROOVE_CODE = re.compile(
    r'(?<![A-Za-z0-9])G(-?ALL|[LW][12]?)?-(\d+(?:\.\d+)?)-(\d+(?:\.\d+)?)(?![A-Za-z0-9])',
    re.IGNORECASE)

# "groove", "groove: L1", "dado all"; default width/offset from config
GROOVE_WORD = re.compile(r'\b(?:grooves?|grooved|grv|dado)\b(?:\s*[:=]?\s*(L[12]|W[12]|all)\b)?',
                         re.IGNORECASE)

# The pattern id is the "id" group when present, else the whole match
HOLE_PATTERNS: Ladder = [
    ("hinge", re.compile(r'(?<![A-Za-z0-9])H\d-\d+\b', re.IGNORECASE)),
    ("handle", re.compile(r'\bHD-CC\d+\b', re.IGNORECASE)),
    ("shelf pins", re.compile(r'\bSP-\w+\b', re.IGNORECASE)),
    ("knob", re.compile(r'\bKN-\w+\b', re.IGNORECASE)),
    ("system holes", re.compile(r'\b\d+\s*mm\s*(?:system|holes)\b', re.IGNORECASE)),
    ("hinge holes", re.compile(r'\bhinges?\s*[:=]\s*(?P<id>\w+)', re.IGNORECASE)),
    ("holes", re.compile(r'\b(?:holes|drill(?:ing)?)\s*[:=]\s*(?P<id>\w+)', re.IGNORECASE)),
]

ROUTING_PATTERNS: Ladder = [
    ("cutout", re.compile(r'\bCUTOUT-[A-Z]+-\d+x\d+\b', re.IGNORECASE)),
    ("pocket", re.compile(r'\bPOCKET-\d+x\d+x\d+\b', re.IGNORECASE)),
    ("radius", re.compile(r'\bRADIUS-\d+(?:-\w+)?\b', re.IGNORECASE)),
    ("cnc", re.compile(r'\b(?:cnc|routing)\s*[:=]\s*(?P<id>\w+)', re.IGNORECASE)),
]


# ===========================================================================
# Header and non-data lines (text batches)
# ===========================================================================

HEADER_KEYWORDS = re.compile(
    r'\b(length|width|height|qty|quantity|pcs|pieces|description|component|part|'
    r'label|name|edge|edging|groove|cnc|thickness|material|grain)\b',
    re.IGNORECASE,
)

SKIP_LINE_PATTERNS: Ladder = [
    ("bare header word", re.compile(
        r'^(?:no|#|item|component|description|part|label|length|width|qty|edge|total|sum|count)'
        r'\s*:?\s*$', re.IGNORECASE)),
    ("bare number", re.compile(r'^\d+\s*$')),
    ("separator", re.compile(r'^[-=_*~\s]+$')),
    ("document field", re.compile(
        r'^(?:client|customer|job|date|board|material|edging|updated|revision|total)\b',
        re.IGNORECASE)),
]


# ===========================================================================
# Tabular column headers (auto-detected mapping, first match per field)
# ===========================================================================

COLUMN_HEADER_PATTERNS: List[Tuple[str, List[Pattern[str]]]] = [
    ("label", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:part\s*)?(?:name|label|description|desc)$', r'^part$', r'^item$', r'^component$')]),
    ("qty", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:qty|quantity|count|pcs|pieces|no\.?\s*off|num)$', r'^q$')]),
    ("L", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:length|len|long|l)(?:\s*\(?\s*mm\s*\)?)?$', r'^height$', r'^h$')]),
    ("W", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:width|wid|w|breadth|b)(?:\s*\(?\s*mm\s*\)?)?$',)]),
    ("thickness_mm", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:thickness|thick|thk|t)(?:\s*\(?\s*mm\s*\)?)?$',)]),
    ("material", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:material|mat|board|substrate|sheet)$', r'^material\s*(?:name|code|id)$')]),
    ("grain", [re.compile(p, re.IGNORECASE) for p in (
        r'^grain(?:\s*direction)?$', r'^gl$')]),
    ("rotation", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:rotat(?:e|ion)|allow\s*rotation|can\s*rotate)$',)]),
    ("group_id", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:group|cabinet|assembly|unit)(?:\s*(?:id|no\.?))?$',)]),
    ("notes", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:notes?|remarks?|comments?)$',)]),
    ("edging", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:edging|edge\s*banding|edges|eb)$',)]),
    ("edging_L1", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:edge\s*)?l1$', r'^(?:long\s*edge|length\s*edge)\s*1$')]),
    ("edging_L2", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:edge\s*)?l2$', r'^(?:long\s*edge|length\s*edge)\s*2$')]),
    ("edging_W1", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:edge\s*)?w1$', r'^(?:short\s*edge|width\s*edge)\s*1$')]),
    ("edging_W2", [re.compile(p, re.IGNORECASE) for p in (
        r'^(?:edge\s*)?w2$', r'^(?:short\s*edge|width\s*edge)\s*2$')]),
]


# ===========================================================================
# Workbook sheet selection
# ===========================================================================

PARTS_SHEET_NAME = re.compile(r'\b(?:parts?|cut\s*-?\s*lists?|cutting|bom|bill\s*of\s*materials?)\b',
                              re.IGNORECASE)
NON_PARTS_SHEET_NAME = re.compile(r'\b(?:instructions?|notes?|reference|guide|readme|help)\b',
                                  re.IGNORECASE)

# One entry per header family; each family counts once per sheet
SHEET_HEADER_PATTERNS: List[Pattern[str]] = [
    re.compile(r'\b(?:length|len|l)\b', re.IGNORECASE),
    re.compile(r'\b(?:width|wid|w)\b', re.IGNORECASE),
    re.compile(r'\b(?:qty|quantity|pcs|count)\b', re.IGNORECASE),
    re.compile(r'\b(?:material|board|mat)\b', re.IGNORECASE),
]


# ===========================================================================
# Helpers
# ===========================================================================

def first_match(ladder: Ladder, text: str) -> Tuple[Optional[str], Optional[re.Match]]:
    """
    Evaluate a ladder in order and return the first hit.

    Args:
        ladder: Ordered (name, pattern) pairs
        text: Canonicalized text to search

    Returns:
        (pattern name, match) for the first pattern that matches,
        or (None, None) when nothing matches
    """
    for name, pattern in ladder:
        match = pattern.search(text)
        if match:
            return name, match
    return None, None
