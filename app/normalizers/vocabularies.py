"""
app/normalizers/vocabularies.py

Controlled vocabularies and alias tables for gemstone grading attributes.

Alias keys are compact uppercase forms (letters and digits only), so
"Very Good", "very-good" and "VERYGOOD" all resolve the same way.
"""

from __future__ import annotations


def compact_key(value: str) -> str:
    return "".join(ch for ch in value.strip().upper() if ch.isalnum())


def _alias_table(groups: dict[str, tuple[str, ...]]) -> dict[str, str]:
    table: dict[str, str] = {}
    for canonical, aliases in groups.items():
        table[compact_key(canonical)] = canonical
        for alias in aliases:
            table[compact_key(alias)] = canonical
    return table


# ---------------------------------------------------------------------------
# Shape
# ---------------------------------------------------------------------------

SHAPES: tuple[str, ...] = (
    "round brilliant",
    "princess",
    "cushion",
    "oval",
    "emerald",
    "pear",
    "marquise",
    "asscher",
    "radiant",
    "heart",
    "baguette",
    "old european",
    "rose",
    "tapered baguette",
    "bullet",
    "kite",
    "half moons",
    "trillion",
    "horse head",
    "shield",
    "hexagonal",
    "old mine",
    "rose head",
)

DEFAULT_SHAPE = "round brilliant"

SHAPE_ALIASES: dict[str, str] = _alias_table(
    {
        "round brilliant": (
            "RB", "BR", "RD", "RND", "ROUND", "BRILLIANT", "ROUND BRILLIANT CUT",
            "עגול", "עגולות", "עגולים",
        ),
        "princess": ("PR", "PC", "PRIN", "PRINC", "פרינסס"),
        "cushion": (
            "CU", "CB", "CMB", "CUS", "CUSH", "CUSHION BRILLIANT", "CUSHION MODIFIED",
            "קושן", "קושנים",
        ),
        "oval": ("OV", "OVL", "אובל", "אובלים"),
        "emerald": ("EM", "EC", "EMR", "EMER", "SQUARE EMERALD", "אמרלד", "אמרלדים"),
        "pear": ("PS", "PE", "PEAR SHAPE", "PEARSHAPE", "טיפה", "טיפות"),
        "marquise": ("MQ", "MAR", "MARQ", "MC", "מרקיזה", "מרקיזות"),
        "asscher": ("AS", "AC", "ASSH", "SQUARE EMERALD ASSCHER"),
        "radiant": ("RA", "RAD", "RC", "SQUARE RADIANT", "רדיאנט", "רדיאנים"),
        "heart": ("HS", "HT", "HC", "HRT", "לב", "לבבות"),
        "baguette": ("BG", "BAG", "BAGUETTE CUT"),
        "old european": ("OEC", "OE", "EUROPEAN", "OLD EUROPEAN CUT"),
        "rose": ("RS", "ROSE CUT"),
        "tapered baguette": ("TB", "TBC", "TBAG", "TAPERED", "TAPER"),
        "bullet": ("BU", "BUC", "BUL"),
        "kite": ("KC", "KI"),
        "half moons": ("HM", "HMC", "HALF MOON", "HALFMOON"),
        "trillion": ("TR", "TC", "TRI", "TRIL", "TRILLIANT", "TRILLIANT CUT", "משולש", "משולשת"),
        "horse head": ("HH", "HORSEHEAD"),
        "shield": ("SC", "SH", "SHD"),
        "hexagonal": ("HX", "HXC", "HEX", "HEXAGON"),
        "old mine": ("OM", "OMC", "OLD MINE CUT"),
        "rose head": ("RH", "ROSEHEAD"),
    }
)


# ---------------------------------------------------------------------------
# Color and clarity
# ---------------------------------------------------------------------------

WHITE_COLORS: tuple[str, ...] = tuple("DEFGHIJKLMN")
LOW_COLORS: tuple[str, ...] = tuple("OPQRSTUVWXYZ")
COLORS: frozenset[str] = frozenset(WHITE_COLORS + LOW_COLORS)

CLARITIES: tuple[str, ...] = (
    "FL", "IF", "VVS1", "VVS2", "VS1", "VS2", "SI1", "SI2", "SI3", "I1", "I2", "I3",
)

CLARITY_ALIASES: dict[str, str] = _alias_table(
    {
        "FL": ("FLAWLESS",),
        "IF": ("INTERNALLY FLAWLESS", "LC"),
        "I1": ("P1", "PK1"),
        "I2": ("P2", "PK2"),
        "I3": ("P3", "PK3"),
        **{grade: () for grade in ("VVS1", "VVS2", "VS1", "VS2", "SI1", "SI2", "SI3")},
    }
)


# ---------------------------------------------------------------------------
# Cut, polish, symmetry
# ---------------------------------------------------------------------------

GRADES: tuple[str, ...] = ("EXCELLENT", "VERY GOOD", "GOOD", "FAIR", "POOR")
DEFAULT_GRADE = "EXCELLENT"

GRADE_ALIASES: dict[str, str] = _alias_table(
    {
        "EXCELLENT": ("EX", "EXC", "EXCEL", "X", "ID", "IDEAL", "8X", "3X"),
        "VERY GOOD": ("VG", "VGOOD", "V GOOD", "V.G."),
        "GOOD": ("G", "GD"),
        "FAIR": ("F", "FR"),
        "POOR": ("P", "PR", "PO"),
    }
)


# ---------------------------------------------------------------------------
# Fluorescence
# ---------------------------------------------------------------------------

FLUORESCENCE_GRADES: tuple[str, ...] = ("NONE", "FAINT", "MEDIUM", "STRONG", "VERY STRONG")
DEFAULT_FLUORESCENCE = "NONE"

FLUORESCENCE_ALIASES: dict[str, str] = _alias_table(
    {
        "NONE": ("N", "NON", "NO", "NIL", "NEGLIGIBLE", "INERT"),
        "FAINT": ("F", "FNT", "FA", "FT", "SL", "SLT", "SLIGHT", "VSL", "VERY SLIGHT", "WEAK"),
        "MEDIUM": ("M", "MED", "MD", "MODERATE"),
        "STRONG": ("S", "ST", "STG", "STR", "STRG"),
        "VERY STRONG": ("VS", "VST", "VSTG", "VSTR", "VERYSTRONG", "VERY STR"),
    }
)

# "Medium Blue", "Strong Yellow" and similar carry the glow color as a suffix.
FLUORESCENCE_COLOR_SUFFIXES: tuple[str, ...] = ("BLUE", "YELLOW", "WHITE", "ORANGE", "GREEN", "BL", "YL")


# ---------------------------------------------------------------------------
# Culet
# ---------------------------------------------------------------------------

CULETS: tuple[str, ...] = (
    "NONE",
    "POINTED",
    "VERY SMALL",
    "SMALL",
    "MEDIUM",
    "SLIGHTLY LARGE",
    "LARGE",
    "VERY LARGE",
    "EXTREMELY LARGE",
)
DEFAULT_CULET = "NONE"

CULET_ALIASES: dict[str, str] = _alias_table(
    {
        "NONE": ("N", "NON", "NO"),
        "POINTED": ("PNT", "PT", "P"),
        "VERY SMALL": ("VS", "VSM", "V SMALL"),
        "SMALL": ("S", "SM"),
        "MEDIUM": ("M", "MED"),
        "SLIGHTLY LARGE": ("SL", "SLG", "SLIGHT LARGE"),
        "LARGE": ("L", "LG"),
        "VERY LARGE": ("VL", "VLG"),
        "EXTREMELY LARGE": ("EL", "XL", "EXL"),
    }
)


# ---------------------------------------------------------------------------
# Grading laboratory
# ---------------------------------------------------------------------------

LABS: tuple[str, ...] = ("GIA", "AGS", "GCAL", "EGL", "IGI", "HRD", "GSI", "NONE")

LAB_ALIASES: dict[str, str] = _alias_table(
    {
        "GIA": ("GEMOLOGICAL INSTITUTE OF AMERICA",),
        "AGS": ("AGSL",),
        "EGL": ("EGL USA", "EGL INTERNATIONAL"),
        "NONE": ("NO LAB", "NA", "N/A", "NON CERT", "NONCERTIFIED", "UNCERTIFIED"),
        **{lab: () for lab in ("GCAL", "IGI", "HRD", "GSI")},
    }
)


# ---------------------------------------------------------------------------
# Persistence defaults
# ---------------------------------------------------------------------------

DEFAULT_GIRDLE = "MEDIUM"
DEFAULT_TABLE_PERCENTAGE = 60.0
DEFAULT_DEPTH_PERCENTAGE = 62.0
SYNTHETIC_STOCK_PREFIX = "AUTO"
