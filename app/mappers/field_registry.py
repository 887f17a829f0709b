"""
app/mappers/field_registry.py

Canonical field registry: labels, normalization rules, and header aliases.

Aliases cover English trade terms, vendor export headers (Rapnet, IDEX and
similar), Spanish/French/Portuguese equivalents, and Hebrew. They are
compared after header normalization, so punctuation and case do not matter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Mapping, Sequence

from app.domain.inventory import CanonicalField, MappingSet


class FieldRule(str, Enum):
    IDENTIFIER = "identifier"
    SHAPE = "shape"
    WEIGHT = "weight"
    COLOR = "color"
    CLARITY = "clarity"
    GRADE = "grade"
    FLUORESCENCE = "fluorescence"
    LAB = "lab"
    MONEY = "money"
    PERCENTAGE = "percentage"
    SIGNED_PERCENTAGE = "signed_percentage"
    DIMENSION = "dimension"
    MEASUREMENTS = "measurements"
    CULET = "culet"
    TEXT = "text"
    URL = "url"


@dataclass(frozen=True)
class FieldSpec:
    """
    Registry entry for one canonical field.
    """

    field: CanonicalField
    label: str
    rule: FieldRule
    aliases: tuple[str, ...] = ()
    max_length: int | None = None

    def all_aliases(self) -> tuple[str, ...]:
        """
        Field value first, then the configured aliases.
        """

        return (self.field.value, *self.aliases)


# Widths of the bounded text columns on inventory_diamonds.
COLUMN_MAX_LENGTHS: dict[CanonicalField, int] = {
    CanonicalField.STOCK_NUMBER: 120,
    CanonicalField.CERTIFICATE_NUMBER: 64,
    CanonicalField.MEASUREMENTS: 64,
    CanonicalField.GIRDLE: 64,
    CanonicalField.FANCY_COLOR: 64,
    CanonicalField.FANCY_INTENSITY: 64,
    CanonicalField.FANCY_OVERTONE: 64,
    CanonicalField.COUNTRY_LOCATION: 120,
    CanonicalField.CITY_LOCATION: 120,
    CanonicalField.AVAILABILITY: 64,
}


def _spec(field: CanonicalField, label: str, rule: FieldRule, *aliases: str) -> FieldSpec:
    return FieldSpec(
        field=field,
        label=label,
        rule=rule,
        aliases=tuple(aliases),
        max_length=COLUMN_MAX_LENGTHS.get(field),
    )


DEFAULT_FIELD_SPECS: tuple[FieldSpec, ...] = (
    _spec(
        CanonicalField.STOCK_NUMBER, "Stock number", FieldRule.IDENTIFIER,
        "stock", "stock number", "stock no", "stock #", "stock id", "stock num",
        "vendor stock number", "sku", "lot", "lot number", "item number",
        "inventory number", "reference", "numero de stock", "référence",
        "מלאי", "מספר מלאי",
    ),
    _spec(
        CanonicalField.SHAPE, "Shape", FieldRule.SHAPE,
        "shape", "shape name", "forma", "forme", "צורה",
    ),
    _spec(
        CanonicalField.WEIGHT, "Weight", FieldRule.WEIGHT,
        "weight", "carat", "carats", "carat weight", "weight ct", "cts",
        "peso", "poids", "quilates", "משקל",
    ),
    _spec(
        CanonicalField.COLOR, "Color", FieldRule.COLOR,
        "color", "colour", "color grade", "couleur", "צבע",
    ),
    _spec(
        CanonicalField.CLARITY, "Clarity", FieldRule.CLARITY,
        "clarity", "clar", "purity", "clarity grade", "claridad", "pureza", "pureté", "ניקיון",
    ),
    _spec(
        CanonicalField.CUT, "Cut", FieldRule.GRADE,
        "cut", "cut grade", "make", "corte", "taille", "lapidação", "חיתוך",
    ),
    _spec(
        CanonicalField.POLISH, "Polish", FieldRule.GRADE,
        "polish", "pol", "polishing", "pulido", "poli", "polimento", "ליטוש",
    ),
    _spec(
        CanonicalField.SYMMETRY, "Symmetry", FieldRule.GRADE,
        "symmetry", "sym", "symm", "simetria", "symétrie", "סימטריה",
    ),
    _spec(
        CanonicalField.FLUORESCENCE, "Fluorescence", FieldRule.FLUORESCENCE,
        "fluorescence", "fluor", "fluo", "flour", "fluorescence intensity",
        "fluor intensity", "fluorescencia", "fluorescência", "זרחן",
    ),
    _spec(
        CanonicalField.LAB, "Lab", FieldRule.LAB,
        "lab", "laboratory", "grading lab", "cert lab", "certificate lab",
        "certified by", "laboratorio", "laboratoire", "מעבדה",
    ),
    _spec(
        CanonicalField.CERTIFICATE_NUMBER, "Certificate number", FieldRule.IDENTIFIER,
        "certificate number", "certificate", "certificate no", "certificate #",
        "cert", "cert number", "cert no", "cert #", "certnumber", "report number",
        "report no", "report #", "gia number", "numero de certificado",
        "numéro de certificat", "מספר תעודה", "תעודה",
    ),
    _spec(
        CanonicalField.PRICE_PER_CARAT, "Price per carat", FieldRule.MONEY,
        "price per carat", "price", "price/crt", "price/ct", "price per ct", "ppc",
        "asking price", "precio por quilate", "precio", "prix par carat", "prix",
        "preço", "מחיר לקרט", "מחיר",
    ),
    _spec(
        CanonicalField.TOTAL_PRICE, "Total price", FieldRule.MONEY,
        "total price", "total", "amount", "total amount", "total value",
        "precio total", "prix total", "מחיר כולל",
    ),
    _spec(
        CanonicalField.RAPNET_DISCOUNT, "Rapnet discount", FieldRule.SIGNED_PERCENTAGE,
        "rapnet discount", "rap discount", "rap %", "rap", "discount", "discount %",
        "index discount", "rapnet discount %",
    ),
    _spec(
        CanonicalField.MEASUREMENTS, "Measurements", FieldRule.MEASUREMENTS,
        "measurements", "measurement", "meas", "dimensions", "medidas", "mesures", "מידות",
    ),
    _spec(
        CanonicalField.MEASUREMENT_LENGTH, "Length", FieldRule.DIMENSION,
        "length", "length mm", "largo", "longueur", "comprimento", "אורך",
    ),
    _spec(
        CanonicalField.MEASUREMENT_WIDTH, "Width", FieldRule.DIMENSION,
        "width", "width mm", "ancho", "largeur", "largura", "רוחב",
    ),
    _spec(
        CanonicalField.MEASUREMENT_DEPTH, "Depth (mm)", FieldRule.DIMENSION,
        "depth mm", "height", "height mm", "alto", "hauteur", "altura", "גובה",
    ),
    _spec(
        CanonicalField.RATIO, "Ratio", FieldRule.DIMENSION,
        "ratio", "l/w", "lw ratio", "length to width", "proporcion",
    ),
    _spec(
        CanonicalField.TABLE_PERCENTAGE, "Table %", FieldRule.PERCENTAGE,
        "table", "table %", "table percent", "table pct", "tabla", "table percentage",
    ),
    _spec(
        CanonicalField.DEPTH_PERCENTAGE, "Depth %", FieldRule.PERCENTAGE,
        "depth", "depth %", "depth percent", "depth pct", "total depth",
        "profundidad", "profondeur", "profundidade",
    ),
    _spec(
        CanonicalField.GIRDLE, "Girdle", FieldRule.TEXT,
        "girdle", "gridle", "girdle thickness", "girdle condition", "cintura", "rondiz",
    ),
    _spec(
        CanonicalField.CULET, "Culet", FieldRule.CULET,
        "culet", "culet size", "culet condition", "colette",
    ),
    _spec(
        CanonicalField.FANCY_COLOR, "Fancy color", FieldRule.TEXT,
        "fancy color", "fancy colour", "fancy color main", "fc",
    ),
    _spec(
        CanonicalField.FANCY_INTENSITY, "Fancy intensity", FieldRule.TEXT,
        "fancy intensity", "fancy color intensity", "intensity",
    ),
    _spec(
        CanonicalField.FANCY_OVERTONE, "Fancy overtone", FieldRule.TEXT,
        "fancy overtone", "fancy color overtone", "overtone",
    ),
    _spec(
        CanonicalField.CERTIFICATE_COMMENT, "Certificate comment", FieldRule.TEXT,
        "certificate comment", "certificate comments", "cert comment", "cert comments",
        "report comments", "key to symbols",
    ),
    _spec(
        CanonicalField.COMMENTS, "Comments", FieldRule.TEXT,
        "comments", "comment", "notes", "remarks", "member comments", "observaciones", "הערות",
    ),
    _spec(
        CanonicalField.IMAGE_URL, "Image URL", FieldRule.URL,
        "image", "image url", "image link", "picture", "pic", "photo", "imagen", "תמונה",
    ),
    _spec(
        CanonicalField.VIDEO_URL, "Video URL", FieldRule.URL,
        "video", "video url", "video link", "movie", "v360", "וידאו",
    ),
    _spec(
        CanonicalField.CERTIFICATE_URL, "Certificate URL", FieldRule.URL,
        "certificate url", "certificate link", "cert url", "cert link",
        "certificate file", "report link", "certificate pdf",
    ),
    _spec(
        CanonicalField.SARIN_FILE_URL, "Sarin file URL", FieldRule.URL,
        "sarin file", "sarin", "sarin link", "3d file", "diamond 3d",
    ),
    _spec(
        CanonicalField.COUNTRY_LOCATION, "Country", FieldRule.TEXT,
        "country", "country location", "location", "pais", "pays", "país", "מדינה",
    ),
    _spec(
        CanonicalField.CITY_LOCATION, "City", FieldRule.TEXT,
        "city", "city location", "ciudad", "ville", "cidade", "עיר",
    ),
    _spec(
        CanonicalField.AVAILABILITY, "Availability", FieldRule.TEXT,
        "availability", "status", "available", "disponibilidad", "disponibilité", "זמינות",
    ),
)


class FieldRegistry:
    """
    Ordered, immutable lookup of canonical field specs.

    Iteration order is the documented header-mapping tie-break order.
    """

    def __init__(
        self,
        specs: Sequence[FieldSpec] = DEFAULT_FIELD_SPECS,
        *,
        extra_aliases: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        merged: list[FieldSpec] = []
        for spec in specs:
            additions = tuple((extra_aliases or {}).get(spec.field.value, ()))
            if additions:
                spec = FieldSpec(
                    field=spec.field,
                    label=spec.label,
                    rule=spec.rule,
                    aliases=spec.aliases + additions,
                )
            merged.append(spec)
        self._specs = tuple(merged)
        self._by_field = {spec.field: spec for spec in self._specs}

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, field: object) -> bool:
        return field in self._by_field

    def get(self, field: CanonicalField) -> FieldSpec:
        return self._by_field[field]

    def label(self, field: CanonicalField) -> str:
        return self._by_field[field].label

    @property
    def fields(self) -> tuple[CanonicalField, ...]:
        return tuple(spec.field for spec in self._specs)

    def lookup_field(self, name: str) -> CanonicalField | None:
        """
        Resolve a canonical field from its value, e.g. ``"certificate_number"``.
        """

        candidate = name.strip().lower()
        for spec in self._specs:
            if spec.field.value == candidate:
                return spec.field
        return None


# ---------------------------------------------------------------------------
# Mandatory-field profiles
# ---------------------------------------------------------------------------

PROFILE_INGESTION = "ingestion"
PROFILE_STRICT = "strict"

MANDATORY_PROFILES: dict[str, tuple[CanonicalField, ...]] = {
    # Stock number joins this set only when the file declares a stock column.
    PROFILE_INGESTION: (
        CanonicalField.SHAPE,
        CanonicalField.WEIGHT,
        CanonicalField.COLOR,
        CanonicalField.CLARITY,
        CanonicalField.FLUORESCENCE,
        CanonicalField.CERTIFICATE_NUMBER,
    ),
    PROFILE_STRICT: (
        CanonicalField.SHAPE,
        CanonicalField.WEIGHT,
        CanonicalField.COLOR,
        CanonicalField.CLARITY,
        CanonicalField.STOCK_NUMBER,
        CanonicalField.LAB,
        CanonicalField.PRICE_PER_CARAT,
    ),
}


def resolve_mandatory_fields(profile: str, mapping_set: MappingSet) -> frozenset[CanonicalField]:
    """
    Mandatory fields for one file under the named profile.
    """

    try:
        fields = set(MANDATORY_PROFILES[profile])
    except KeyError as exc:
        raise ValueError(
            f"Unknown mandatory profile '{profile}'. Allowed: {sorted(MANDATORY_PROFILES)}."
        ) from exc

    if profile == PROFILE_INGESTION and CanonicalField.STOCK_NUMBER in mapping_set.mapped_fields:
        fields.add(CanonicalField.STOCK_NUMBER)
    return frozenset(fields)
