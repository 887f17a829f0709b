from __future__ import annotations

import unittest

import pytest

from app.domain.errors import HeaderOverrideError
from app.domain.inventory import CanonicalField
from app.mappers.field_registry import FieldRegistry, FieldRule, FieldSpec
from app.mappers.header_mapper import (
    CONTAINMENT_WEIGHT,
    STRATEGY_EXACT,
    STRATEGY_FUZZY,
    STRATEGY_OVERRIDE,
    STRATEGY_UNMAPPED,
    HeaderMapper,
    normalize_header,
    score_similarity,
)


class TestScoreSimilarity:
    def test_exact_match_after_normalization(self) -> None:
        assert score_similarity("Stock #", "stock") == 1.0
        assert score_similarity("CARAT", "carat") == 1.0

    def test_containment_scales_with_length_ratio(self) -> None:
        assert score_similarity("Carat Wt", "carat") == pytest.approx(5 / 7 * CONTAINMENT_WEIGHT)

    def test_no_resemblance_scores_zero(self) -> None:
        assert score_similarity("XYZ123", "carat") == 0.0

    def test_empty_inputs_score_zero(self) -> None:
        assert score_similarity("", "carat") == 0.0
        assert score_similarity(" # ", "carat") == 0.0

    def test_scores_stay_in_unit_interval(self) -> None:
        for header in ("Carat", "carats weight", "Colr", "Cl", "Fluorescence Intensity"):
            for alias in ("carat", "color", "clarity", "fluorescence"):
                assert 0.0 <= score_similarity(header, alias) <= 1.0

    def test_normalize_header_keeps_letters_and_digits_only(self) -> None:
        assert normalize_header("  Price/Ct ($) ") == "pricect"
        assert normalize_header("מספר תעודה") == "מספרתעודה"


class TestHeaderMapper(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = HeaderMapper()

    def test_carat_maps_to_weight_with_high_confidence(self) -> None:
        mapping_set = self.mapper.map_headers(["Carat"])

        mapping = mapping_set.mappings[0]
        self.assertEqual(mapping.field, CanonicalField.WEIGHT)
        self.assertGreaterEqual(mapping.confidence, 0.7)

    def test_unrelated_header_is_unmapped_with_zero_confidence(self) -> None:
        mapping_set = self.mapper.map_headers(["XYZ123"])

        mapping = mapping_set.mappings[0]
        self.assertIsNone(mapping.field)
        self.assertEqual(mapping.confidence, 0.0)
        self.assertEqual(mapping.strategy, STRATEGY_UNMAPPED)
        self.assertEqual(mapping_set.unmapped_headers, ("XYZ123",))

    def test_vendor_export_headers(self) -> None:
        headers = ["Stock #", "Shape", "Carat", "Color", "Clarity", "Fluor", "Cert #", "Price", "Lab"]

        sources = self.mapper.map_headers(headers).field_sources

        self.assertEqual(sources[CanonicalField.STOCK_NUMBER], "Stock #")
        self.assertEqual(sources[CanonicalField.WEIGHT], "Carat")
        self.assertEqual(sources[CanonicalField.FLUORESCENCE], "Fluor")
        self.assertEqual(sources[CanonicalField.CERTIFICATE_NUMBER], "Cert #")
        self.assertEqual(sources[CanonicalField.PRICE_PER_CARAT], "Price")
        self.assertEqual(sources[CanonicalField.LAB], "Lab")

    def test_multilingual_aliases(self) -> None:
        sources = self.mapper.map_headers(["צורה", "משקל", "Couleur", "Pureza"]).field_sources

        self.assertEqual(sources[CanonicalField.SHAPE], "צורה")
        self.assertEqual(sources[CanonicalField.WEIGHT], "משקל")
        self.assertEqual(sources[CanonicalField.COLOR], "Couleur")
        self.assertEqual(sources[CanonicalField.CLARITY], "Pureza")

    def test_mapping_is_deterministic(self) -> None:
        headers = ["Stock Num", "Shp", "Carat Wt", "Colour", "Polish Grade", "Unknown", "Depth %"]

        first = self.mapper.map_headers(headers)
        second = HeaderMapper().map_headers(headers)

        self.assertEqual(first.mappings, second.mappings)

    def test_exact_and_fuzzy_strategies(self) -> None:
        mappings = self.mapper.map_headers(["Color", "Carat Wt"]).mappings

        self.assertEqual(mappings[0].strategy, STRATEGY_EXACT)
        self.assertEqual(mappings[1].strategy, STRATEGY_FUZZY)
        self.assertEqual(mappings[1].field, CanonicalField.WEIGHT)

    def test_blank_header_never_maps(self) -> None:
        mapping = self.mapper.map_headers([""]).mappings[0]

        self.assertIsNone(mapping.field)

    def test_duplicate_field_keeps_first_most_confident_header(self) -> None:
        mapping_set = self.mapper.map_headers(["Price", "Price per carat"])

        self.assertEqual(mapping_set.field_sources[CanonicalField.PRICE_PER_CARAT], "Price")

    def test_threshold_rejects_weak_matches(self) -> None:
        strict = HeaderMapper(threshold=0.95)

        mapping = strict.map_headers(["Carat Wt"]).mappings[0]

        self.assertIsNone(mapping.field)

    def test_ties_go_to_earlier_registry_field(self) -> None:
        registry = FieldRegistry(
            (
                FieldSpec(CanonicalField.COLOR, "Color", FieldRule.COLOR, ("tones",)),
                FieldSpec(CanonicalField.CLARITY, "Clarity", FieldRule.CLARITY, ("tones",)),
            )
        )

        field, score = HeaderMapper(registry).best_match("tone")

        self.assertEqual(field, CanonicalField.COLOR)
        self.assertAlmostEqual(score, 4 / 5 * CONTAINMENT_WEIGHT)

    def test_extra_aliases_extend_registry(self) -> None:
        registry = FieldRegistry(extra_aliases={"weight": ["gewicht"]})

        mapping = HeaderMapper(registry).map_headers(["Gewicht"]).mappings[0]

        self.assertEqual(mapping.field, CanonicalField.WEIGHT)
        self.assertEqual(mapping.confidence, 1.0)


class TestHeaderOverrides(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = HeaderMapper()

    def test_override_takes_precedence(self) -> None:
        mapping_set = self.mapper.map_headers(
            ["Col A", "Shape"],
            overrides={"Col A": "weight"},
        )

        mapping = mapping_set.mappings[0]
        self.assertEqual(mapping.field, CanonicalField.WEIGHT)
        self.assertEqual(mapping.confidence, 1.0)
        self.assertEqual(mapping.strategy, STRATEGY_OVERRIDE)

    def test_override_matches_header_loosely(self) -> None:
        mapping_set = self.mapper.map_headers(["Col A"], overrides={"col-a": "certificate_number"})

        self.assertEqual(mapping_set.field_sources[CanonicalField.CERTIFICATE_NUMBER], "Col A")

    def test_unknown_field_is_rejected(self) -> None:
        with self.assertRaises(HeaderOverrideError) as ctx:
            self.mapper.map_headers(["Col A"], overrides={"Col A": "carat_size"})

        codes = {detail["code"] for detail in ctx.exception.details}
        self.assertIn("invalid_override_field", codes)

    def test_missing_source_column_is_rejected(self) -> None:
        with self.assertRaises(HeaderOverrideError) as ctx:
            self.mapper.map_headers(["Shape"], overrides={"Weight Column": "weight"})

        self.assertEqual(ctx.exception.details[0]["code"], "override_source_not_found")
        self.assertEqual(ctx.exception.to_dict()["code"], "invalid_column_mapping")


if __name__ == "__main__":
    unittest.main()
