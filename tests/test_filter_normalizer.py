"""Tests for query-parameter normalization and the non-key filter expression."""

import pytest

from conftest import evaluate_condition
from models.filters import FilterSet
from services.filter_normalizer import (
    build_filter_expression,
    build_filter_set,
    matches_key_filters,
    normalize_crop,
    normalize_farmer,
    parse_limit,
    parse_tristate,
)


class TestLimit:
    @pytest.mark.parametrize(
        "raw, expected",
        [(None, 50), ("", 50), ("abc", 50), ("10", 10), (" 25 ", 25), ("0", 1), ("-5", 1), ("500", 200), ("200", 200)],
    )
    def test_parse_limit(self, raw, expected):
        assert parse_limit(raw) == expected


class TestCropAndFarmer:
    @pytest.mark.parametrize("raw", ["ALL", "all ", "", "   ", None, "All"])
    def test_all_or_blank_means_unfiltered(self, raw):
        assert normalize_crop(raw) is None
        assert normalize_farmer(raw) is None

    def test_crop_is_trimmed_and_lowercased(self):
        assert normalize_crop("  Wheat ") == "wheat"

    def test_crop_normalization_is_idempotent(self):
        once = normalize_crop(" Maize ")
        assert normalize_crop(once) == once

    def test_farmer_keeps_case(self):
        assert normalize_farmer("  Asha Devi ") == "Asha Devi"


class TestTristate:
    @pytest.mark.parametrize("raw, expected", [("true", True), ("false", False)])
    def test_literals_select_a_value(self, raw, expected):
        assert parse_tristate(raw) is expected

    @pytest.mark.parametrize("raw", [None, "", "TRUE", "yes", "1", "False"])
    def test_anything_else_is_unfiltered(self, raw):
        assert parse_tristate(raw) is None


class TestFilterExpression:
    def test_no_flags_gives_no_expression(self):
        assert build_filter_expression(FilterSet(crop="wheat", farmer="Asha")) is None

    def test_crop_and_farmer_never_enter_the_expression(self):
        filters = build_filter_set(crop="wheat", farmer="Asha", pest_detected="true")
        expression = build_filter_expression(filters)
        assert evaluate_condition(expression, {"pestPresent": True, "cropName": "rice", "farmerName": "Bala"})

    def test_gold_false_matches_absent_attribute(self):
        expression = build_filter_expression(FilterSet(gold_standard=False))
        assert evaluate_condition(expression, {"id": "a"})
        assert evaluate_condition(expression, {"id": "b", "isGoldStandard": False})
        assert not evaluate_condition(expression, {"id": "c", "isGoldStandard": True})

    def test_gold_true_does_not_match_absent_attribute(self):
        expression = build_filter_expression(FilterSet(gold_standard=True))
        assert not evaluate_condition(expression, {"id": "a"})
        assert evaluate_condition(expression, {"id": "b", "isGoldStandard": True})

    def test_flags_are_combined_with_and(self):
        expression = build_filter_expression(
            FilterSet(pest_detected=True, disease_detected=False, gold_standard=False)
        )
        assert evaluate_condition(expression, {"pestPresent": True, "diseasePresent": False})
        assert not evaluate_condition(expression, {"pestPresent": True, "diseasePresent": True})
        assert not evaluate_condition(expression, {"pestPresent": False, "diseasePresent": False})


class TestKeyFilters:
    def test_crop_comparison_ignores_stored_case(self):
        assert matches_key_filters({"cropName": " Wheat"}, FilterSet(crop="wheat"))

    def test_farmer_comparison_is_case_sensitive(self):
        filters = FilterSet(farmer="Asha")
        assert matches_key_filters({"farmerName": "Asha "}, filters)
        assert not matches_key_filters({"farmerName": "asha"}, filters)
