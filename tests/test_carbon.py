"""Tests for eco-rating classification and carbon metrics."""

from decimal import Decimal

import pytest

from models.product import EcoRating, Product
from utils.carbon import (
    apply_carbon_rating, carbon_savings, category_average_carbon, classify, eco_score_points,
    percentage_reduction, qualifies_for_eco_certification, rating_description,
    rating_display_name, to_rating,
)


class TestClassify:
    @pytest.mark.parametrize("carbon,expected", [
        (None, EcoRating.UNRATED),
        ("0", EcoRating.ECO_FRIENDLY),
        ("1.5", EcoRating.ECO_FRIENDLY),
        ("1.99", EcoRating.ECO_FRIENDLY),
        ("2.0", EcoRating.MODERATE),
        ("10.0", EcoRating.MODERATE),
        ("10.01", EcoRating.HIGH_IMPACT),
        ("250", EcoRating.HIGH_IMPACT),
    ])
    def test_thresholds(self, carbon, expected):
        value = None if carbon is None else Decimal(carbon)
        assert classify(value) == expected

    def test_accepts_floats(self):
        assert classify(1.5) == EcoRating.ECO_FRIENDLY

    def test_unknown_rating_name_falls_back_to_unrated(self):
        assert to_rating("SUPER_GREEN") == EcoRating.UNRATED
        assert rating_display_name("SUPER_GREEN") == "Unrated"
        assert rating_description(None) == "Not yet rated"

    def test_display_names(self):
        assert rating_display_name(EcoRating.ECO_FRIENDLY) == "Eco-Friendly"
        assert rating_display_name("HIGH_IMPACT") == "High Impact"


class TestCertification:
    def test_low_carbon_qualifies(self):
        assert qualifies_for_eco_certification(Decimal("1.5")) is True

    def test_boundary_does_not_qualify(self):
        assert qualifies_for_eco_certification(Decimal("2.0")) is False

    def test_missing_carbon_does_not_qualify(self):
        assert qualifies_for_eco_certification(None) is False


class TestMetrics:
    def test_carbon_savings_against_average(self):
        assert carbon_savings(Decimal("3.0"), Decimal("5.0")) == Decimal("2.0")

    def test_carbon_savings_never_negative(self):
        assert carbon_savings(Decimal("8.0"), Decimal("5.0")) == Decimal("0")

    def test_carbon_savings_with_missing_input(self):
        assert carbon_savings(None, Decimal("5.0")) == Decimal("0")
        assert carbon_savings(Decimal("5.0"), None) == Decimal("0")

    def test_percentage_reduction_rounds_half_up(self):
        # (3 - 1) / 3 = 0.66666 -> 0.6667 -> 66.67
        assert percentage_reduction(Decimal("1"), Decimal("3")) == pytest.approx(66.67)

    def test_percentage_reduction_zero_average(self):
        assert percentage_reduction(Decimal("1"), Decimal("0")) == 0.0

    def test_percentage_reduction_floored_at_zero(self):
        assert percentage_reduction(Decimal("9"), Decimal("3")) == 0.0

    @pytest.mark.parametrize("rating,points", [
        (EcoRating.ECO_FRIENDLY, 10),
        (EcoRating.MODERATE, 5),
        (EcoRating.HIGH_IMPACT, 0),
        (EcoRating.UNRATED, 0),
        ("nonsense", 0),
    ])
    def test_eco_score_points(self, rating, points):
        assert eco_score_points(rating) == points


class TestProductHelpers:
    def test_category_average(self):
        products = [
            Product(category="Home", carbon_impact=Decimal("1.00")),
            Product(category="Home", carbon_impact=Decimal("2.00")),
            Product(category="Home", carbon_impact=Decimal("2.00")),
            Product(category="Garden", carbon_impact=Decimal("50.00")),
        ]
        assert category_average_carbon(products, "Home") == Decimal("1.67")

    def test_category_average_of_empty_category(self):
        assert category_average_carbon([], "Home") is None

    def test_apply_carbon_rating_derives_both_fields(self):
        product = Product(carbon_impact=Decimal("1.5"))
        apply_carbon_rating(product)
        assert product.eco_rating == EcoRating.ECO_FRIENDLY
        assert product.eco_certified is True

        product.carbon_impact = Decimal("12")
        apply_carbon_rating(product)
        assert product.eco_rating == EcoRating.HIGH_IMPACT
        assert product.eco_certified is False
