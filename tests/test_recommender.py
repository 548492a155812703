"""Tests for carbon-aware recommendations."""

from decimal import Decimal

import pytest

from models.users import Role
from utils import recommender
from utils.errors import NotFoundError


@pytest.fixture
def seller(make_user):
    return make_user(role=Role.SELLER)


def _names(products):
    return [p.name for p in products]


class TestGreenerAlternatives:
    def test_filters_and_orders_by_carbon(self, db, make_product, seller):
        source = make_product(seller, name="source", category="Kitchen", carbon="8.00")
        make_product(seller, name="five", category="Kitchen", carbon="5.00")
        make_product(seller, name="one", category="Kitchen", carbon="1.00")
        make_product(seller, name="same", category="Kitchen", carbon="8.00")
        make_product(seller, name="higher", category="Kitchen", carbon="9.00")
        make_product(seller, name="three", category="Kitchen", carbon="3.00")
        make_product(seller, name="sold out", category="Kitchen", carbon="0.50", stock=0)
        make_product(seller, name="draft", category="Kitchen", carbon="0.20", approved=False)
        make_product(seller, name="garden", category="Garden", carbon="0.10")

        result = recommender.greener_alternatives(db, source.id)

        assert _names(result) == ["one", "three", "five"]

    def test_caps_at_five(self, db, make_product, seller):
        source = make_product(seller, name="source", carbon="20.00")
        for i in range(7):
            make_product(seller, name=f"alt{i}", carbon=f"{i + 1}.00")

        result = recommender.greener_alternatives(db, source.id)

        assert _names(result) == ["alt0", "alt1", "alt2", "alt3", "alt4"]

    def test_ties_keep_catalog_order(self, db, make_product, seller):
        source = make_product(seller, name="source", carbon="9.00")
        make_product(seller, name="first", carbon="2.00")
        make_product(seller, name="second", carbon="2.00")

        assert _names(recommender.greener_alternatives(db, source.id)) == ["first", "second"]

    def test_unknown_product(self, db):
        with pytest.raises(NotFoundError):
            recommender.greener_alternatives(db, 404)

    def test_empty_catalog_gives_empty_list(self, db, make_product, seller):
        source = make_product(seller, name="source", approved=False)
        assert recommender.greener_alternatives(db, source.id) == []


class TestCarbonSavings:
    def test_savings_for_quantity(self, db, make_product, seller):
        current = make_product(seller, carbon="10.00")
        alternative = make_product(seller, carbon="4.00")

        result = recommender.carbon_savings(db, current.id, alternative.id, 2)

        assert result["current_carbon"] == Decimal("20")
        assert result["alternative_carbon"] == Decimal("8")
        assert result["carbon_savings"] == Decimal("12")
        assert result["savings_percentage"] == pytest.approx(60.0)
        assert result["quantity"] == 2

    def test_zero_carbon_current_product(self, db, make_product, seller):
        current = make_product(seller, carbon="0.00")
        alternative = make_product(seller, carbon="1.00")

        result = recommender.carbon_savings(db, current.id, alternative.id, 1)

        assert result["savings_percentage"] == 0.0
        assert result["carbon_savings"] == Decimal("-1")

    def test_unknown_alternative(self, db, make_product, seller):
        current = make_product(seller)
        with pytest.raises(NotFoundError):
            recommender.carbon_savings(db, current.id, 999, 1)


class TestRankings:
    def test_eco_friendly_only(self, db, make_product, seller):
        make_product(seller, name="moderate", carbon="2.00")
        make_product(seller, name="eco b", carbon="1.50")
        make_product(seller, name="eco a", carbon="0.30")

        assert _names(recommender.eco_friendly_recommendations(db, 10)) == ["eco a", "eco b"]
        assert _names(recommender.eco_friendly_recommendations(db, 1)) == ["eco a"]

    def test_similar_products_price_band_is_inclusive(self, db, make_product, seller):
        source = make_product(seller, name="source", price="100.00", carbon="5.00")
        make_product(seller, name="low edge", price="60.00", carbon="4.00")
        make_product(seller, name="high edge", price="140.00", carbon="3.00")
        make_product(seller, name="too cheap", price="59.99", carbon="1.00")
        make_product(seller, name="too dear", price="140.01", carbon="1.00")
        make_product(seller, name="other", category="Garden", price="100.00", carbon="1.00")

        result = recommender.similar_products(db, source.id, 5)

        assert _names(result) == ["high edge", "low edge"]

    def test_best_eco_value(self, db, make_product, seller):
        # price/1000 + carbon: 1.5 + 0.5 = 2.0, 0.1 + 2.0 = 2.1, 0.0 + 1.9 = 1.9
        make_product(seller, name="pricey green", price="500.00", carbon="1.50")
        make_product(seller, name="cheap moderate", price="100.00", carbon="2.00")
        make_product(seller, name="free-ish", price="0.00", carbon="1.90")

        result = recommender.best_eco_value(db, None, 10)

        assert _names(result) == ["free-ish", "pricey green", "cheap moderate"]

    def test_best_eco_value_by_category(self, db, make_product, seller):
        make_product(seller, name="home", category="Home", carbon="1.00")
        make_product(seller, name="garden", category="Garden", carbon="0.50")

        assert _names(recommender.best_eco_value(db, "Home", 10)) == ["home"]


class TestCartRecommendations:
    def test_skips_green_and_unmatched_products(self, db, make_product, seller):
        heavy = make_product(seller, name="heavy", category="Home", carbon="12.00")
        make_product(seller, name="lighter", category="Home", carbon="4.00")
        make_product(seller, name="lightest", category="Home", carbon="1.00")
        green = make_product(seller, name="green", category="Home", carbon="0.50")
        lonely = make_product(seller, name="lonely", category="Toys", carbon="7.00")

        result = recommender.cart_recommendations(db, [heavy.id, green.id, lonely.id, 999])

        assert len(result) == 1
        entry = result[0]
        assert entry["current_product"].id == heavy.id
        assert _names(entry["alternatives"]) == ["green", "lightest", "lighter"]
        assert entry["potential_savings"] == Decimal("11.50")
