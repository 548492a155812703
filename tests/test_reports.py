"""Tests for monthly purchase and sales reports."""

from datetime import datetime
from decimal import Decimal

import pytest

from models.users import Role
from utils.errors import InvalidInputError, NotFoundError
from utils.report_builder import (
    average_per_item, build_seller_sales_report, build_user_purchase_report, month_range,
)


@pytest.fixture
def seller(make_user):
    return make_user(role=Role.SELLER, name="Green Goods")


@pytest.fixture
def other_seller(make_user):
    return make_user(role=Role.SELLER, name="Bath & Co")


@pytest.fixture
def buyer(make_user):
    return make_user(name="Alice")


@pytest.fixture
def catalog(make_product, seller, other_seller):
    return {
        "bottle": make_product(seller, name="Bottle", category="Kitchen", price="12.50",
                               carbon="1.50"),
        "kettle": make_product(seller, name="Kettle", category="Kitchen", price="40.00",
                               carbon="12.00"),
        "towel": make_product(other_seller, name="Towel", category="Bath", price="8.00",
                              carbon="3.00"),
    }


@pytest.fixture
def may_orders(make_order, buyer, catalog):
    first = make_order(buyer, [(catalog["bottle"], 2), (catalog["kettle"], 1)],
                       order_date=datetime(2024, 5, 15, 10, 0))
    second = make_order(buyer, [(catalog["bottle"], 1), (catalog["towel"], 3)],
                        order_date=datetime(2024, 5, 31, 23, 59, 59))
    # Outside May
    make_order(buyer, [(catalog["kettle"], 5)], order_date=datetime(2024, 4, 30, 23, 59, 59))
    make_order(buyer, [(catalog["kettle"], 5)], order_date=datetime(2024, 6, 1, 0, 0))
    return first, second


class TestMonthRange:
    def test_leap_february(self):
        start, end = month_range("2024-02")
        assert start == datetime(2024, 2, 1)
        assert end == datetime(2024, 2, 29, 23, 59, 59)

    @pytest.mark.parametrize("month", ["2024-13", "May", "2024-5", "", "2024-05-01"])
    def test_bad_month(self, month):
        with pytest.raises(InvalidInputError):
            month_range(month)

    def test_average_per_item_without_items(self):
        assert average_per_item(Decimal("10"), 0) == Decimal("0")


class TestUserPurchaseReport:
    def test_totals_for_month(self, db, buyer, may_orders):
        report = build_user_purchase_report(db, buyer.id, "2024-05")

        assert report.user_name == "Alice"
        assert report.total_orders == 2
        assert report.total_items_bought == 7
        assert report.total_spent == Decimal("101.50")
        assert report.total_carbon_emitted == Decimal("25.50")
        assert len(report.items_bought) == 4

    def test_category_breakdown_adds_up(self, db, buyer, may_orders):
        report = build_user_purchase_report(db, buyer.id, "2024-05")

        assert [c.category for c in report.category_breakdown] == ["Kitchen", "Bath"]
        kitchen = report.category_breakdown[0]
        assert kitchen.item_count == 4
        assert kitchen.order_count == 2
        assert kitchen.total_spent == Decimal("77.50")
        assert sum(c.total_spent for c in report.category_breakdown) == report.total_spent
        assert sum(c.item_count for c in report.category_breakdown) == report.total_items_bought
        assert report.price_by_category == {"Kitchen": Decimal("77.50"), "Bath": Decimal("24.00")}

    def test_carbon_details(self, db, buyer, may_orders):
        details = build_user_purchase_report(db, buyer.id, "2024-05").carbon_impact_details

        assert details.eco_friendly_item_count == 3
        assert details.moderate_impact_item_count == 3
        assert details.high_impact_item_count == 1
        # 9x the carbon of the eco-friendly lines (3 x 1.50)
        assert details.estimated_carbon_saved == Decimal("40.5")
        assert details.average_carbon_per_item == Decimal("3.64")

    def test_empty_month(self, db, buyer, may_orders):
        report = build_user_purchase_report(db, buyer.id, "2023-01")

        assert report.total_orders == 0
        assert report.total_spent == Decimal("0")
        assert report.category_breakdown == []
        assert report.carbon_impact_details.average_carbon_per_item == Decimal("0")

    def test_unknown_user(self, db):
        with pytest.raises(NotFoundError, match="User"):
            build_user_purchase_report(db, 999, "2024-05")


class TestSellerSalesReport:
    def test_counts_only_own_lines(self, db, seller, buyer, may_orders):
        report = build_seller_sales_report(db, seller.id, "2024-05")

        assert report.seller_name == "Green Goods"
        assert report.total_orders == 2
        assert report.total_items_sold == 4
        assert report.total_revenue == Decimal("77.50")
        assert report.total_carbon_impact == Decimal("16.50")
        assert {i.product_name for i in report.items_sold} == {"Bottle", "Kettle"}
        assert all(i.buyer_name == "Alice" for i in report.items_sold)

        assert [c.category for c in report.category_breakdown] == ["Kitchen"]
        assert sum(c.total_revenue for c in report.category_breakdown) == report.total_revenue
        assert sum(c.item_count for c in report.category_breakdown) == report.total_items_sold
        assert sum(report.revenue_by_category.values()) == report.total_revenue

    def test_other_seller_sees_their_share(self, db, other_seller, may_orders):
        report = build_seller_sales_report(db, other_seller.id, "2024-05")

        assert report.total_orders == 1
        assert report.total_items_sold == 3
        assert report.revenue_by_category == {"Bath": Decimal("24.00")}

    def test_daily_buckets_in_date_order(self, db, seller, may_orders):
        report = build_seller_sales_report(db, seller.id, "2024-05")

        assert list(report.daily_sales) == ["2024-05-15", "2024-05-31"]
        first = report.daily_sales["2024-05-15"]
        assert first.items_sold == 3
        assert first.revenue == Decimal("65.00")
        assert first.order_count == 1
        assert sum(d.revenue for d in report.daily_sales.values()) == report.total_revenue

    def test_carbon_saved_heuristic(self, db, seller, may_orders):
        details = build_seller_sales_report(db, seller.id, "2024-05").carbon_impact_details

        # 16.50 / 4 = 4.125 -> 4.13; 3 eco units x 4.13 x 0.6
        assert details.average_carbon_per_item == Decimal("4.13")
        assert details.estimated_carbon_saved == Decimal("7.434")

    def test_unknown_seller(self, db):
        with pytest.raises(NotFoundError, match="Seller"):
            build_seller_sales_report(db, 999, "2024-05")

    def test_bad_month_is_checked_first(self, db, seller):
        with pytest.raises(InvalidInputError):
            build_seller_sales_report(db, seller.id, "05-2024")
