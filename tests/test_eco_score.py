"""Tests for the per-order eco score."""

from decimal import Decimal

from models.order import Order, OrderItem
from models.product import EcoRating
from models.users import User
from utils.eco_score import (
    BASE_POINTS, award_order_score, rating_weight, revoke_order_score, score_for_order,
)


def _item(rating, quantity, total_carbon, certified=False):
    return OrderItem(
        eco_rating=rating,
        eco_certified=certified,
        quantity=quantity,
        total_carbon=Decimal(total_carbon),
    )


def _order(*items):
    return Order(id=1, items=list(items), total_items=sum(i.quantity for i in items))


class TestScoreForOrder:
    def test_mixed_order_with_certified_line(self):
        # (5*3 + 1*1) / 4 = 4.0 -> 20; avg carbon 4.125 < 5 -> 20; 3 certified -> 45
        order = _order(
            _item(EcoRating.ECO_FRIENDLY, 3, "4.50", certified=True),
            _item(EcoRating.HIGH_IMPACT, 1, "12.00"),
        )
        assert score_for_order(order) == 95

    def test_no_low_carbon_bonus_at_limit(self):
        # avg carbon exactly 5.0 is not below the limit
        order = _order(_item(EcoRating.MODERATE, 2, "10.00"))
        assert score_for_order(order) == BASE_POINTS + 15

    def test_average_weight_is_floored(self):
        # (5*1 + 3*2) / 3 = 3.666.. -> floor(18.33) = 18
        order = _order(
            _item(EcoRating.ECO_FRIENDLY, 1, "1.00"),
            _item(EcoRating.MODERATE, 2, "6.00"),
        )
        assert score_for_order(order) == BASE_POINTS + 18 + 20

    def test_unrated_lines_weigh_two(self):
        assert rating_weight(EcoRating.UNRATED) == 2
        assert rating_weight("garbage") == 2
        order = _order(_item(EcoRating.UNRATED, 1, "50.00"))
        assert score_for_order(order) == BASE_POINTS + 10

    def test_empty_order_gets_base_points_only(self):
        order = Order(id=1, items=[], total_items=0)
        assert score_for_order(order) == BASE_POINTS


class TestAwardAndRevoke:
    def test_award_then_revoke_restores_score(self):
        user = User(id=7, eco_score=40)
        order = _order(_item(EcoRating.ECO_FRIENDLY, 2, "2.00", certified=True))

        awarded = award_order_score(user, order)
        assert user.eco_score == 40 + awarded

        revoked = revoke_order_score(user, order)
        assert revoked == awarded
        assert user.eco_score == 40

    def test_revoke_floors_at_zero(self):
        user = User(id=7, eco_score=5)
        order = _order(_item(EcoRating.HIGH_IMPACT, 1, "30.00"))

        revoked = revoke_order_score(user, order)

        assert user.eco_score == 0
        assert revoked == 5
