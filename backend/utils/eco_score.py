# backend/utils/eco_score.py
"""Eco score attributable to a single order.

The score is derived from the OrderItem snapshot only, so the points awarded
on delivery and the points revoked on an approved return are always equal.
"""
import logging
from decimal import Decimal

from models.order import Order
from models.product import EcoRating
from models.users import User
from utils.carbon import to_rating

logger = logging.getLogger(__name__)

BASE_POINTS = 10
RATING_MULTIPLIER = 5
LOW_CARBON_LIMIT = Decimal("5.0")
LOW_CARBON_BONUS = 20
CERTIFIED_BONUS_PER_UNIT = 15

_RATING_WEIGHTS = {
    EcoRating.ECO_FRIENDLY: 5,
    EcoRating.MODERATE: 3,
    EcoRating.HIGH_IMPACT: 1,
    EcoRating.UNRATED: 2,
}


def rating_weight(rating) -> int:
    return _RATING_WEIGHTS[to_rating(rating)]


def score_for_order(order: Order) -> int:
    score = BASE_POINTS

    weighted_quantity = 0
    carbon = Decimal("0")
    certified_units = 0
    for item in order.items:
        weighted_quantity += rating_weight(item.eco_rating) * item.quantity
        carbon += Decimal(item.total_carbon)
        if item.eco_certified:
            certified_units += item.quantity

    total_items = order.total_items or 0
    if total_items > 0:
        # floor(avg_weight * 5) without going through floats
        score += (weighted_quantity * RATING_MULTIPLIER) // total_items
        if carbon / total_items < LOW_CARBON_LIMIT:
            score += LOW_CARBON_BONUS

    score += certified_units * CERTIFIED_BONUS_PER_UNIT
    return score


def award_order_score(user: User, order: Order) -> int:
    points = score_for_order(order)
    user.eco_score = (user.eco_score or 0) + points
    logger.info("Awarded %s eco points to user %s for order %s", points, user.id, order.id)
    return points


def revoke_order_score(user: User, order: Order) -> int:
    """Takes back the delivery award, never letting the score drop below zero."""
    points = score_for_order(order)
    current = user.eco_score or 0
    user.eco_score = max(0, current - points)
    logger.info("Revoked %s eco points from user %s for order %s", points, user.id, order.id)
    return current - user.eco_score
