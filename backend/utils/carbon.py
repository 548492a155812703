# backend/utils/carbon.py
"""Eco-rating classification and carbon metrics.

Thresholds are in kg CO2e per unit. Everything here is pure except
``apply_carbon_rating``, which stamps the derived fields onto a Product.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from models.product import EcoRating, Product

ECO_FRIENDLY_THRESHOLD = Decimal("2.0")
MODERATE_THRESHOLD = Decimal("10.0")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_FOUR_PLACES = Decimal("0.0001")

_DISPLAY = {
    EcoRating.ECO_FRIENDLY: ("Eco-Friendly", "Low carbon footprint (< 2 kg CO₂e)"),
    EcoRating.MODERATE: ("Moderate", "Moderate carbon footprint (2-10 kg CO₂e)"),
    EcoRating.HIGH_IMPACT: ("High Impact", "High carbon footprint (> 10 kg CO₂e)"),
    EcoRating.UNRATED: ("Unrated", "Not yet rated"),
}

_SCORE_POINTS = {
    EcoRating.ECO_FRIENDLY: 10,
    EcoRating.MODERATE: 5,
    EcoRating.HIGH_IMPACT: 0,
    EcoRating.UNRATED: 0,
}


def _as_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_rating(value: Union[EcoRating, str, None]) -> EcoRating:
    """Parses a rating name, falling back to UNRATED for anything unknown."""
    if isinstance(value, EcoRating):
        return value
    try:
        return EcoRating(value)
    except ValueError:
        return EcoRating.UNRATED


def classify(carbon_impact) -> EcoRating:
    c = _as_decimal(carbon_impact)
    if c is None:
        return EcoRating.UNRATED
    if c < ECO_FRIENDLY_THRESHOLD:
        return EcoRating.ECO_FRIENDLY
    if c <= MODERATE_THRESHOLD:
        return EcoRating.MODERATE
    return EcoRating.HIGH_IMPACT


def rating_display_name(rating) -> str:
    return _DISPLAY[to_rating(rating)][0]


def rating_description(rating) -> str:
    return _DISPLAY[to_rating(rating)][1]


def qualifies_for_eco_certification(carbon_impact) -> bool:
    c = _as_decimal(carbon_impact)
    return c is not None and c < ECO_FRIENDLY_THRESHOLD


def carbon_savings(product_impact, category_average) -> Decimal:
    """Carbon saved per unit versus the category average, never negative."""
    impact = _as_decimal(product_impact)
    average = _as_decimal(category_average)
    if impact is None or average is None:
        return _ZERO
    return max(_ZERO, average - impact)


def percentage_reduction(product_impact, category_average) -> float:
    impact = _as_decimal(product_impact)
    average = _as_decimal(category_average)
    if impact is None or average is None or average == 0:
        return 0.0
    ratio = ((average - impact) / average).quantize(_FOUR_PLACES, rounding=ROUND_HALF_UP)
    return max(0.0, float(ratio * _HUNDRED))


def eco_score_points(rating) -> int:
    return _SCORE_POINTS[to_rating(rating)]


def category_average_carbon(products: Iterable[Product], category: str) -> Optional[Decimal]:
    impacts = [_as_decimal(p.carbon_impact) for p in products
               if p.category == category and p.carbon_impact is not None]
    if not impacts:
        return None
    return (sum(impacts, _ZERO) / len(impacts)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def apply_carbon_rating(product: Product) -> Product:
    """Derives eco_rating and eco_certified from carbon_impact (product write path)."""
    product.eco_rating = classify(product.carbon_impact)
    product.eco_certified = qualifies_for_eco_certification(product.carbon_impact)
    return product
