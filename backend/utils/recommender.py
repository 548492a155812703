# backend/utils/recommender.py
"""Carbon-aware product recommendations.

Candidates are approved, in-stock products in catalog order. They are
ranked in a pandas DataFrame; every sort is stable so ties keep catalog
order. Prices and carbon values stay Decimal (object columns).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from models.product import EcoRating, Product
from utils.errors import NotFoundError
from utils.store import find_approved_in_stock_products, find_product_by_id

GREENER_ALTERNATIVES_LIMIT = 5
SIMILAR_PRICE_MIN = Decimal("0.6")
SIMILAR_PRICE_MAX = Decimal("1.4")
ECO_VALUE_PRICE_SCALE = Decimal("1000")

_FOUR_PLACES = Decimal("0.0001")
_COLUMNS = ["id", "category", "price", "carbon_impact", "eco_rating"]


def get_candidate_frame(db: Session) -> tuple[pd.DataFrame, dict]:
    """Loads the candidate set as a DataFrame plus an id -> Product lookup."""
    products = find_approved_in_stock_products(db)
    lookup = {p.id: p for p in products}
    rows = [{
        "id": p.id,
        "category": p.category,
        "price": Decimal(p.price),
        "carbon_impact": Decimal(p.carbon_impact),
        "eco_rating": EcoRating(p.eco_rating).value,
    } for p in products]
    frame = pd.DataFrame(rows, columns=_COLUMNS)
    frame = frame.astype({"price": object, "carbon_impact": object})
    return frame, lookup


def _require_product(db: Session, product_id: int) -> Product:
    product = find_product_by_id(db, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def _to_products(frame: pd.DataFrame, lookup: dict, limit: Optional[int]) -> List[Product]:
    if limit is not None:
        frame = frame.head(max(limit, 0))
    return [lookup[int(pid)] for pid in frame["id"]]


def _by_carbon(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.sort_values("carbon_impact", kind="stable")


def greener_alternatives(db: Session, product_id: int) -> List[Product]:
    source = _require_product(db, product_id)
    frame, lookup = get_candidate_frame(db)
    if frame.empty:
        return []
    mask = (
        (frame["category"] == source.category)
        & (frame["id"] != source.id)
        & (frame["carbon_impact"] < Decimal(source.carbon_impact))
    )
    return _to_products(_by_carbon(frame[mask]), lookup, GREENER_ALTERNATIVES_LIMIT)


def carbon_savings(db: Session, current_product_id: int, alternative_product_id: int,
                   quantity: int) -> dict:
    current = _require_product(db, current_product_id)
    alternative = _require_product(db, alternative_product_id)

    current_carbon = Decimal(current.carbon_impact) * quantity
    alternative_carbon = Decimal(alternative.carbon_impact) * quantity
    savings = current_carbon - alternative_carbon

    if current_carbon == 0:
        percentage = 0.0
    else:
        ratio = (savings / current_carbon).quantize(_FOUR_PLACES, rounding=ROUND_HALF_UP)
        percentage = float(ratio * 100)

    return {
        "current_carbon": current_carbon,
        "alternative_carbon": alternative_carbon,
        "carbon_savings": savings,
        "savings_percentage": percentage,
        "quantity": quantity,
    }


def eco_friendly_recommendations(db: Session, limit: int = 10) -> List[Product]:
    frame, lookup = get_candidate_frame(db)
    if frame.empty:
        return []
    eco = frame[frame["eco_rating"] == EcoRating.ECO_FRIENDLY.value]
    return _to_products(_by_carbon(eco), lookup, limit)


def similar_products(db: Session, product_id: int, limit: int = 5) -> List[Product]:
    source = _require_product(db, product_id)
    frame, lookup = get_candidate_frame(db)
    if frame.empty:
        return []
    price = Decimal(source.price)
    low, high = price * SIMILAR_PRICE_MIN, price * SIMILAR_PRICE_MAX
    mask = (
        (frame["category"] == source.category)
        & (frame["id"] != source.id)
        & (frame["price"] >= low)
        & (frame["price"] <= high)
    )
    return _to_products(_by_carbon(frame[mask]), lookup, limit)


def best_eco_value(db: Session, category: Optional[str] = None, limit: int = 10) -> List[Product]:
    frame, lookup = get_candidate_frame(db)
    if frame.empty:
        return []
    if category is not None:
        frame = frame[frame["category"] == category]
    # Lower is better: a 1000-unit price difference weighs as much as 1 kg CO2e
    frame = frame.assign(
        eco_value=[p / ECO_VALUE_PRICE_SCALE + c
                   for p, c in zip(frame["price"], frame["carbon_impact"])]
    )
    return _to_products(frame.sort_values("eco_value", kind="stable"), lookup, limit)


def cart_recommendations(db: Session, product_ids: Iterable[int]) -> List[dict]:
    """Greener alternatives for every cart product that is not already eco-friendly."""
    recommendations = []
    for product_id in product_ids:
        product = find_product_by_id(db, product_id)
        if product is None or product.eco_rating == EcoRating.ECO_FRIENDLY:
            continue
        alternatives = greener_alternatives(db, product_id)
        if not alternatives:
            continue
        recommendations.append({
            "current_product": product,
            "alternatives": alternatives,
            "potential_savings": Decimal(product.carbon_impact) - Decimal(alternatives[0].carbon_impact),
        })
    return recommendations
