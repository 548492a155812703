# backend/utils/report_builder.py
"""Monthly purchase (buyer) and sales (seller) reports.

Both reports are folds over OrderItem snapshots of the orders placed in one
calendar month. Nothing is written back to the store.
"""
import calendar
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Set, Tuple

from sqlalchemy.orm import Session

from models.product import EcoRating
from schemas.reports import (
    CarbonImpactDetails, DailySales, PurchasedItem, SellerCategoryStats,
    SellerSalesReport, SoldItem, UserCategoryStats, UserPurchaseReport,
)
from utils.carbon import to_rating
from utils.errors import InvalidInputError, NotFoundError
from utils.store import (
    find_orders_by_user_in_range, find_orders_containing_seller_in_range, find_user_by_id,
)

logger = logging.getLogger(__name__)

# Business heuristics pending product-owner confirmation:
# a buyer's eco-friendly purchase is assumed to avoid 9x its own carbon,
# a seller's eco-friendly unit is assumed to save 60% of the average unit.
USER_CARBON_SAVED_MULTIPLIER = Decimal("9")
SELLER_CARBON_SAVED_FACTOR = Decimal("0.6")

_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
_TWO_PLACES = Decimal("0.01")
_ZERO = Decimal("0")


def month_range(month: str) -> Tuple[datetime, datetime]:
    """'YYYY-MM' -> (first day 00:00:00, last day 23:59:59), both inclusive."""
    if not month or not _MONTH_RE.match(month):
        raise InvalidInputError(f"Bad month format: {month!r}, expected YYYY-MM")
    try:
        first = datetime.strptime(month, "%Y-%m")
    except ValueError:
        raise InvalidInputError(f"Bad month format: {month!r}, expected YYYY-MM")
    last_day = calendar.monthrange(first.year, first.month)[1]
    return first, first.replace(day=last_day, hour=23, minute=59, second=59)


def current_month(now: datetime = None) -> str:
    return (now or datetime.now()).strftime("%Y-%m")


def average_per_item(total_carbon: Decimal, total_items: int) -> Decimal:
    if total_items <= 0:
        return _ZERO
    return (total_carbon / total_items).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass
class _CategoryBucket:
    item_count: int = 0
    amount: Decimal = _ZERO
    carbon: Decimal = _ZERO
    order_ids: Set[int] = field(default_factory=set)


@dataclass
class _DayBucket:
    items_sold: int = 0
    revenue: Decimal = _ZERO
    order_ids: Set[int] = field(default_factory=set)


@dataclass
class _TierCounter:
    eco_friendly: int = 0
    moderate: int = 0
    high_impact: int = 0
    eco_friendly_carbon: Decimal = _ZERO

    def add(self, rating, quantity: int, carbon: Decimal) -> None:
        rating = to_rating(rating)
        if rating == EcoRating.ECO_FRIENDLY:
            self.eco_friendly += quantity
            self.eco_friendly_carbon += carbon
        elif rating == EcoRating.MODERATE:
            self.moderate += quantity
        elif rating == EcoRating.HIGH_IMPACT:
            self.high_impact += quantity


def _by_amount_desc(buckets: Dict[str, _CategoryBucket]):
    # sorted() is stable: equal amounts keep first-seen order
    return sorted(buckets.items(), key=lambda kv: kv[1].amount, reverse=True)


def build_user_purchase_report(db: Session, user_id: int, month: str) -> UserPurchaseReport:
    start, end = month_range(month)
    user = find_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User", user_id)

    orders = find_orders_by_user_in_range(db, user_id, start, end)

    order_ids: Set[int] = set()
    total_items = 0
    total_spent = _ZERO
    total_carbon = _ZERO
    categories: Dict[str, _CategoryBucket] = {}
    tiers = _TierCounter()
    items = []

    for order in orders:
        order_ids.add(order.id)
        for item in order.items:
            subtotal = Decimal(item.subtotal)
            carbon = Decimal(item.total_carbon)

            items.append(PurchasedItem(
                order_id=order.id,
                product_name=item.product_name,
                category=item.category,
                eco_rating=to_rating(item.eco_rating).value,
                quantity_bought=item.quantity,
                price_per_unit=Decimal(item.price),
                total_cost=subtotal,
                carbon_impact_per_unit=Decimal(item.carbon_impact),
                total_carbon_emitted=carbon,
                order_date=order.order_date,
                seller_name=item.seller.name if item.seller else None,
            ))

            total_items += item.quantity
            total_spent += subtotal
            total_carbon += carbon

            bucket = categories.setdefault(item.category, _CategoryBucket())
            bucket.item_count += item.quantity
            bucket.amount += subtotal
            bucket.carbon += carbon
            bucket.order_ids.add(order.id)

            tiers.add(item.eco_rating, item.quantity, carbon)

    breakdown = [
        UserCategoryStats(
            category=name,
            item_count=b.item_count,
            total_spent=b.amount,
            total_carbon_emitted=b.carbon,
            order_count=len(b.order_ids),
        )
        for name, b in _by_amount_desc(categories)
    ]

    report = UserPurchaseReport(
        user_id=user.id,
        user_name=user.name,
        month=month,
        total_orders=len(order_ids),
        total_items_bought=total_items,
        total_spent=total_spent,
        total_carbon_emitted=total_carbon,
        items_bought=items,
        category_breakdown=breakdown,
        price_by_category={name: b.amount for name, b in categories.items()},
        carbon_impact_details=CarbonImpactDetails(
            total_carbon_emitted=total_carbon,
            estimated_carbon_saved=tiers.eco_friendly_carbon * USER_CARBON_SAVED_MULTIPLIER,
            average_carbon_per_item=average_per_item(total_carbon, total_items),
            eco_friendly_item_count=tiers.eco_friendly,
            moderate_impact_item_count=tiers.moderate,
            high_impact_item_count=tiers.high_impact,
        ),
    )
    logger.info("Purchase report for user %s, %s: %s orders, %s items, spent %s",
                user.id, month, report.total_orders, total_items, total_spent)
    return report


def build_seller_sales_report(db: Session, seller_id: int, month: str) -> SellerSalesReport:
    start, end = month_range(month)
    seller = find_user_by_id(db, seller_id)
    if seller is None:
        raise NotFoundError("Seller", seller_id)

    orders = find_orders_containing_seller_in_range(db, seller_id, start, end)

    order_ids: Set[int] = set()
    total_items = 0
    total_revenue = _ZERO
    total_carbon = _ZERO
    categories: Dict[str, _CategoryBucket] = {}
    days: Dict[str, _DayBucket] = {}
    tiers = _TierCounter()
    items = []

    for order in orders:
        day = order.order_date.strftime("%Y-%m-%d")
        for item in order.items:
            # Mixed orders: only this seller's own lines count
            if item.seller_id != seller_id:
                continue
            subtotal = Decimal(item.subtotal)
            carbon = Decimal(item.total_carbon)

            items.append(SoldItem(
                order_id=order.id,
                product_name=item.product_name,
                category=item.category,
                eco_rating=to_rating(item.eco_rating).value,
                quantity_sold=item.quantity,
                price_per_unit=Decimal(item.price),
                total_revenue=subtotal,
                carbon_impact_per_unit=Decimal(item.carbon_impact),
                total_carbon_impact=carbon,
                order_date=order.order_date,
                buyer_name=order.user.name if order.user else None,
            ))

            order_ids.add(order.id)
            total_items += item.quantity
            total_revenue += subtotal
            total_carbon += carbon

            bucket = categories.setdefault(item.category, _CategoryBucket())
            bucket.item_count += item.quantity
            bucket.amount += subtotal
            bucket.carbon += carbon
            bucket.order_ids.add(order.id)

            daily = days.setdefault(day, _DayBucket())
            daily.items_sold += item.quantity
            daily.revenue += subtotal
            daily.order_ids.add(order.id)

            tiers.add(item.eco_rating, item.quantity, carbon)

    average = average_per_item(total_carbon, total_items)
    report = SellerSalesReport(
        seller_id=seller.id,
        seller_name=seller.name,
        month=month,
        total_orders=len(order_ids),
        total_items_sold=total_items,
        total_revenue=total_revenue,
        total_carbon_impact=total_carbon,
        items_sold=items,
        category_breakdown=[
            SellerCategoryStats(
                category=name,
                item_count=b.item_count,
                total_revenue=b.amount,
                total_carbon_emitted=b.carbon,
                order_count=len(b.order_ids),
            )
            for name, b in _by_amount_desc(categories)
        ],
        revenue_by_category={name: b.amount for name, b in categories.items()},
        daily_sales={
            day: DailySales(date=day, items_sold=d.items_sold, revenue=d.revenue,
                            order_count=len(d.order_ids))
            for day, d in sorted(days.items())
        },
        carbon_impact_details=CarbonImpactDetails(
            total_carbon_emitted=total_carbon,
            estimated_carbon_saved=tiers.eco_friendly * average * SELLER_CARBON_SAVED_FACTOR,
            average_carbon_per_item=average,
            eco_friendly_item_count=tiers.eco_friendly,
            moderate_impact_item_count=tiers.moderate,
            high_impact_item_count=tiers.high_impact,
        ),
    )
    logger.info("Sales report for seller %s, %s: %s orders, %s items, revenue %s",
                seller.id, month, report.total_orders, total_items, total_revenue)
    return report
