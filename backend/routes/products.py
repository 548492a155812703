# backend/routes/products.py
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.cart import Cart, CartItem
from models.order import OrderItem
from models.product import EcoRating, Product
from models.users import Role, User
import schemas.product as product_schemas
from utils import recommender
from utils.audit import client_ip, write_log
from utils.carbon import (
    apply_carbon_rating, carbon_savings, category_average_carbon, eco_score_points,
    percentage_reduction, rating_description, rating_display_name,
)
from utils.store import find_approved_in_stock_products, save_product
from utils.tokenJWT import get_current_user, role_required

router = APIRouter(prefix="/products", tags=["Products"])

SORTABLE = {
    "id": Product.id,
    "name": Product.name,
    "price": Product.price,
    "carbon_impact": Product.carbon_impact,
    "created_at": Product.created_at,
}


def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _get_owned_product(db: Session, product_id: int, seller: User) -> Product:
    product = _get_product_or_404(db, product_id)
    if product.seller_id != seller.id:
        raise HTTPException(status_code=403, detail="You are not authorized to modify this product")
    return product


# =========================
# CATALOG
# =========================
@router.get("", response_model=product_schemas.ProductListPage)
def list_products(
    q: Optional[str] = Query(None, description="Search in name, description and category"),
    category: Optional[str] = Query(None),
    eco_rating: Optional[EcoRating] = Query(None),
    eco_certified: Optional[bool] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    max_carbon: Optional[Decimal] = Query(None, ge=0),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("id"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    """Approved products only, with the usual storefront filters."""
    query = db.query(Product).filter(Product.approved.is_(True))

    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like),
                                 Product.description.ilike(like),
                                 Product.category.ilike(like)))
    if category:
        query = query.filter(Product.category == category)
    if eco_rating:
        query = query.filter(Product.eco_rating == eco_rating)
    if eco_certified is not None:
        query = query.filter(Product.eco_certified.is_(eco_certified))
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if max_carbon is not None:
        query = query.filter(Product.carbon_impact <= max_carbon)

    sort_col = SORTABLE.get(sort_by.lower(), Product.id)
    query = query.order_by(sort_col.asc() if order == "asc" else sort_col.desc(), Product.id.asc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/categories", response_model=List[str])
def list_categories(db: Session = Depends(get_db)):
    rows = (db.query(Product.category)
            .filter(Product.approved.is_(True))
            .distinct()
            .order_by(Product.category.asc())
            .all())
    return [r[0] for r in rows]


@router.get("/mine", response_model=List[product_schemas.ProductResponse])
def my_products(
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.SELLER)),
):
    return db.query(Product).filter(Product.seller_id == current_user.id).order_by(Product.id.asc()).all()


# =========================
# RECOMMENDATIONS
# =========================
@router.get("/carbon-savings", response_model=product_schemas.CarbonSavingsResponse)
def get_carbon_savings(
    current_product_id: int = Query(...),
    alternative_product_id: int = Query(...),
    quantity: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    result = recommender.carbon_savings(db, current_product_id, alternative_product_id, quantity)
    return {"current_product_id": current_product_id,
            "alternative_product_id": alternative_product_id,
            **result}


@router.get("/recommendations/eco-friendly", response_model=List[product_schemas.ProductResponse])
def get_eco_friendly_recommendations(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return recommender.eco_friendly_recommendations(db, limit)


@router.get("/recommendations/best-eco-value", response_model=List[product_schemas.ProductResponse])
def get_best_eco_value(
    category: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return recommender.best_eco_value(db, category, limit)


@router.get("/recommendations/cart", response_model=List[product_schemas.CartRecommendation])
def get_cart_recommendations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Greener swaps for what is currently in the user's open cart."""
    cart = db.query(Cart).filter(Cart.user_id == current_user.id, Cart.status == "open").first()
    if not cart:
        return []
    return recommender.cart_recommendations(db, [it.product_id for it in cart.items])


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}", response_model=product_schemas.ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _get_product_or_404(db, product_id)


@router.get("/{product_id}/alternatives", response_model=List[product_schemas.ProductResponse])
def get_greener_alternatives(product_id: int, db: Session = Depends(get_db)):
    return recommender.greener_alternatives(db, product_id)


@router.get("/{product_id}/similar", response_model=List[product_schemas.ProductResponse])
def get_similar_products(
    product_id: int,
    limit: int = Query(5, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return recommender.similar_products(db, product_id, limit)


@router.get("/{product_id}/carbon-comparison", response_model=product_schemas.CarbonComparison)
def get_carbon_comparison(product_id: int, db: Session = Depends(get_db)):
    """How a product compares with the average of its category."""
    product = _get_product_or_404(db, product_id)
    average = category_average_carbon(find_approved_in_stock_products(db), product.category)
    return product_schemas.CarbonComparison(
        product_id=product.id,
        category=product.category,
        carbon_impact=product.carbon_impact,
        category_average=average,
        carbon_savings=carbon_savings(product.carbon_impact, average),
        percentage_reduction=percentage_reduction(product.carbon_impact, average),
        eco_rating=product.eco_rating,
        eco_rating_display_name=rating_display_name(product.eco_rating),
        eco_rating_description=rating_description(product.eco_rating),
        eco_certified=product.eco_certified,
        eco_score_points=eco_score_points(product.eco_rating),
    )


# =========================
# SELLER CATALOG MANAGEMENT
# =========================
@router.post("", response_model=product_schemas.ProductResponse, status_code=201)
def create_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.SELLER)),
):
    product = Product(**payload.model_dump(), seller_id=current_user.id, approved=False)
    apply_carbon_rating(product)

    save_product(db, product)
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
              ip=client_ip(request),
              meta={"id": product.id, "eco_rating": product.eco_rating.value})
    return product


@router.put("/{product_id}", response_model=product_schemas.ProductResponse)
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.SELLER)),
):
    product = _get_owned_product(db, product_id, current_user)

    for key, value in payload.model_dump().items():
        setattr(product, key, value)
    apply_carbon_rating(product)
    # Every edit goes back through moderation
    product.approved = False

    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
              ip=client_ip(request),
              meta={"id": product.id, "eco_rating": product.eco_rating.value})
    return product


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.SELLER)),
):
    product = _get_owned_product(db, product_id, current_user)

    # Past orders keep their snapshot, open carts lose the line
    db.query(CartItem).filter(CartItem.product_id == product.id).delete(synchronize_session=False)
    db.query(OrderItem).filter(OrderItem.product_id == product.id).update(
        {OrderItem.product_id: None}, synchronize_session=False)
    db.delete(product)
    db.commit()

    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              ip=client_ip(request), meta={"id": product_id})
    return {"message": f"Product {product_id} deleted"}
