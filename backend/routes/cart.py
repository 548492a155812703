# backend/routes/cart.py
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from models.users import User
from models.product import Product
from models.cart import Cart, CartItem
from schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartItemOut

router = APIRouter(prefix="/cart", tags=["Cart"])

def _get_open_cart(db: Session, user_id: int) -> Cart:
    # Retrieve active cart or create a new one
    cart = db.query(Cart).filter(Cart.user_id == user_id, Cart.status == "open").first()
    if not cart:
        cart = Cart(user_id=user_id, status="open")
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart

def _get_buyable_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if not product.approved:
        raise HTTPException(status_code=400, detail="Product is not available for sale")
    return product

def _cart_to_out(cart: Cart) -> CartOut:
    items_out = [
        CartItemOut(
            id=it.id,
            product_id=it.product_id,
            name=it.product.name if it.product else "",
            quantity=it.quantity,
            price=Decimal(it.price),
            carbon_impact=Decimal(it.carbon_impact),
            subtotal=it.subtotal,
            total_carbon=it.total_carbon,
        )
        for it in cart.items
    ]
    return CartOut(
        items=items_out,
        total_price=cart.total_price,
        total_carbon=cart.total_carbon,
        total_items=cart.total_items,
    )

def _summary(out: CartOut) -> dict:
    return {"cart_items": len(out.items), "total": float(out.total_price),
            "carbon": float(out.total_carbon)}

@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _cart_to_out(_get_open_cart(db, current_user.id))

@router.post("/items", response_model=CartOut, status_code=status.HTTP_200_OK)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _get_open_cart(db, current_user.id)
    product = _get_buyable_product(db, payload.product_id)

    item = db.query(CartItem).filter(
        CartItem.cart_id == cart.id, CartItem.product_id == payload.product_id
    ).first()
    wanted = payload.quantity + (item.quantity if item else 0)

    # Validate stock availability for the whole line
    if wanted > product.stock:
        raise HTTPException(status_code=400, detail="Insufficient stock")

    if item:
        item.quantity = wanted
    else:
        # Snapshot price and carbon; the order is built from these
        item = CartItem(
            cart_id=cart.id,
            product_id=product.id,
            quantity=payload.quantity,
            price=product.price,
            carbon_impact=product.carbon_impact,
        )
        db.add(item)

    db.commit()
    db.refresh(cart)

    out = _cart_to_out(cart)
    write_log(db, user_id=current_user.id, action="CART_ADD", resource="cart",
              ip=client_ip(request),
              meta={"product_id": product.id, "quantity": payload.quantity, **_summary(out)})
    return out

@router.patch("/items/{item_id}", response_model=CartOut)
def update_cart_item(
    item_id: int,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _get_open_cart(db, current_user.id)

    item = db.query(CartItem).filter(CartItem.id == item_id, CartItem.cart_id == cart.id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")

    # Validate stock for the new quantity
    product = db.query(Product).filter(Product.id == item.product_id).first()
    if product and payload.quantity > product.stock:
        raise HTTPException(status_code=400, detail="Insufficient stock")

    item.quantity = payload.quantity
    db.commit()
    db.refresh(cart)

    out = _cart_to_out(cart)
    write_log(db, user_id=current_user.id, action="CART_UPDATE", resource="cart",
              ip=client_ip(request),
              meta={"item_id": item_id, "quantity": payload.quantity, **_summary(out)})
    return out

@router.delete("/items/{item_id}", response_model=CartOut)
def delete_cart_item(
    item_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _get_open_cart(db, current_user.id)

    item = db.query(CartItem).filter(CartItem.id == item_id, CartItem.cart_id == cart.id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")

    db.delete(item)
    db.commit()
    db.refresh(cart)

    out = _cart_to_out(cart)
    write_log(db, user_id=current_user.id, action="CART_DELETE", resource="cart",
              ip=client_ip(request), meta={"item_id": item_id, **_summary(out)})
    return out

@router.delete("", response_model=CartOut)
def clear_cart(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _get_open_cart(db, current_user.id)
    removed = len(cart.items)
    cart.items.clear()
    db.commit()
    db.refresh(cart)

    write_log(db, user_id=current_user.id, action="CART_CLEAR", resource="cart",
              ip=client_ip(request), meta={"removed": removed})
    return _cart_to_out(cart)
