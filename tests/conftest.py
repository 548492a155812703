"""Pytest fixtures for EcoBazaar tests."""

import itertools
import os
from datetime import datetime
from decimal import Decimal

# Keep the app's own engine off the filesystem
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
import models.users  # noqa: F401
import models.product  # noqa: F401
import models.cart  # noqa: F401
import models.order  # noqa: F401
import models.log  # noqa: F401
from models.cart import Cart, CartItem
from models.order import Order, OrderItem, OrderStatus
from models.product import Product
from models.users import Role, User
from utils.carbon import apply_carbon_rating, classify
from utils.order_lifecycle import create_order_from_cart
from utils.tokenJWT import get_current_user


@pytest.fixture
def engine():
    """In-memory SQLite shared by every connection of one test."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Factory for persisted users."""
    counter = itertools.count(1)

    def _make(role=Role.USER, name=None, eco_score=0, banned=False):
        n = next(counter)
        user = User(
            email=f"user{n}@example.com",
            password_hash="not-a-real-hash",
            name=name or f"User {n}",
            role=role,
            eco_score=eco_score,
            banned=banned,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_product(db):
    """Factory for persisted products; rating and certification are derived."""

    def _make(seller, name="Product", category="Home", price="10.00", carbon="5.00",
              stock=10, approved=True):
        product = Product(
            name=name,
            category=category,
            price=Decimal(price),
            carbon_impact=Decimal(carbon),
            stock=stock,
            approved=approved,
            seller_id=seller.id,
        )
        apply_carbon_rating(product)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def fill_cart(db):
    """Puts (product, quantity) lines into the user's open cart."""

    def _fill(user, lines):
        cart = db.query(Cart).filter(Cart.user_id == user.id, Cart.status == "open").first()
        if cart is None:
            cart = Cart(user_id=user.id, status="open")
            db.add(cart)
            db.flush()
        for product, quantity in lines:
            cart.items.append(CartItem(
                product_id=product.id,
                quantity=quantity,
                price=product.price,
                carbon_impact=product.carbon_impact,
            ))
        db.commit()
        return cart

    return _fill


@pytest.fixture
def place_order(db, fill_cart):
    """Full checkout through the order lifecycle."""

    def _place(user, lines, now=None):
        fill_cart(user, lines)
        return create_order_from_cart(db, user, now=now)

    return _place


@pytest.fixture
def make_order(db):
    """Writes an order snapshot directly, bypassing cart and stock."""

    def _make(buyer, lines, status=OrderStatus.PENDING, order_date=None, delivered_date=None,
              certified=None):
        order = Order(
            user_id=buyer.id,
            status=status,
            order_date=order_date or datetime(2024, 5, 15, 12, 0),
            delivered_date=delivered_date,
            total_price=Decimal("0"),
            total_carbon=Decimal("0"),
            total_items=0,
        )
        for product, quantity in lines:
            price = Decimal(product.price)
            carbon = Decimal(product.carbon_impact)
            order.items.append(OrderItem(
                product_id=product.id,
                seller_id=product.seller_id,
                product_name=product.name,
                category=product.category,
                eco_rating=classify(carbon),
                eco_certified=product.eco_certified if certified is None else certified,
                quantity=quantity,
                price=price,
                carbon_impact=carbon,
                subtotal=price * quantity,
                total_carbon=carbon * quantity,
            ))
            order.total_price += price * quantity
            order.total_carbon += carbon * quantity
            order.total_items += quantity
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make


@pytest.fixture
def client(db):
    """TestClient bound to the test session, unauthenticated."""
    from main import app

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(client):
    """Makes subsequent client requests act as the given user."""
    from main import app

    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user
        return client

    return _login
