import os

os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "orderdesk-test-secret")

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import Base, get_db
from app.api.auth import create_user_token, get_password_hash
from app.models import AppUser, Customer, Discount, DiscountType, Order, OrderLineItem, OrderStatus, Service
from main import app

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


class Seeder:
    """Inserts committed rows and hands back their ids"""

    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def staff(self, username="staff1", role="staff", password="secret"):
        user = AppUser(
            username=username,
            full_name=username.title(),
            role=role,
            hashed_password=get_password_hash(password),
        )
        return self._save(user).user_id

    def customer(self, points=0, full_name="Jane Customer"):
        return self._save(Customer(full_name=full_name, points=points)).customer_id

    def service(self, price, name="Haircut", is_deleted=False):
        service = Service(service_name=name, service_price_per_unit=Decimal(price), is_deleted=is_deleted)
        return self._save(service).service_id

    def discount(self, required_points, discount_type=DiscountType.PERCENT, amount=10, is_deleted=False):
        discount = Discount(
            discount_type=discount_type,
            amount=amount,
            required_points=required_points,
            is_deleted=is_deleted,
        )
        return self._save(discount).discount_id

    def order(self, customer_id, handler_id, lines, order_date=None, discount_id=None,
              status=OrderStatus.PENDING, is_deleted=False):
        """``lines`` is a list of (service_id, number_of_unit, total_price)"""
        order = Order(
            customer_id=customer_id,
            handler_id=handler_id,
            discount_id=discount_id,
            order_status=status,
            order_date=order_date or datetime.now(),
            is_deleted=is_deleted,
        )
        self.db.add(order)
        self.db.flush()
        for service_id, units, total in lines:
            self.db.add(OrderLineItem(
                order_id=order.order_id,
                service_id=service_id,
                number_of_unit=units,
                total_price=Decimal(total),
            ))
        self.db.commit()
        return order.order_id

    # Reads always go to the database, not the identity map
    def points(self, customer_id):
        self.db.expire_all()
        return self.db.get(Customer, customer_id).points

    def count(self, model):
        self.db.expire_all()
        return self.db.query(model).count()

    def get(self, model, ident):
        self.db.expire_all()
        return self.db.get(model, ident)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def staff_id(seed):
    return seed.staff()


@pytest.fixture
def auth_headers(db, staff_id):
    user = db.get(AppUser, staff_id)
    return {"Authorization": f"Bearer {create_user_token(user)}"}
