from datetime import timedelta

import pytest

from farmfresh import create_app
from farmfresh.extensions import db
from farmfresh.models.base import utcnow
from farmfresh.services import AuthService, ProductService, ShopService

PASSWORD = "harvest123"


@pytest.fixture()
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def session(app):
    with app.app_context():
        yield db.session


@pytest.fixture()
def client(app):
    return app.test_client()


def make_user(session, email, role="buyer", name="Test User"):
    return AuthService(session).register(name=name, email=email, password=PASSWORD, role=role)


def make_seller(session, email="seller@farm.test", farm_name="Green Acres"):
    user = make_user(session, email, role="seller", name="Sam Seller")
    ShopService(session).create_shop(user.id, {"farm_name": farm_name, "district": "Nakuru"})
    return user


def make_product(session, seller, name="Tomatoes", price="2.50", stock=10):
    return ProductService(session).create_product(
        seller.id,
        {"name": name, "price": price, "stock_quantity": stock, "unit": "kg", "category": "vegetables"},
    )


def login(client, email, password=PASSWORD):
    return client.post("/login", data={"email": email, "password": password})


@pytest.fixture()
def marketplace(app):
    """One seller with two products and one buyer, returned as ids."""
    with app.app_context():
        seller = make_seller(db.session)
        tomatoes = make_product(db.session, seller, name="Tomatoes", price="2.50", stock=10)
        honey = make_product(db.session, seller, name="Honey", price="8.00", stock=3)
        buyer = make_user(db.session, "buyer@farm.test", name="Bea Buyer")
        return {
            "seller_id": seller.id,
            "seller_email": seller.email,
            "farmer_id": seller.farmer_profile.id,
            "buyer_id": buyer.id,
            "buyer_email": buyer.email,
            "tomatoes_id": tomatoes.id,
            "honey_id": honey.id,
        }


@pytest.fixture()
def auction_window():
    now = utcnow()
    return now - timedelta(hours=1), now + timedelta(hours=1)
