from decimal import Decimal

import pytest

from farmfresh.errors import ForbiddenError, InvalidInputError, NotFoundError
from farmfresh.models import Product, Review
from farmfresh.services import ProductService, ReviewService

from tests.conftest import login, make_product, make_seller, make_user


def test_create_product_requires_farm_profile(session):
    seller = make_user(session, "seller@farm.test", role="seller")
    with pytest.raises(ForbiddenError):
        ProductService(session).create_product(seller.id, {"name": "Kale", "price": "1.20"})


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "", "price": "1.00"},
        {"name": "Kale", "price": "0"},
        {"name": "Kale", "price": "free"},
        {"name": "Kale", "price": "1.00", "stock_quantity": -1},
    ],
)
def test_create_product_validation(session, payload):
    seller = make_seller(session)
    with pytest.raises(InvalidInputError):
        ProductService(session).create_product(seller.id, payload)


def test_create_product_defaults(session):
    seller = make_seller(session)

    product = ProductService(session).create_product(
        seller.id, {"name": "Kale", "price": "1.2", "category": " Greens ", "is_organic": "on"}
    )

    assert product.price == Decimal("1.20")
    assert product.category == "greens"
    assert product.stock_quantity == 0
    assert product.is_organic is True
    assert product.rating == Decimal("0.00")
    assert product.total_reviews == 0


def test_only_owner_can_update(session):
    owner = make_seller(session)
    rival = make_seller(session, email="rival@farm.test", farm_name="Rival Farm")
    product = make_product(session, owner)
    service = ProductService(session)

    with pytest.raises(ForbiddenError):
        service.update_product(rival.id, product.id, {"price": "0.10"})
    with pytest.raises(NotFoundError):
        service.update_product(owner.id, 999, {"price": "1"})

    updated = service.update_product(owner.id, product.id, {"stock_quantity": "25"})
    assert updated.stock_quantity == 25
    assert updated.price == Decimal("2.50")


def test_delete_product_refreshes_farmer_rating(session):
    seller = make_seller(session)
    tomatoes = make_product(session, seller, name="Tomatoes")
    honey = make_product(session, seller, name="Honey")
    buyer = make_user(session, "buyer@farm.test")
    reviews = ReviewService(session)
    reviews.rate(buyer.id, tomatoes.id, 1)
    reviews.rate(buyer.id, honey.id, 5)

    ProductService(session).delete_product(seller.id, tomatoes.id)

    farmer = seller.farmer_profile
    session.refresh(farmer)
    assert farmer.rating == Decimal("5.00")
    assert farmer.total_reviews == 1
    assert session.query(Review).count() == 1
    assert session.get(Product, tomatoes.id) is None


def test_list_products_filters(session):
    seller = make_seller(session)
    service = ProductService(session)
    make_product(session, seller, name="Tomatoes")
    service.create_product(seller.id, {"name": "Wild Honey", "price": "8", "category": "pantry", "is_organic": True})

    assert service.list_products(search="honey").total == 1
    assert service.list_products(category="Vegetables").total == 1
    assert [p.name for p in service.list_products(organic=True).items] == ["Wild Honey"]
    assert service.list_products(farmer_id=seller.farmer_profile.id, per_page=1).pages == 2


def test_products_api_listing(client, marketplace):
    response = client.get("/api/v1/products?per_page=1")

    body = response.get_json()
    assert response.status_code == 200
    assert body["meta"]["total"] == 2
    assert body["meta"]["has_next"] is True
    assert len(body["items"]) == 1


def test_products_api_is_seller_only(client, marketplace):
    login(client, marketplace["buyer_email"])

    response = client.post("/api/v1/products", json={"name": "Sneaky", "price": "1"})

    assert response.status_code == 403


def test_seller_manages_products_over_api(client, marketplace):
    login(client, marketplace["seller_email"])

    created = client.post("/api/v1/products", json={"name": "Eggs", "price": "3.10", "stock_quantity": 30})
    assert created.status_code == 201
    product_id = created.get_json()["id"]

    patched = client.patch(f"/api/v1/products/{product_id}", json={"price": "3.40"})
    assert patched.get_json()["price"] == "3.40"

    assert client.delete(f"/api/v1/products/{product_id}").status_code == 200
    assert client.get(f"/product/{product_id}").status_code == 404


def test_marketplace_stats(client, marketplace):
    login(client, marketplace["buyer_email"])
    client.post(f"/product/{marketplace['tomatoes_id']}/rate", json={"rating": 3})

    stats = client.get("/api/v1/products/stats").get_json()

    assert stats["products"] == 2
    assert stats["rated_products"] == 1
    assert stats["farmers"] == 1
    assert stats["average_rating"] == 3.0
    assert stats["categories"] == ["vegetables"]
