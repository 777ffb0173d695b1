from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from farmfresh.errors import ConflictError, ForbiddenError, InsufficientStockError, InvalidInputError
from farmfresh.models import CartEntry, Notification, Order, OrderItem, Product, User
from farmfresh.serializers import order_to_dict
from farmfresh.services import CartService, OrderService, ProductService

from tests.conftest import login, make_product, make_seller, make_user


@pytest.fixture()
def stocked_cart(session):
    seller = make_seller(session)
    tomatoes = make_product(session, seller, name="Tomatoes", price="2.50", stock=10)
    honey = make_product(session, seller, name="Honey", price="8.00", stock=3)
    buyer = make_user(session, "buyer@farm.test")
    cart = CartService(session)
    cart.add_to_cart(buyer.id, tomatoes.id, 4)
    cart.add_to_cart(buyer.id, honey.id, 2)
    return seller, buyer, tomatoes, honey


def test_place_order_snapshots_items_and_takes_stock(session, stocked_cart):
    seller, buyer, tomatoes, honey = stocked_cart

    order = OrderService(session).place_order(buyer.id, "12 Market Road", "cod")

    assert order.status == "pending"
    assert order.total_price == Decimal("26.00")
    assert [(i.product_id, i.quantity, i.subtotal) for i in order.items] == [
        (tomatoes.id, 4, Decimal("10.00")),
        (honey.id, 2, Decimal("16.00")),
    ]
    assert session.get(Product, tomatoes.id).stock_quantity == 6
    assert session.get(Product, honey.id).stock_quantity == 1
    assert session.query(CartEntry).filter_by(user_id=buyer.id).count() == 0
    assert session.query(Notification).filter_by(user_id=seller.id, title="New order").count() == 1


def test_item_price_is_not_recomputed_after_price_change(session, stocked_cart):
    seller, buyer, tomatoes, _ = stocked_cart
    order = OrderService(session).place_order(buyer.id, "12 Market Road")

    ProductService(session).update_product(seller.id, tomatoes.id, {"price": "9.99"})

    item = session.query(OrderItem).filter_by(order_id=order.id, product_id=tomatoes.id).one()
    assert item.price == Decimal("2.50")
    assert item.subtotal == Decimal("10.00")


def test_insufficient_stock_at_commit_rolls_back_everything(session, stocked_cart):
    seller, buyer, tomatoes, honey = stocked_cart
    # Stock dropped after the honey was carted.
    ProductService(session).update_product(seller.id, honey.id, {"stock_quantity": 1})

    with pytest.raises(InsufficientStockError):
        OrderService(session).place_order(buyer.id, "12 Market Road")

    assert session.query(Order).count() == 0
    assert session.query(OrderItem).count() == 0
    assert session.get(Product, tomatoes.id).stock_quantity == 10
    assert session.query(CartEntry).filter_by(user_id=buyer.id).count() == 2


def test_empty_cart_and_missing_address(session, stocked_cart):
    _, buyer, _, _ = stocked_cart
    other = make_user(session, "empty@farm.test")
    service = OrderService(session)

    with pytest.raises(InvalidInputError):
        service.place_order(other.id, "Somewhere")
    with pytest.raises(InvalidInputError):
        service.place_order(buyer.id, "   ")
    with pytest.raises(InvalidInputError):
        service.place_order(buyer.id, "Somewhere", "barter")


def test_buyer_cancel_restores_stock(session, stocked_cart):
    _, buyer, tomatoes, honey = stocked_cart
    service = OrderService(session)
    order = service.place_order(buyer.id, "12 Market Road")

    service.transition_order(order.id, buyer, "cancelled")

    assert order.status == "cancelled"
    assert order.cancelled_at is not None
    assert session.get(Product, tomatoes.id).stock_quantity == 10
    assert session.get(Product, honey.id).stock_quantity == 3


def test_seller_advances_order_to_delivered(session, stocked_cart):
    seller, buyer, _, _ = stocked_cart
    service = OrderService(session)
    order = service.place_order(buyer.id, "12 Market Road")

    for status in ("confirmed", "shipped", "delivered"):
        service.transition_order(order.id, seller, status)

    assert order.status == "delivered"
    assert order.is_paid is True
    assert order.delivery_date is not None
    assert session.query(Notification).filter_by(user_id=buyer.id).count() == 3


def test_transition_rules(session, stocked_cart):
    seller, buyer, _, _ = stocked_cart
    stranger = make_seller(session, email="stranger@farm.test", farm_name="Far Away")
    service = OrderService(session)
    order = service.place_order(buyer.id, "12 Market Road")

    with pytest.raises(ForbiddenError):
        service.transition_order(order.id, buyer, "shipped")
    with pytest.raises(ForbiddenError):
        service.transition_order(order.id, stranger, "confirmed")
    with pytest.raises(ConflictError):
        service.transition_order(order.id, seller, "delivered")


def test_checkout_route(client, marketplace):
    login(client, marketplace["buyer_email"])
    client.post("/cart/add", json={"productId": marketplace["tomatoes_id"], "quantity": 2})

    response = client.post("/checkout", json={"delivery_address": "5 Orchard Lane", "payment_method": "cod"})

    assert response.status_code == 201
    order = response.get_json()["order"]
    assert order["total_price"] == "5.00"
    assert client.get("/cart").get_json()["count"] == 0

    listing = client.get("/api/v1/orders").get_json()
    assert [o["id"] for o in listing] == [order["id"]]


def test_order_status_route_for_seller(client, marketplace):
    login(client, marketplace["buyer_email"])
    client.post("/cart/add", json={"productId": marketplace["honey_id"], "quantity": 1})
    order_id = client.post("/api/v1/orders", json={"delivery_address": "5 Orchard Lane"}).get_json()["id"]
    client.get("/logout")

    login(client, marketplace["seller_email"])
    response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "confirmed"})

    assert response.status_code == 200
    assert response.get_json()["status"] == "confirmed"
    assert client.get(f"/api/v1/orders/{order_id}").status_code == 200


@pytest.fixture()
def mixed_order(session, stocked_cart):
    seller, buyer, tomatoes, honey = stocked_cart
    other = make_seller(session, email="orchard@farm.test", farm_name="Orchard Hill")
    apples = make_product(session, other, name="Apples", price="1.00", stock=5)
    CartService(session).add_to_cart(buyer.id, apples.id, 2)
    order = OrderService(session).place_order(buyer.id, "12 Market Road")
    return order, seller, other, buyer, tomatoes, apples


def test_seller_cannot_drive_order_with_other_farmers_items(session, mixed_order):
    order, seller, other, _, tomatoes, apples = mixed_order
    service = OrderService(session)

    for actor in (seller, other):
        for status in ("cancelled", "confirmed"):
            with pytest.raises(ForbiddenError):
                service.transition_order(order.id, actor, status)

    assert order.status == "pending"
    assert session.get(Product, tomatoes.id).stock_quantity == 6
    assert session.get(Product, apples.id).stock_quantity == 3


def test_both_sellers_can_still_see_mixed_order(session, mixed_order):
    order, seller, other, _, _, _ = mixed_order
    service = OrderService(session)

    assert service.get_order(order.id, seller.id).id == order.id
    assert service.get_order(order.id, other.id).id == order.id


def test_buyer_cancels_mixed_order_restoring_every_seller(session, mixed_order):
    order, _, _, buyer, tomatoes, apples = mixed_order

    OrderService(session).transition_order(order.id, buyer, "cancelled")

    assert session.get(Product, tomatoes.id).stock_quantity == 10
    assert session.get(Product, apples.id).stock_quantity == 5


def test_deleting_ordered_product_keeps_order_history(session, stocked_cart):
    seller, buyer, tomatoes, _ = stocked_cart
    tomatoes_id = tomatoes.id
    order_id = OrderService(session).place_order(buyer.id, "12 Market Road").id

    ProductService(session).delete_product(seller.id, tomatoes_id)

    session.expire_all()
    assert session.get(Product, tomatoes_id) is None
    item = session.query(OrderItem).filter_by(order_id=order_id, product_name="Tomatoes").one()
    assert item.product_id is None
    assert item.product is None
    assert item.subtotal == Decimal("10.00")
    assert order_to_dict(session.get(Order, order_id))["items"][0]["name"] == "Tomatoes"


def test_cancelling_after_product_deleted_restores_remaining_stock(session, stocked_cart):
    seller, buyer, tomatoes, honey = stocked_cart
    honey_id = honey.id
    service = OrderService(session)
    order_id = service.place_order(buyer.id, "12 Market Road").id
    ProductService(session).delete_product(seller.id, tomatoes.id)

    service.transition_order(order_id, buyer, "cancelled")

    assert session.get(Product, honey_id).stock_quantity == 3


def test_deleting_seller_with_order_history(session, stocked_cart):
    seller, buyer, _, _ = stocked_cart
    seller_id = seller.id
    order_id = OrderService(session).place_order(buyer.id, "12 Market Road").id

    session.delete(session.get(User, seller_id))
    session.commit()

    session.expire_all()
    assert session.query(Product).count() == 0
    order = session.get(Order, order_id)
    assert [item.product_id for item in order.items] == [None, None]
    assert [item.product_name for item in order.items] == ["Tomatoes", "Honey"]


def test_foreign_keys_are_enforced(session, stocked_cart):
    _, buyer, _, _ = stocked_cart
    session.add(CartEntry(user_id=buyer.id, product_id=424242, quantity=1))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()
