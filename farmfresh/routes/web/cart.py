from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from farmfresh.errors import InvalidInputError
from farmfresh.extensions import db
from farmfresh.routes.helpers import form_or_json
from farmfresh.serializers import order_to_dict
from farmfresh.services import CartService, OrderService

web_cart_bp = Blueprint("web_cart", __name__)


def _int_field(payload, *names):
    for name in names:
        value = payload.get(name)
        if value not in (None, ""):
            try:
                return int(value)
            except (TypeError, ValueError) as exc:
                raise InvalidInputError(f"{name} must be an integer.") from exc
    raise InvalidInputError(f"{names[0]} is required.")


@web_cart_bp.get("/cart")
@login_required
def view_cart():
    return jsonify(CartService(db.session).cart_summary(current_user.id))


@web_cart_bp.post("/cart/add")
@login_required
def add_to_cart():
    payload = form_or_json()
    service = CartService(db.session)
    entry = service.add_to_cart(
        user_id=current_user.id,
        product_id=_int_field(payload, "productId", "product_id"),
        quantity=payload.get("quantity", 1),
    )
    return jsonify(
        {
            "success": True,
            "message": "Added to cart.",
            "cartId": entry.id,
            "quantity": entry.quantity,
            "cartCount": service.cart_count(current_user.id),
        }
    )


@web_cart_bp.post("/cart/update")
@login_required
def update_cart():
    payload = form_or_json()
    service = CartService(db.session)
    entry = service.update_quantity(
        cart_id=_int_field(payload, "cartId", "cart_id"),
        user_id=current_user.id,
        quantity=payload.get("quantity"),
    )
    return jsonify(
        {
            "success": True,
            "message": "Cart updated.",
            "cartId": entry.id,
            "quantity": entry.quantity,
            "cartCount": service.cart_count(current_user.id),
        }
    )


@web_cart_bp.delete("/cart/remove/<int:cart_id>")
@login_required
def remove_from_cart(cart_id):
    service = CartService(db.session)
    service.remove_from_cart(cart_id, current_user.id)
    return jsonify({"success": True, "message": "Removed from cart.", "cartCount": service.cart_count(current_user.id)})


@web_cart_bp.post("/checkout")
@login_required
def checkout():
    payload = form_or_json()
    order = OrderService(db.session).place_order(
        user_id=current_user.id,
        delivery_address=payload.get("delivery_address") or payload.get("deliveryAddress"),
        payment_method=payload.get("payment_method") or payload.get("paymentMethod"),
    )
    return jsonify({"success": True, "message": "Order placed.", "order": order_to_dict(order)}), 201
