from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from farmfresh.extensions import db
from farmfresh.serializers import order_to_dict
from farmfresh.services import OrderService

api_order_bp = Blueprint("api_order", __name__)


@api_order_bp.get("")
@login_required
def my_orders():
    orders = OrderService(db.session).list_orders(current_user.id)
    return jsonify([order_to_dict(order) for order in orders])


@api_order_bp.post("")
@login_required
def place_order():
    payload = request.get_json(silent=True) or {}
    order = OrderService(db.session).place_order(
        user_id=current_user.id,
        delivery_address=payload.get("delivery_address"),
        payment_method=payload.get("payment_method"),
    )
    return jsonify(order_to_dict(order)), 201


@api_order_bp.get("/<int:order_id>")
@login_required
def get_order(order_id):
    order = OrderService(db.session).get_order(order_id, current_user.id)
    return jsonify(order_to_dict(order))


@api_order_bp.patch("/<int:order_id>/status")
@login_required
def update_status(order_id):
    payload = request.get_json(silent=True) or {}
    order = OrderService(db.session).transition_order(order_id, current_user, payload.get("status"))
    return jsonify({"id": order.id, "status": order.status})
