from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from farmfresh.decorators import role_required
from farmfresh.extensions import cache, db
from farmfresh.roles import Role
from farmfresh.serializers import product_to_dict
from farmfresh.services import ProductService

api_product_bp = Blueprint("api_product", __name__)


@api_product_bp.get("")
def list_products():
    page = request.args.get("page", default=1, type=int)
    default_per_page = current_app.config.get("PRODUCTS_PER_PAGE", 12)
    per_page = request.args.get("per_page", default=default_per_page, type=int)
    organic = request.args.get("organic")
    paginated = ProductService(db.session).list_products(
        page=max(page, 1),
        per_page=min(max(per_page, 1), 50),
        category=request.args.get("category"),
        search=request.args.get("q"),
        organic=None if organic is None else organic.lower() in {"1", "true", "yes"},
        farmer_id=request.args.get("farmer_id", type=int),
    )
    return jsonify(
        {
            "items": [product_to_dict(p) for p in paginated.items],
            "meta": {
                "page": paginated.page,
                "pages": paginated.pages,
                "total": paginated.total,
                "has_next": paginated.has_next,
                "has_prev": paginated.has_prev,
            },
        }
    )


@api_product_bp.post("")
@login_required
@role_required(Role.SELLER)
def create_product():
    payload = request.get_json(silent=True) or dict(request.form)
    product = ProductService(db.session).create_product(current_user.id, payload)
    return jsonify(product_to_dict(product)), 201


@api_product_bp.patch("/<int:product_id>")
@login_required
@role_required(Role.SELLER)
def update_product(product_id):
    payload = request.get_json(silent=True) or {}
    product = ProductService(db.session).update_product(current_user.id, product_id, payload)
    return jsonify(product_to_dict(product))


@api_product_bp.delete("/<int:product_id>")
@login_required
@role_required(Role.SELLER)
def delete_product(product_id):
    ProductService(db.session).delete_product(current_user.id, product_id)
    return jsonify({"success": True})


@api_product_bp.get("/stats")
@cache.cached(timeout=120)
def marketplace_stats():
    return jsonify(ProductService(db.session).marketplace_stats())
