from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from farmfresh.extensions import db
from farmfresh.routes.helpers import form_or_json
from farmfresh.serializers import product_to_dict, review_to_dict
from farmfresh.services import ProductService, ReviewService, WishlistService

web_product_bp = Blueprint("web_product", __name__)


@web_product_bp.get("/product/<int:product_id>")
def product_detail(product_id):
    product = ProductService(db.session).get_product(product_id)
    reviews = ReviewService(db.session).reviews_for_product(product.id)
    return jsonify({"product": product_to_dict(product), "reviews": [review_to_dict(r) for r in reviews]})


@web_product_bp.post("/product/<int:product_id>/rate")
@login_required
def rate_product(product_id):
    payload = form_or_json()
    review, product = ReviewService(db.session).rate(current_user.id, product_id, payload.get("rating"))
    return jsonify(
        {
            "success": True,
            "message": "Rating saved.",
            "userRating": review.rating,
            "rating": float(product.rating),
            "totalReviews": product.total_reviews,
        }
    )


@web_product_bp.post("/product/<int:product_id>/comment")
@login_required
def comment_product(product_id):
    payload = form_or_json()
    review = ReviewService(db.session).comment(current_user.id, product_id, payload.get("comment"))
    return jsonify({"success": True, "message": "Comment saved.", "comment": review.comment})


@web_product_bp.delete("/product/<int:product_id>/comment")
@login_required
def delete_comment(product_id):
    ReviewService(db.session).delete_comment(current_user.id, product_id)
    return jsonify({"success": True, "message": "Comment removed."})


@web_product_bp.delete("/product/<int:product_id>/review")
@login_required
def delete_review(product_id):
    product = ReviewService(db.session).delete_review(current_user.id, product_id)
    return jsonify(
        {
            "success": True,
            "message": "Review removed.",
            "rating": float(product.rating),
            "totalReviews": product.total_reviews,
        }
    )


@web_product_bp.post("/product/<int:product_id>/wishlist")
@login_required
def toggle_wishlist(product_id):
    saved = WishlistService(db.session).toggle(current_user.id, product_id)
    return jsonify({"success": True, "saved": saved, "message": "Saved." if saved else "Removed."})


@web_product_bp.get("/wishlist")
@login_required
def wishlist():
    entries = WishlistService(db.session).list_for_user(current_user.id)
    return jsonify([product_to_dict(entry.product) for entry in entries])
