from flask import Blueprint, jsonify, redirect, request, url_for
from flask_login import current_user, login_required, login_user, logout_user

from farmfresh.extensions import db, limiter
from farmfresh.routes.helpers import form_or_json
from farmfresh.services import AuthService, CartService, NotificationService, ShopService

web_auth_bp = Blueprint("web_auth", __name__)


def _safe_next(default_endpoint):
    next_url = request.args.get("next") or ""
    if next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return url_for(default_endpoint)


@web_auth_bp.get("/")
def landing():
    return jsonify({"name": "FarmFresh", "authenticated": current_user.is_authenticated})


@web_auth_bp.route("/register", methods=["GET", "POST"])
@limiter.limit("15 per minute")
def register():
    if current_user.is_authenticated:
        return redirect(url_for("web_auth.landing"))

    if request.method == "GET":
        return jsonify({"form": "register", "fields": ["name", "email", "password", "phone", "role"]})

    payload = form_or_json()
    user = AuthService(db.session).register(
        name=payload.get("name", ""),
        email=payload.get("email", ""),
        password=payload.get("password", ""),
        phone=payload.get("phone"),
        role=payload.get("role"),
    )
    login_user(user)
    if user.is_seller:
        return redirect(url_for("web_shop.farm_profile"))
    return redirect(url_for("web_auth.landing"))


@web_auth_bp.route("/login", methods=["GET", "POST"])
@limiter.limit("20 per minute")
def login():
    if current_user.is_authenticated:
        return redirect(url_for("web_auth.landing"))

    if request.method == "GET":
        return jsonify({"form": "login", "fields": ["email", "password"]})

    payload = form_or_json()
    user = AuthService(db.session).authenticate(payload.get("email", ""), payload.get("password", ""))
    login_user(user, remember=str(payload.get("remember", "")).lower() in {"1", "true", "on"})
    return redirect(_safe_next("web_auth.landing"))


@web_auth_bp.get("/logout")
@login_required
def logout():
    logout_user()
    return redirect(url_for("web_auth.landing"))


@web_auth_bp.get("/me")
@login_required
def me():
    profile = ShopService(db.session).get_profile(current_user.id)
    return jsonify(
        {
            "id": current_user.id,
            "name": current_user.name,
            "email": current_user.email,
            "phone": current_user.phone,
            "role": current_user.role,
            "is_verified": current_user.is_verified,
            "has_farm": profile is not None,
            "cart_count": CartService(db.session).cart_count(current_user.id),
            "unread_notifications": NotificationService(db.session).unread_count(current_user.id),
        }
    )


@web_auth_bp.post("/me")
@login_required
def update_me():
    payload = form_or_json()
    user = AuthService(db.session).update_profile(
        current_user.id,
        name=payload.get("name", ""),
        phone=payload.get("phone"),
    )
    return jsonify({"success": True, "message": "Profile updated.", "name": user.name, "phone": user.phone})
