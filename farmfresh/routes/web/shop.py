from flask import Blueprint, current_app, jsonify, redirect, request, url_for
from flask_login import current_user, login_required

from farmfresh.errors import ConflictError, NotFoundError
from farmfresh.extensions import db
from farmfresh.routes.helpers import form_or_json
from farmfresh.serializers import farmer_to_dict
from farmfresh.services import ShopService
from farmfresh.services.shop_service import BANKING_FIELDS, FARM_FIELDS

web_shop_bp = Blueprint("web_shop", __name__)


def _shop_fields():
    payload = form_or_json()
    fields = {name: payload.get(name) for name in FARM_FIELDS + BANKING_FIELDS}
    if request.is_json:
        fields["products_offered"] = payload.get("products_offered")
    else:
        fields["products_offered"] = request.form.getlist("products_offered") or request.form.getlist("products")
    return fields


@web_shop_bp.get("/create-shop")
@login_required
def create_shop_form():
    if ShopService(db.session).get_profile(current_user.id) is not None:
        return redirect(url_for("web_shop.farm_profile"))
    return jsonify({"form": "create-shop", "fields": list(FARM_FIELDS + BANKING_FIELDS)})


@web_shop_bp.post("/create-shop")
@login_required
def create_shop():
    try:
        ShopService(db.session).create_shop(current_user.id, _shop_fields())
    except ConflictError:
        return redirect(url_for("web_shop.farm_profile"))
    return redirect(url_for("web_shop.farm_profile"), code=303)


@web_shop_bp.get("/my-farm")
@login_required
def farm_profile():
    profile = ShopService(db.session).get_profile(current_user.id)
    if profile is None:
        return redirect(url_for("web_shop.create_shop_form"))
    return jsonify(farmer_to_dict(profile))


@web_shop_bp.post("/edit-farm")
@login_required
def edit_farm():
    try:
        ShopService(db.session).edit_farm(current_user.id, _shop_fields())
    except NotFoundError:
        return redirect(url_for("web_shop.create_shop_form"))
    return redirect(url_for("web_shop.farm_profile"), code=303)


@web_shop_bp.post("/edit-banking")
@login_required
def edit_banking():
    try:
        ShopService(db.session).edit_banking(current_user.id, _shop_fields())
    except NotFoundError:
        return redirect(url_for("web_shop.create_shop_form"))
    return redirect(url_for("web_shop.farm_profile"), code=303)


@web_shop_bp.get("/farmers")
def farmer_directory():
    page = request.args.get("page", default=1, type=int)
    per_page = request.args.get("per_page", default=current_app.config.get("PRODUCTS_PER_PAGE", 12), type=int)
    paginated = ShopService(db.session).list_farmers(
        page=max(page, 1),
        per_page=min(max(per_page, 1), 50),
        district=request.args.get("district"),
    )
    return jsonify(
        {
            "items": [farmer_to_dict(profile, include_banking=False) for profile in paginated.items],
            "meta": {
                "page": paginated.page,
                "pages": paginated.pages,
                "total": paginated.total,
                "has_next": paginated.has_next,
                "has_prev": paginated.has_prev,
            },
        }
    )
