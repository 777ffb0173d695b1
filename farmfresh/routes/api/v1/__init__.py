from flask import Blueprint

from farmfresh.extensions import csrf
from farmfresh.routes.api.v1.auctions import api_auction_bp
from farmfresh.routes.api.v1.notifications import api_notification_bp
from farmfresh.routes.api.v1.orders import api_order_bp
from farmfresh.routes.api.v1.products import api_product_bp

api_v1_bp = Blueprint("api_v1", __name__)
api_v1_bp.register_blueprint(api_product_bp, url_prefix="/products")
api_v1_bp.register_blueprint(api_order_bp, url_prefix="/orders")
api_v1_bp.register_blueprint(api_auction_bp, url_prefix="/auctions")
api_v1_bp.register_blueprint(api_notification_bp, url_prefix="/notifications")

csrf.exempt(api_v1_bp)
