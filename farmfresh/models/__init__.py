from farmfresh.models.auction import Auction, Bid
from farmfresh.models.cart import CartEntry, WishlistEntry
from farmfresh.models.farmer import FarmerProfile
from farmfresh.models.notification import Notification
from farmfresh.models.order import Order, OrderItem
from farmfresh.models.product import Product
from farmfresh.models.review import Review
from farmfresh.models.user import User

__all__ = [
    "User",
    "FarmerProfile",
    "Product",
    "CartEntry",
    "WishlistEntry",
    "Review",
    "Order",
    "OrderItem",
    "Auction",
    "Bid",
    "Notification",
]
