from farmfresh.services.auction_service import AuctionService
from farmfresh.services.auth_service import AuthService
from farmfresh.services.cart_service import CartService
from farmfresh.services.notification_service import NotificationService
from farmfresh.services.order_service import OrderService
from farmfresh.services.product_service import ProductService
from farmfresh.services.review_service import ReviewService
from farmfresh.services.shop_service import ShopService
from farmfresh.services.wishlist_service import WishlistService

__all__ = [
    "AuctionService",
    "AuthService",
    "CartService",
    "NotificationService",
    "OrderService",
    "ProductService",
    "ReviewService",
    "ShopService",
    "WishlistService",
]
