from decimal import Decimal

from flask import current_app
from sqlalchemy import update

from farmfresh.errors import ConflictError, ForbiddenError, InsufficientStockError, InvalidInputError, NotFoundError
from farmfresh.models import CartEntry, Order, OrderItem, Product
from farmfresh.models.base import utcnow
from farmfresh.services.notification_service import NotificationService

PAYMENT_METHODS = {"cod", "bank_transfer", "mobile_banking"}

ORDER_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}
SELLER_STATUSES = {"confirmed", "shipped", "delivered", "cancelled"}
BUYER_STATUSES = {"cancelled"}


class OrderService:
    def __init__(self, session):
        self.session = session
        self.notifications = NotificationService(session)

    def _take_stock(self, product, quantity):
        result = self.session.execute(
            update(Product)
            .where(Product.id == product.id, Product.stock_quantity >= quantity)
            .values(stock_quantity=Product.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InsufficientStockError(f"Not enough stock left for {product.name}.")

    def _return_stock(self, product_id, quantity):
        self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )

    def place_order(self, user_id, delivery_address, payment_method=None):
        """Turn the user's cart into one order.

        Stock decrements and line items commit together or not at all. Cart
        rows are cleared only once the order is committed.
        """
        address = (delivery_address or "").strip()
        if not address:
            raise InvalidInputError("Delivery address is required.")
        method = (payment_method or "cod").strip().lower()
        if method not in PAYMENT_METHODS:
            raise InvalidInputError("Unsupported payment method.")

        entries = (
            self.session.query(CartEntry)
            .filter_by(user_id=user_id)
            .order_by(CartEntry.product_id.asc())
            .all()
        )
        if not entries:
            raise InvalidInputError("Your cart is empty.")

        purchased_ids = []
        try:
            order = Order(
                user_id=user_id,
                delivery_address=address,
                payment_method=method,
                status="pending",
                total_price=Decimal("0.00"),
            )
            self.session.add(order)
            total = Decimal("0.00")
            seller_ids = set()
            for entry in entries:
                product = entry.product
                self._take_stock(product, entry.quantity)
                price = Decimal(str(product.price))
                subtotal = (price * entry.quantity).quantize(Decimal("0.01"))
                order.items.append(
                    OrderItem(
                        product_id=product.id,
                        product_name=product.name,
                        quantity=entry.quantity,
                        price=price,
                        subtotal=subtotal,
                    )
                )
                total += subtotal
                purchased_ids.append(product.id)
                seller_ids.add(product.farmer.user_id)
            order.total_price = total
            self.session.flush()

            for seller_id in sorted(seller_ids):
                self.notifications.push(
                    user_id=seller_id,
                    title="New order",
                    message=f"Order #{order.id} includes your products.",
                )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        current_app.logger.info("Order %s placed by user %s (%s items)", order.id, user_id, len(purchased_ids))
        self.session.query(CartEntry).filter(
            CartEntry.user_id == user_id,
            CartEntry.product_id.in_(purchased_ids),
        ).delete(synchronize_session=False)
        self.session.commit()
        return order

    def list_orders(self, user_id):
        return (
            self.session.query(Order)
            .filter_by(user_id=user_id)
            .order_by(Order.order_date.desc(), Order.id.desc())
            .all()
        )

    @staticmethod
    def _item_seller_id(item):
        return item.product.farmer.user_id if item.product is not None else None

    def _seller_owns_item(self, order, user_id):
        return any(self._item_seller_id(item) == user_id for item in order.items)

    def _seller_owns_order(self, order, user_id):
        return bool(order.items) and all(self._item_seller_id(item) == user_id for item in order.items)

    def get_order(self, order_id, user_id):
        order = self.session.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found.")
        if order.user_id != user_id and not self._seller_owns_item(order, user_id):
            raise ForbiddenError("Not authorized for this order.")
        return order

    def transition_order(self, order_id, actor, new_status):
        order = self.session.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found.")
        new_status = (new_status or "").strip().lower()

        buyer_allowed = order.user_id == actor.id and new_status in BUYER_STATUSES
        # A seller may only drive orders made up entirely of their own products.
        seller_allowed = (
            actor.is_seller and new_status in SELLER_STATUSES and self._seller_owns_order(order, actor.id)
        )
        if not (buyer_allowed or seller_allowed):
            raise ForbiddenError("Not authorized for this order.")

        current = order.status
        if new_status not in ORDER_TRANSITIONS.get(current, set()):
            raise ConflictError(f"Invalid status transition from {current} to {new_status}.")

        now = utcnow()
        try:
            order.status = new_status
            if new_status == "cancelled":
                order.cancelled_at = now
                for item in order.items:
                    if item.product_id is not None:
                        self._return_stock(item.product_id, item.quantity)
            elif new_status == "delivered":
                order.delivery_date = now
                order.is_paid = True

            if actor.id != order.user_id:
                self.notifications.push(
                    user_id=order.user_id,
                    title=f"Order {new_status}",
                    message=f"Your order #{order.id} is now {new_status}.",
                )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return order
