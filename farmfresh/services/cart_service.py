from decimal import Decimal

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from farmfresh.errors import ForbiddenError, InsufficientStockError, InvalidInputError, NotFoundError
from farmfresh.models import CartEntry, Product


def parse_quantity(quantity):
    try:
        qty = int(quantity)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError("Quantity must be a positive whole number.") from exc
    if isinstance(quantity, float) and quantity != qty:
        raise InvalidInputError("Quantity must be a positive whole number.")
    if qty <= 0:
        raise InvalidInputError("Quantity must be a positive whole number.")
    return qty


class CartService:
    """Per-user product quantities, capped by the product's current stock.

    Stock is checked against the snapshot read in this request and is not
    reserved; two concurrent adds can jointly exceed it. Order placement
    re-validates stock when it commits.
    """

    def __init__(self, session):
        self.session = session

    def _find_entry(self, user_id, product_id):
        return self.session.query(CartEntry).filter_by(user_id=user_id, product_id=product_id).first()

    @staticmethod
    def _ensure_stock(product, wanted):
        if wanted > product.stock_quantity:
            raise InsufficientStockError(
                f"Only {product.stock_quantity} {product.unit or 'units'} of {product.name} available."
            )

    def _increment(self, entry, product, qty):
        self._ensure_stock(product, entry.quantity + qty)
        entry.quantity = CartEntry.quantity + qty
        self.session.commit()
        return entry

    def add_to_cart(self, user_id, product_id, quantity=1):
        qty = parse_quantity(quantity)
        product = self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found.")

        entry = self._find_entry(user_id, product.id)
        if entry is not None:
            return self._increment(entry, product, qty)

        self._ensure_stock(product, qty)
        entry = CartEntry(user_id=user_id, product_id=product.id, quantity=qty)
        self.session.add(entry)
        try:
            self.session.commit()
            return entry
        except IntegrityError:
            self.session.rollback()

        # Lost the insert race on (user_id, product_id): add onto the winner's row.
        current_app.logger.info("Cart insert collided for user %s product %s", user_id, product_id)
        product = self.session.get(Product, product_id)
        entry = self._find_entry(user_id, product_id)
        if product is None or entry is None:
            raise NotFoundError("Product not found.")
        return self._increment(entry, product, qty)

    def update_quantity(self, cart_id, user_id, quantity):
        entry = self.session.get(CartEntry, cart_id)
        if entry is None:
            raise NotFoundError("Cart item not found.")
        if entry.user_id != user_id:
            raise ForbiddenError("This cart item belongs to another user.")
        qty = parse_quantity(quantity)
        self._ensure_stock(entry.product, qty)
        entry.quantity = qty
        self.session.commit()
        return entry

    def remove_from_cart(self, cart_id, user_id):
        entry = self.session.query(CartEntry).filter_by(id=cart_id, user_id=user_id).first()
        if entry is None:
            raise NotFoundError("Cart item not found.")
        self.session.delete(entry)
        self.session.commit()

    def entries_for_user(self, user_id):
        return (
            self.session.query(CartEntry)
            .options(joinedload(CartEntry.product))
            .filter_by(user_id=user_id)
            .order_by(CartEntry.added_at.asc(), CartEntry.id.asc())
            .all()
        )

    def cart_count(self, user_id):
        return self.session.query(func.count(CartEntry.id)).filter(CartEntry.user_id == user_id).scalar() or 0

    def cart_summary(self, user_id):
        items = []
        total = Decimal("0.00")
        for entry in self.entries_for_user(user_id):
            price = Decimal(str(entry.product.price))
            subtotal = (price * entry.quantity).quantize(Decimal("0.01"))
            total += subtotal
            items.append(
                {
                    "cart_id": entry.id,
                    "product_id": entry.product_id,
                    "name": entry.product.name,
                    "unit": entry.product.unit,
                    "price": str(price),
                    "quantity": entry.quantity,
                    "stock_quantity": entry.product.stock_quantity,
                    "subtotal": str(subtotal),
                }
            )
        return {"items": items, "count": len(items), "total": str(total.quantize(Decimal("0.01")))}
