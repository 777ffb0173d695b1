from farmfresh.extensions import db
from farmfresh.models.base import PKType, TimestampMixin, utcnow


class Order(TimestampMixin, db.Model):
    __tablename__ = "orders"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    order_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    delivery_date = db.Column(db.DateTime(timezone=True), nullable=True)
    total_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    delivery_address = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(50), nullable=False, default="pending", index=True)
    payment_method = db.Column(db.String(50), nullable=True)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user = db.relationship("User", back_populates="orders")
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    order_id = db.Column(PKType, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # Order history outlives the listing; name and prices are snapshots.
    product_id = db.Column(PKType, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product", back_populates="order_items")

    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="quantity_positive"),
    )
