from farmfresh.extensions import db
from farmfresh.models.base import PKType, TimestampMixin


class Product(TimestampMixin, db.Model):
    __tablename__ = "products"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    farmer_id = db.Column(PKType, db.ForeignKey("farmers.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(100), nullable=True, index=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    market_price = db.Column(db.Numeric(10, 2), nullable=True)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(50), nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    is_organic = db.Column(db.Boolean, nullable=False, default=False)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    rating = db.Column(db.Numeric(3, 2), nullable=False, default=0)
    total_reviews = db.Column(db.Integer, nullable=False, default=0)

    farmer = db.relationship("FarmerProfile", back_populates="products")
    reviews = db.relationship("Review", back_populates="product", lazy="dynamic", cascade="all, delete-orphan")
    cart_entries = db.relationship("CartEntry", back_populates="product", lazy="dynamic", cascade="all, delete-orphan")
    wishlist_entries = db.relationship(
        "WishlistEntry", back_populates="product", lazy="dynamic", cascade="all, delete-orphan"
    )
    order_items = db.relationship("OrderItem", back_populates="product", lazy="dynamic", passive_deletes=True)

    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="stock_non_negative"),
        db.CheckConstraint("price > 0", name="price_positive"),
    )
