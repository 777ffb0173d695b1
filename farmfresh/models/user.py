from flask_login import UserMixin

from farmfresh.extensions import db
from farmfresh.models.base import PKType, TimestampMixin
from farmfresh.roles import Role


class User(UserMixin, TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    role = db.Column(db.String(50), nullable=False, default=Role.BUYER.value, index=True)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)

    farmer_profile = db.relationship(
        "FarmerProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    cart_entries = db.relationship("CartEntry", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    wishlist_entries = db.relationship(
        "WishlistEntry", back_populates="user", lazy="dynamic", cascade="all, delete-orphan"
    )
    reviews = db.relationship("Review", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    orders = db.relationship("Order", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    bids = db.relationship("Bid", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    notifications = db.relationship(
        "Notification", back_populates="user", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.CheckConstraint("role IN ('buyer', 'seller')", name="role"),
    )

    @property
    def role_enum(self):
        return Role(self.role)

    @property
    def is_seller(self):
        return self.role_enum is Role.SELLER
