from farmfresh.extensions import db
from farmfresh.models.base import PKType, TimestampMixin


class FarmerProfile(TimestampMixin, db.Model):
    __tablename__ = "farmers"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    farm_name = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(255), nullable=True)
    district = db.Column(db.String(100), nullable=True)
    address = db.Column(db.Text, nullable=True)
    farm_size = db.Column(db.Numeric(10, 2), nullable=True)
    certification = db.Column(db.String(255), nullable=True)
    products_offered = db.Column(db.JSON, nullable=False, default=list)
    experience = db.Column(db.String(50), nullable=True)

    bank_name = db.Column(db.String(255), nullable=True)
    account_number = db.Column(db.String(100), nullable=True)
    account_holder_name = db.Column(db.String(255), nullable=True)
    mobile_banking_provider = db.Column(db.String(50), nullable=True)
    mobile_banking_number = db.Column(db.String(20), nullable=True)

    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    rating = db.Column(db.Numeric(3, 2), nullable=False, default=0)
    total_reviews = db.Column(db.Integer, nullable=False, default=0)

    user = db.relationship("User", back_populates="farmer_profile")
    products = db.relationship("Product", back_populates="farmer", lazy="dynamic", cascade="all, delete-orphan")
    auctions = db.relationship("Auction", back_populates="farmer", lazy="dynamic", cascade="all, delete-orphan")
