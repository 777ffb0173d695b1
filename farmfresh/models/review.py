from farmfresh.extensions import db
from farmfresh.models.base import PKType, TimestampMixin


class Review(TimestampMixin, db.Model):
    __tablename__ = "reviews"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(PKType, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = db.Column(db.SmallInteger, nullable=False)
    comment = db.Column(db.Text, nullable=True)

    user = db.relationship("User", back_populates="reviews")
    product = db.relationship("Product", back_populates="reviews")

    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", name="uq_review_user_product"),
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="rating_range"),
    )
