from farmfresh.extensions import db
from farmfresh.models.base import PKType, TimestampMixin, ensure_utc, utcnow


class Auction(TimestampMixin, db.Model):
    __tablename__ = "auctions"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    farmer_id = db.Column(PKType, db.ForeignKey("farmers.id", ondelete="CASCADE"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(100), nullable=True)
    starting_price = db.Column(db.Numeric(10, 2), nullable=False)
    current_bid = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    highest_bidder_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    total_bids = db.Column(db.Integer, nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False)
    unit = db.Column(db.String(50), nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    end_time = db.Column(db.DateTime(timezone=True), nullable=False)
    status = db.Column(db.String(50), nullable=False, default="pending", index=True)

    farmer = db.relationship("FarmerProfile", back_populates="auctions")
    highest_bidder = db.relationship("User", foreign_keys=[highest_bidder_id])
    bids = db.relationship(
        "Bid",
        back_populates="auction",
        lazy="dynamic",
        cascade="all, delete-orphan",
        order_by="Bid.bid_amount.desc()",
    )

    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="quantity_positive"),
        db.CheckConstraint("end_time > start_time", name="window"),
    )

    def is_open(self, now):
        if self.status == "ended":
            return False
        return ensure_utc(self.start_time) <= now < ensure_utc(self.end_time)

    def minimum_bid(self):
        return max(self.current_bid or 0, self.starting_price or 0)


class Bid(db.Model):
    __tablename__ = "bids"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    auction_id = db.Column(PKType, db.ForeignKey("auctions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    bid_amount = db.Column(db.Numeric(10, 2), nullable=False)
    bid_time = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    auction = db.relationship("Auction", back_populates="bids")
    user = db.relationship("User", back_populates="bids")
