from datetime import datetime, timezone
from decimal import Decimal

from flask import current_app
from sqlalchemy import update

from farmfresh.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from farmfresh.models import Auction, Bid, FarmerProfile
from farmfresh.models.base import ensure_utc, utcnow
from farmfresh.services.notification_service import NotificationService
from farmfresh.services.product_service import parse_price

AUCTION_STATUSES = {"pending", "active", "ended"}


def parse_timestamp(value, label):
    if isinstance(value, datetime):
        parsed = value
    else:
        raw = (value or "").strip()
        if not raw:
            raise InvalidInputError(f"{label} is required.")
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidInputError(f"Invalid {label.lower()}.") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class AuctionService:
    def __init__(self, session):
        self.session = session
        self.notifications = NotificationService(session)

    def create_auction(self, user_id, payload):
        farmer = self.session.query(FarmerProfile).filter_by(user_id=user_id).first()
        if farmer is None:
            raise ForbiddenError("Create your farm profile before starting an auction.")

        product_name = (payload.get("product_name") or "").strip()
        if not product_name:
            raise InvalidInputError("Product name is required.")
        try:
            quantity = int(payload.get("quantity"))
        except (TypeError, ValueError) as exc:
            raise InvalidInputError("Quantity must be a positive whole number.") from exc
        if quantity <= 0:
            raise InvalidInputError("Quantity must be a positive whole number.")

        start_time = parse_timestamp(payload.get("start_time"), "Start time")
        end_time = parse_timestamp(payload.get("end_time"), "End time")
        if end_time <= start_time:
            raise InvalidInputError("Auction must end after it starts.")

        now = utcnow()
        auction = Auction(
            farmer_id=farmer.id,
            product_name=product_name,
            description=(payload.get("description") or "").strip() or None,
            category=(payload.get("category") or "").strip().lower() or None,
            starting_price=parse_price(payload.get("starting_price"), "Starting price"),
            current_bid=Decimal("0.00"),
            quantity=quantity,
            unit=(payload.get("unit") or "").strip() or None,
            image_url=(payload.get("image_url") or "").strip() or None,
            start_time=start_time,
            end_time=end_time,
            status="active" if start_time <= now < end_time else "pending",
        )
        self.session.add(auction)
        self.session.commit()
        return auction

    def get_auction(self, auction_id):
        auction = self.session.get(Auction, auction_id)
        if auction is None:
            raise NotFoundError("Auction not found.")
        return auction

    def list_auctions(self, status=None):
        query = self.session.query(Auction).order_by(Auction.end_time.asc(), Auction.id.asc())
        if status:
            status = status.strip().lower()
            if status not in AUCTION_STATUSES:
                raise InvalidInputError("Unknown auction status.")
            query = query.filter(Auction.status == status)
        return query.all()

    def place_bid(self, auction_id, user_id, amount, now=None):
        now = now or utcnow()
        auction = self.get_auction(auction_id)
        if auction.farmer.user_id == user_id:
            raise ForbiddenError("You cannot bid on your own auction.")
        if not auction.is_open(now):
            raise ConflictError("This auction is not accepting bids.")

        bid_amount = parse_price(amount, "Bid amount")
        floor = Decimal(str(auction.minimum_bid()))
        if bid_amount <= floor:
            raise InvalidInputError(f"Bid must be higher than {floor}.")

        previous_bidder_id = auction.highest_bidder_id
        try:
            # Only wins if no higher bid landed and the auction was not closed since we read it.
            result = self.session.execute(
                update(Auction)
                .where(
                    Auction.id == auction.id,
                    Auction.current_bid < bid_amount,
                    Auction.status != "ended",
                    Auction.end_time > now,
                )
                .values(
                    current_bid=bid_amount,
                    highest_bidder_id=user_id,
                    total_bids=Auction.total_bids + 1,
                    status="active",
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConflictError("A higher bid was placed first or the auction closed. Please refresh.")

            bid = Bid(auction_id=auction.id, user_id=user_id, bid_amount=bid_amount, bid_time=now)
            self.session.add(bid)
            if previous_bidder_id and previous_bidder_id != user_id:
                self.notifications.push(
                    user_id=previous_bidder_id,
                    title="You have been outbid",
                    message=f"A higher bid of {bid_amount} was placed on {auction.product_name}.",
                )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return bid

    def close_expired(self, now=None):
        now = now or utcnow()
        due = (
            self.session.query(Auction)
            .filter(Auction.status != "ended")
            .filter(Auction.end_time <= now)
            .all()
        )
        for auction in due:
            auction.status = "ended"
            seller_id = auction.farmer.user_id
            if auction.highest_bidder_id:
                self.notifications.push(
                    user_id=auction.highest_bidder_id,
                    title="Auction won",
                    message=f"You won {auction.product_name} with a bid of {auction.current_bid}.",
                )
                message = f"{auction.product_name} sold for {auction.current_bid}."
            else:
                message = f"{auction.product_name} ended without bids."
            self.notifications.push(user_id=seller_id, title="Auction ended", message=message)
        self.session.commit()
        if due:
            current_app.logger.info("Closed %s expired auctions", len(due))
        return due

    def activate_started(self, now=None):
        now = now or utcnow()
        started = (
            self.session.query(Auction)
            .filter(Auction.status == "pending")
            .filter(Auction.start_time <= now, Auction.end_time > now)
            .all()
        )
        for auction in started:
            auction.status = "active"
        self.session.commit()
        return started

    @staticmethod
    def time_left(auction, now=None):
        now = now or utcnow()
        remaining = ensure_utc(auction.end_time) - now
        return max(int(remaining.total_seconds()), 0)
