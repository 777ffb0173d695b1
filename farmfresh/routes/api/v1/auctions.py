from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from farmfresh.decorators import role_required
from farmfresh.extensions import db, limiter
from farmfresh.roles import Role
from farmfresh.serializers import auction_to_dict
from farmfresh.services import AuctionService

api_auction_bp = Blueprint("api_auction", __name__)


@api_auction_bp.get("")
def list_auctions():
    service = AuctionService(db.session)
    auctions = service.list_auctions(status=request.args.get("status"))
    return jsonify(
        [dict(auction_to_dict(a), seconds_left=service.time_left(a)) for a in auctions]
    )


@api_auction_bp.post("")
@login_required
@role_required(Role.SELLER)
def create_auction():
    payload = request.get_json(silent=True) or {}
    auction = AuctionService(db.session).create_auction(current_user.id, payload)
    return jsonify(auction_to_dict(auction)), 201


@api_auction_bp.get("/<int:auction_id>")
def get_auction(auction_id):
    auction = AuctionService(db.session).get_auction(auction_id)
    bids = auction.bids.limit(20).all()
    return jsonify(
        dict(
            auction_to_dict(auction),
            bids=[{"user_id": b.user_id, "amount": str(b.bid_amount)} for b in bids],
        )
    )


@api_auction_bp.post("/<int:auction_id>/bids")
@login_required
@limiter.limit("30 per minute")
def place_bid(auction_id):
    payload = request.get_json(silent=True) or {}
    bid = AuctionService(db.session).place_bid(auction_id, current_user.id, payload.get("amount"))
    return jsonify({"success": True, "auction_id": bid.auction_id, "amount": str(bid.bid_amount)}), 201
