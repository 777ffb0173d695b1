from datetime import timedelta

from farmfresh.extensions import db
from farmfresh.models import Auction
from farmfresh.models.base import utcnow
from farmfresh.services import AuctionService

from tests.conftest import make_seller


def test_init_db_command(app):
    result = app.test_cli_runner().invoke(args=["init-db"])

    assert "Database schema initialized." in result.output


def test_close_auctions_command(app):
    now = utcnow()
    with app.app_context():
        seller = make_seller(db.session)
        auction = AuctionService(db.session).create_auction(
            seller.id,
            {
                "product_name": "Late lot",
                "starting_price": "1",
                "quantity": 1,
                "start_time": (now - timedelta(hours=2)).isoformat(),
                "end_time": (now - timedelta(hours=1)).isoformat(),
            },
        )
        auction_id = auction.id

    result = app.test_cli_runner().invoke(args=["close-auctions"])

    assert "closed 1 auction(s)" in result.output
    with app.app_context():
        assert db.session.get(Auction, auction_id).status == "ended"
