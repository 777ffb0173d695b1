import click

from farmfresh.extensions import db
from farmfresh.services import AuctionService


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables that do not exist yet."""
        db.create_all()
        click.echo("Database schema initialized.")

    @app.cli.command("close-auctions")
    def close_auctions():
        """Open auctions whose start time passed and close the ones that ended."""
        service = AuctionService(db.session)
        started = service.activate_started()
        closed = service.close_expired()
        click.echo(f"Activated {len(started)} auction(s), closed {len(closed)} auction(s).")
