from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from farmfresh.errors import NotFoundError
from farmfresh.models import Product, WishlistEntry


class WishlistService:
    def __init__(self, session):
        self.session = session

    def toggle(self, user_id, product_id):
        if self.session.get(Product, product_id) is None:
            raise NotFoundError("Product not found.")

        entry = self.session.query(WishlistEntry).filter_by(user_id=user_id, product_id=product_id).first()
        if entry is not None:
            self.session.delete(entry)
            self.session.commit()
            return False

        self.session.add(WishlistEntry(user_id=user_id, product_id=product_id))
        try:
            self.session.commit()
        except IntegrityError:
            # Saved by a concurrent request; the end state is the same.
            self.session.rollback()
        return True

    def list_for_user(self, user_id):
        return (
            self.session.query(WishlistEntry)
            .options(joinedload(WishlistEntry.product))
            .filter_by(user_id=user_id)
            .order_by(WishlistEntry.added_at.desc(), WishlistEntry.id.desc())
            .all()
        )
