from decimal import Decimal

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from farmfresh.errors import (
    InvalidInputError,
    NotFoundError,
    PreconditionFailedError,
    UnauthenticatedError,
)
from farmfresh.models import Product, Review
from farmfresh.models.base import utcnow


def _as_rating(avg_rating):
    return Decimal(str(round(float(avg_rating or 0), 2)))


class ReviewService:
    """Per (user, product) review lifecycle: NoReview -> Rated -> RatedWithComment.

    Product and farmer aggregates are materialized on every rating change by
    re-scanning the reviews, never adjusted incrementally.
    """

    def __init__(self, session):
        self.session = session

    @staticmethod
    def _parse_rating(rating):
        try:
            rating_int = int(rating)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError("Rating must be an integer between 1 and 5.") from exc
        if isinstance(rating, float) and rating != rating_int:
            raise InvalidInputError("Rating must be an integer between 1 and 5.")
        if rating_int < 1 or rating_int > 5:
            raise InvalidInputError("Rating must be an integer between 1 and 5.")
        return rating_int

    def _find(self, user_id, product_id):
        return self.session.query(Review).filter_by(user_id=user_id, product_id=product_id).first()

    def refresh_product_aggregate(self, product):
        avg_rating, review_count = (
            self.session.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.product_id == product.id)
            .one()
        )
        product.rating = _as_rating(avg_rating)
        product.total_reviews = int(review_count or 0)

    def refresh_farmer_aggregate(self, farmer):
        avg_rating, review_count = (
            self.session.query(func.avg(Review.rating), func.count(Review.id))
            .join(Product, Product.id == Review.product_id)
            .filter(Product.farmer_id == farmer.id)
            .one()
        )
        farmer.rating = _as_rating(avg_rating)
        farmer.total_reviews = int(review_count or 0)

    def _refresh_aggregates(self, product):
        self.session.flush()
        self.refresh_product_aggregate(product)
        self.refresh_farmer_aggregate(product.farmer)

    def rate(self, user_id, product_id, rating):
        if user_id is None:
            raise UnauthenticatedError("Login required.")
        rating_int = self._parse_rating(rating)

        product = self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found.")

        review = self._find(user_id, product.id)
        try:
            if review:
                review.rating = rating_int
                review.updated_at = utcnow()
            else:
                review = Review(user_id=user_id, product_id=product.id, rating=rating_int)
                self.session.add(review)
            self._refresh_aggregates(product)
            self.session.commit()
        except IntegrityError:
            # A concurrent first rating created the row; apply ours on top of it.
            self.session.rollback()
            current_app.logger.info("Concurrent rating for product %s by user %s", product_id, user_id)
            review = self._find(user_id, product_id)
            if review is None:
                raise
            product = self.session.get(Product, product_id)
            review.rating = rating_int
            self._refresh_aggregates(product)
            self.session.commit()
        return review, product

    def comment(self, user_id, product_id, text):
        if user_id is None:
            raise UnauthenticatedError("Login required.")
        body = (text or "").strip()
        if not body:
            raise InvalidInputError("Comment cannot be empty.")
        max_length = current_app.config.get("MAX_COMMENT_LENGTH", 2000)
        if len(body) > max_length:
            raise InvalidInputError(f"Comment must be at most {max_length} characters.")

        if self.session.get(Product, product_id) is None:
            raise NotFoundError("Product not found.")
        review = self._find(user_id, product_id)
        if review is None:
            raise PreconditionFailedError("Please rate the product before leaving a comment.")

        review.comment = body
        self.session.commit()
        return review

    def delete_comment(self, user_id, product_id):
        review = self._find(user_id, product_id)
        if review is None:
            raise NotFoundError("Review not found.")
        review.comment = None
        self.session.commit()
        return review

    def delete_review(self, user_id, product_id):
        review = self._find(user_id, product_id)
        if review is None:
            raise NotFoundError("Review not found.")
        product = review.product
        try:
            self.session.delete(review)
            self._refresh_aggregates(product)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return product

    def reviews_for_product(self, product_id, limit=50):
        return (
            self.session.query(Review)
            .filter_by(product_id=product_id)
            .order_by(Review.updated_at.desc(), Review.id.desc())
            .limit(limit)
            .all()
        )
