from decimal import Decimal, InvalidOperation

from sqlalchemy import func, or_
from sqlalchemy.orm import joinedload

from farmfresh.errors import ForbiddenError, InvalidInputError, NotFoundError
from farmfresh.models import FarmerProfile, Product
from farmfresh.services.review_service import ReviewService

TRUE_VALUES = {"1", "true", "on", "yes"}


def parse_price(value, label, required=True):
    raw = "" if value is None else str(value).strip()
    if not raw:
        if required:
            raise InvalidInputError(f"{label} is required.")
        return None
    try:
        amount = Decimal(raw)
    except InvalidOperation as exc:
        raise InvalidInputError(f"{label} must be a positive number.") from exc
    if not amount.is_finite() or amount <= 0:
        raise InvalidInputError(f"{label} must be a positive number.")
    return amount.quantize(Decimal("0.01"))


def parse_stock(value):
    if value is None or str(value).strip() == "":
        return 0
    try:
        stock = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError("Stock quantity must be a whole number.") from exc
    if stock < 0:
        raise InvalidInputError("Stock quantity cannot be negative.")
    return stock


def parse_flag(value):
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in TRUE_VALUES


class ProductService:
    def __init__(self, session):
        self.session = session

    def _owned_product(self, user_id, product_id):
        product = self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found.")
        if product.farmer.user_id != user_id:
            raise ForbiddenError("You can only manage your own products.")
        return product

    def get_product(self, product_id):
        product = self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found.")
        return product

    def create_product(self, user_id, payload):
        farmer = self.session.query(FarmerProfile).filter_by(user_id=user_id).first()
        if farmer is None:
            raise ForbiddenError("Create your farm profile before listing products.")

        name = (payload.get("name") or "").strip()
        if not name:
            raise InvalidInputError("Product name is required.")

        product = Product(
            farmer_id=farmer.id,
            name=name,
            description=(payload.get("description") or "").strip() or None,
            category=(payload.get("category") or "").strip().lower() or None,
            price=parse_price(payload.get("price"), "Price"),
            market_price=parse_price(payload.get("market_price"), "Market price", required=False),
            stock_quantity=parse_stock(payload.get("stock_quantity")),
            unit=(payload.get("unit") or "").strip() or None,
            image_url=(payload.get("image_url") or "").strip() or None,
            is_organic=parse_flag(payload.get("is_organic")),
        )
        self.session.add(product)
        self.session.commit()
        return product

    def update_product(self, user_id, product_id, payload):
        product = self._owned_product(user_id, product_id)
        if "name" in payload:
            name = (payload.get("name") or "").strip()
            if not name:
                raise InvalidInputError("Product name is required.")
            product.name = name
        if "description" in payload:
            product.description = (payload.get("description") or "").strip() or None
        if "category" in payload:
            product.category = (payload.get("category") or "").strip().lower() or None
        if "price" in payload:
            product.price = parse_price(payload.get("price"), "Price")
        if "market_price" in payload:
            product.market_price = parse_price(payload.get("market_price"), "Market price", required=False)
        if "stock_quantity" in payload:
            product.stock_quantity = parse_stock(payload.get("stock_quantity"))
        if "unit" in payload:
            product.unit = (payload.get("unit") or "").strip() or None
        if "image_url" in payload:
            product.image_url = (payload.get("image_url") or "").strip() or None
        if "is_organic" in payload:
            product.is_organic = parse_flag(payload.get("is_organic"))
        self.session.commit()
        return product

    def delete_product(self, user_id, product_id):
        product = self._owned_product(user_id, product_id)
        farmer = product.farmer
        try:
            self.session.delete(product)
            self.session.flush()
            ReviewService(self.session).refresh_farmer_aggregate(farmer)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def list_products(self, page=1, per_page=12, category=None, search=None, organic=None, farmer_id=None):
        query = self.session.query(Product).options(joinedload(Product.farmer)).order_by(
            Product.created_at.desc(), Product.id.desc()
        )
        if category:
            query = query.filter(Product.category == category.strip().lower())
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
        if organic is not None:
            query = query.filter(Product.is_organic.is_(bool(organic)))
        if farmer_id is not None:
            query = query.filter(Product.farmer_id == farmer_id)
        return query.paginate(page=page, per_page=per_page, error_out=False)

    def marketplace_stats(self):
        product_count, avg_rating = self.session.query(
            func.count(Product.id), func.avg(Product.rating)
        ).filter(Product.total_reviews > 0).one()
        return {
            "products": self.session.query(func.count(Product.id)).scalar() or 0,
            "rated_products": int(product_count or 0),
            "farmers": self.session.query(func.count(FarmerProfile.id)).scalar() or 0,
            "average_rating": round(float(avg_rating or 0), 2),
            "categories": sorted(
                row[0] for row in self.session.query(Product.category).filter(Product.category.isnot(None)).distinct()
            ),
        }
