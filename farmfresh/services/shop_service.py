from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from farmfresh.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from farmfresh.models import FarmerProfile, User
from farmfresh.roles import Role

FARM_FIELDS = (
    "farm_name",
    "location",
    "district",
    "address",
    "farm_size",
    "certification",
    "products_offered",
    "experience",
)
BANKING_FIELDS = (
    "bank_name",
    "account_number",
    "account_holder_name",
    "mobile_banking_provider",
    "mobile_banking_number",
)


def _clean_text(value):
    if value is None:
        return None
    return str(value).strip() or None


def _clean_products(value):
    """Normalize a multi-select into an ordered, de-duplicated list."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    products = []
    for item in value:
        name = (item or "").strip()
        if name and name not in products:
            products.append(name)
    return products


def _clean_farm_size(value):
    raw = _clean_text(value)
    if raw is None:
        return None
    try:
        size = Decimal(raw)
    except InvalidOperation as exc:
        raise InvalidInputError("Farm size must be a number.") from exc
    if size < 0:
        raise InvalidInputError("Farm size cannot be negative.")
    return size


class ShopService:
    def __init__(self, session):
        self.session = session

    def get_profile(self, user_id):
        return self.session.query(FarmerProfile).filter_by(user_id=user_id).first()

    def require_profile(self, user_id):
        profile = self.get_profile(user_id)
        if profile is None:
            raise NotFoundError("Create your farm profile first.")
        return profile

    def _require_seller(self, user_id):
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found.")
        role = user.role_enum
        if role is Role.SELLER:
            return user
        if role is Role.BUYER:
            raise ForbiddenError("Only sellers can open a shop.")
        raise ForbiddenError("Unsupported role.")

    def _farm_values(self, fields):
        farm_name = _clean_text(fields.get("farm_name"))
        if not farm_name:
            raise InvalidInputError("Farm name is required.")
        return {
            "farm_name": farm_name,
            "location": _clean_text(fields.get("location")),
            "district": _clean_text(fields.get("district")),
            "address": _clean_text(fields.get("address")),
            "farm_size": _clean_farm_size(fields.get("farm_size")),
            "certification": _clean_text(fields.get("certification")),
            "products_offered": _clean_products(fields.get("products_offered")),
            "experience": _clean_text(fields.get("experience")),
        }

    @staticmethod
    def _banking_values(fields):
        return {name: _clean_text(fields.get(name)) for name in BANKING_FIELDS}

    def create_shop(self, user_id, fields):
        self._require_seller(user_id)
        values = self._farm_values(fields)
        values.update(self._banking_values(fields))

        try:
            # Re-checked inside the transaction; the unique user_id is the real guard.
            if self.get_profile(user_id) is not None:
                raise ConflictError("Farm profile already exists.")
            profile = FarmerProfile(user_id=user_id, **values)
            self.session.add(profile)
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            current_app.logger.info("Concurrent shop creation rejected for user %s", user_id)
            raise ConflictError("Farm profile already exists.") from exc
        except Exception:
            self.session.rollback()
            raise
        return profile

    def _overwrite(self, user_id, values):
        profile = self.require_profile(user_id)
        try:
            for name, value in values.items():
                setattr(profile, name, value)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return profile

    def edit_farm(self, user_id, fields):
        return self._overwrite(user_id, self._farm_values(fields))

    def edit_banking(self, user_id, fields):
        return self._overwrite(user_id, self._banking_values(fields))

    def list_farmers(self, page=1, per_page=12, district=None):
        """Farmer directory, best rated first."""
        query = self.session.query(FarmerProfile).order_by(
            FarmerProfile.rating.desc(),
            FarmerProfile.total_reviews.desc(),
            FarmerProfile.id.asc(),
        )
        district = (district or "").strip()
        if district:
            query = query.filter(func.lower(FarmerProfile.district) == district.lower())
        return query.paginate(page=page, per_page=per_page, error_out=False)
