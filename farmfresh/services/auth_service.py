import re
import secrets

from flask import current_app
from sqlalchemy.exc import IntegrityError

from farmfresh.errors import ConflictError, InvalidInputError, NotFoundError, UnauthenticatedError
from farmfresh.extensions import bcrypt
from farmfresh.models import User
from farmfresh.roles import Role

MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthService:
    def __init__(self, session):
        self.session = session

    @staticmethod
    def _normalize_email(email):
        return (email or "").strip().lower()

    @staticmethod
    def _normalize_phone(phone):
        raw = (phone or "").strip()
        if not raw:
            return None
        digits = "".join(ch for ch in raw if ch.isdigit())
        if not 7 <= len(digits) <= 15:
            raise InvalidInputError("Phone number must contain 7 to 15 digits.")
        return raw

    @staticmethod
    def _hash_password(password):
        return bcrypt.generate_password_hash(password).decode("utf-8")

    def register(self, name, email, password, phone=None, role=None):
        role = Role.parse(role, default=Role.BUYER)
        name = (name or "").strip()
        normalized_email = self._normalize_email(email)
        if not name or not normalized_email or not password:
            raise InvalidInputError("Name, email, and password are required.")
        if not EMAIL_PATTERN.match(normalized_email):
            raise InvalidInputError("Invalid email address.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        normalized_phone = self._normalize_phone(phone)

        if self.session.query(User).filter_by(email=normalized_email).first():
            raise ConflictError("Email already registered.")

        user = User(
            name=name,
            email=normalized_email,
            phone=normalized_phone,
            role=role.value,
            password_hash=self._hash_password(password),
        )
        try:
            self.session.add(user)
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            current_app.logger.info("Registration lost a race on email %s", normalized_email)
            raise ConflictError("Email already registered.") from exc
        return user

    def authenticate(self, email, password):
        user = self.session.query(User).filter_by(email=self._normalize_email(email)).first()
        if not user:
            raise UnauthenticatedError("Invalid credentials.")
        try:
            is_valid = bcrypt.check_password_hash(user.password_hash, password or "")
        except ValueError:
            is_valid = False
        if not is_valid:
            raise UnauthenticatedError("Invalid credentials.")
        return user

    def oauth_login_or_register(self, email, name):
        """Resolve a federated identity to a local user.

        The provider has already verified the email; first login creates a
        verified buyer with an unusable random password.
        """
        normalized_email = self._normalize_email(email)
        if not normalized_email:
            raise InvalidInputError("Identity provider did not supply an email.")

        user = self.session.query(User).filter_by(email=normalized_email).first()
        if user:
            return user, False

        user = User(
            name=(name or "").strip() or normalized_email.split("@", 1)[0],
            email=normalized_email,
            role=Role.BUYER.value,
            is_verified=True,
            password_hash=self._hash_password(secrets.token_urlsafe(24)),
        )
        try:
            self.session.add(user)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            user = self.session.query(User).filter_by(email=normalized_email).first()
            if user is None:
                raise
            return user, False
        return user, True

    def update_profile(self, user_id, name, phone=None):
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found.")
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Name is required.")
        try:
            user.name = name
            user.phone = self._normalize_phone(phone)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return user
