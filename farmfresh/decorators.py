from functools import wraps

from flask_login import current_user

from farmfresh.errors import ForbiddenError, UnauthenticatedError


def role_required(*allowed):
    """Restrict a view to users whose role is one of ``allowed``."""

    def decorator(view):
        @wraps(view)
        def guarded(*args, **kwargs):
            if not current_user.is_authenticated:
                raise UnauthenticatedError("Login required.")
            if current_user.role_enum not in allowed:
                names = " or ".join(role.value for role in allowed)
                raise ForbiddenError(f"Only {names} accounts can do this.")
            return view(*args, **kwargs)

        return guarded

    return decorator
