import enum

from farmfresh.errors import InvalidInputError


class Role(str, enum.Enum):
    BUYER = "buyer"
    SELLER = "seller"

    @classmethod
    def parse(cls, raw, default=None):
        value = (raw or "").strip().lower()
        if not value and default is not None:
            return default
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidInputError("Invalid role.") from exc

    def __str__(self):
        return self.value
