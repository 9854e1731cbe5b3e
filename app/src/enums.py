from enum import IntEnum, Enum


class OrderStatus(IntEnum):
    DRAFT = 1
    QUOTED = 2
    CONFIRMED = 3


class StopType(IntEnum):
    PICKUP = 1
    DELIVERY = 2


class SortBy(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    SHORTEST = "shortest"
    LONGEST = "longest"

    @classmethod
    def normalize(cls, value) -> "SortBy":
        """Map any input onto a known ordering, falling back to newest."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NEWEST


def enumByName(enumClass, value):
    """
    Resolve an IntEnum member from its name ("DELIVERY") or its value (2).

    Non string values are returned untouched for the caller to validate.

    Raises:
        ValueError: If a string names no member of `enumClass`.
    """
    if not isinstance(value, str):
        return value
    text = value.strip()
    if text.isdigit():
        return enumClass(int(text))
    try:
        return enumClass[text.upper()]
    except KeyError:
        names = ", ".join(member.name for member in enumClass)
        raise ValueError(f"Expected one of {names}")
