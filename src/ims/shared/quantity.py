"""Exact stock quantities.

Quantities are ``decimal.Decimal`` end to end. Values arriving as ``int`` or
``float`` are converted through their string form so ``0.1`` stays ``0.1``.
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated

from pydantic import PlainSerializer

from ims.errors import InvalidQuantity

ZERO = Decimal("0")

# Decimal in Python, plain JSON number on the wire
Quantity = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def to_quantity(value) -> Decimal | None:
    if value is None or isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidQuantity(f"{value!r} is not a quantity")
    try:
        quantity = Decimal(str(value))
    except InvalidOperation as exc:
        raise InvalidQuantity(f"{value!r} is not a quantity") from exc
    if not quantity.is_finite():
        raise InvalidQuantity(f"{value!r} is not a quantity")
    return quantity
