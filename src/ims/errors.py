"""Coded domain errors.

Every error raised by the ledger and reservation code belongs to one of two
general categories, ``InvalidInput`` and ``BusinessRuleViolation``. Both are
Protean ``ValidationError`` subclasses, so they keep the ``{field: [message]}``
shape used across the domain, and each carries a stable machine-readable
``code`` that the mediator hands back to callers.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

INVALID_INPUT = "INVALID_INPUT"
BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"


class InventoryError(ValidationError):
    """Base class for coded domain errors."""

    code = BUSINESS_RULE_VIOLATION
    field = "inventory"

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        super().__init__({field or self.field: [message]})

    def __str__(self) -> str:
        return self.message


class InvalidInput(InventoryError):
    code = INVALID_INPUT


class BusinessRuleViolation(InventoryError):
    code = BUSINESS_RULE_VIOLATION


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------
class InvalidQuantity(InvalidInput):
    code = "INVALID_QUANTITY"
    field = "quantity"


# ---------------------------------------------------------------------------
# Rule violations
# ---------------------------------------------------------------------------
class InsufficientStock(BusinessRuleViolation):
    code = "INSUFFICIENT_STOCK"
    field = "quantity"


class NegativeStockNotAllowed(BusinessRuleViolation):
    code = "NEGATIVE_STOCK_NOT_ALLOWED"
    field = "quantity"


class OpeningBalanceExists(BusinessRuleViolation):
    code = "OPENING_BALANCE_EXISTS"


class RefundExceedsSale(BusinessRuleViolation):
    code = "REFUND_EXCEEDS_SALE"
    field = "quantity"


class ReservationNotActive(BusinessRuleViolation):
    code = "RESERVATION_NOT_ACTIVE"
    field = "status"


class DuplicateSku(BusinessRuleViolation):
    code = "DUPLICATE_SKU"
    field = "sku"


# ---------------------------------------------------------------------------
# Missing records
# ---------------------------------------------------------------------------
class InventoryNotFound(BusinessRuleViolation):
    code = "INVENTORY_NOT_FOUND"


class SourceInventoryNotFound(InventoryNotFound):
    code = "SOURCE_INVENTORY_NOT_FOUND"


class ReservationNotFound(BusinessRuleViolation):
    code = "RESERVATION_NOT_FOUND"
    field = "reservation_id"


class OriginalSaleNotFound(BusinessRuleViolation):
    code = "ORIGINAL_SALE_NOT_FOUND"
    field = "original_sale_reference"


class SaleNotFound(BusinessRuleViolation):
    code = "SALE_NOT_FOUND"
    field = "sale_reference"


class WarehouseNotFound(BusinessRuleViolation):
    code = "WAREHOUSE_NOT_FOUND"
    field = "warehouse_id"


class ProductNotFound(BusinessRuleViolation):
    code = "PRODUCT_NOT_FOUND"
    field = "product_id"


class VariantNotFound(BusinessRuleViolation):
    code = "VARIANT_NOT_FOUND"
    field = "variant_id"


NOT_FOUND_CODES = frozenset(
    cls.code
    for cls in (
        InventoryNotFound,
        SourceInventoryNotFound,
        ReservationNotFound,
        OriginalSaleNotFound,
        SaleNotFound,
        WarehouseNotFound,
        ProductNotFound,
        VariantNotFound,
    )
)


def error_code(exc: Exception) -> str:
    """Return the stable code for a domain exception."""
    if isinstance(exc, InventoryError):
        return exc.code
    if isinstance(exc, (InvalidOperationError, ObjectNotFoundError)):
        return BUSINESS_RULE_VIOLATION
    return INVALID_INPUT


def error_message(exc: Exception) -> str:
    """Flatten an exception into a single display message."""
    if isinstance(exc, InventoryError):
        return exc.message
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        parts = []
        for field, errors in messages.items():
            if isinstance(errors, (list, tuple)):
                errors = "; ".join(str(e) for e in errors)
            parts.append(f"{field}: {errors}")
        return ", ".join(parts)
    return str(exc)
