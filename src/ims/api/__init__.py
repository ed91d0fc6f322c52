from ims.api.routes import (
    audit_router,
    inventory_router,
    maintenance_router,
    product_router,
    refund_router,
    reservation_router,
    variant_router,
    warehouse_router,
)

__all__ = [
    "inventory_router",
    "refund_router",
    "reservation_router",
    "warehouse_router",
    "product_router",
    "variant_router",
    "audit_router",
    "maintenance_router",
]
