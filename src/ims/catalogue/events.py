"""Domain events for the Product aggregate and its variants."""

from protean.fields import DateTime, Identifier, String

from ims.domain import ims


@ims.event(part_of="Product")
class ProductCreated:
    """A new product was added to the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    tenant_id = String(required=True)
    name = String(required=True)
    category_id = Identifier()
    created_at = DateTime(required=True)


@ims.event(part_of="Product")
class ProductUpdated:
    __version__ = 1

    product_id = Identifier(required=True)
    tenant_id = String(required=True)
    name = String(required=True)
    category_id = Identifier()
    updated_at = DateTime(required=True)


@ims.event(part_of="Product")
class ProductDeleted:
    """The product and every variant under it were soft-deleted."""

    __version__ = 1

    product_id = Identifier(required=True)
    tenant_id = String(required=True)
    deleted_by = String(required=True)
    deleted_at = DateTime(required=True)


@ims.event(part_of="Product")
class VariantAdded:
    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    tenant_id = String(required=True)
    sku = String(required=True)
    name = String(required=True)
    created_at = DateTime(required=True)


@ims.event(part_of="Product")
class VariantUpdated:
    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    tenant_id = String(required=True)
    name = String(required=True)
    updated_at = DateTime(required=True)


@ims.event(part_of="Product")
class VariantDeleted:
    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    tenant_id = String(required=True)
    deleted_by = String(required=True)
    deleted_at = DateTime(required=True)
