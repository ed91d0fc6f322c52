"""Product aggregate: the catalogue entry that groups sellable variants.

A product itself is never stocked. Inventory items are opened per variant and
warehouse, and refer to the variant by id.
"""

import json
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, HasMany, Identifier, String, Text

from ims.catalogue.events import (
    ProductCreated,
    ProductDeleted,
    ProductUpdated,
    VariantAdded,
    VariantDeleted,
    VariantUpdated,
)
from ims.domain import ims
from ims.errors import BusinessRuleViolation, DuplicateSku, InvalidInput, VariantNotFound


def _required_text(value, label, field):
    value = (value or "").strip()
    if not value:
        raise InvalidInput(f"{label} is required", field=field)
    return value


def _attributes_json(attributes):
    if attributes is None or isinstance(attributes, str):
        return attributes
    return json.dumps(attributes)


@ims.entity(part_of="Product")
class Variant:
    """A sellable variation of a product, identified by its SKU."""

    sku = String(required=True, max_length=100)
    name = String(required=True, max_length=255)
    base_unit = String(default="each", max_length=20)
    attributes = Text()  # JSON object
    created_at = DateTime()
    updated_at = DateTime()
    is_deleted = Boolean(default=False)
    deleted_at = DateTime()
    deleted_by = String(max_length=100)

    @property
    def attributes_dict(self) -> dict:
        return json.loads(self.attributes) if self.attributes else {}


@ims.aggregate
class Product:
    """Catalogue product with its variants."""

    tenant_id = String(required=True, max_length=50)
    name = String(required=True, max_length=255)
    description = Text(required=True)
    category_id = Identifier()
    variants = HasMany(Variant)
    created_at = DateTime()
    updated_at = DateTime()
    is_deleted = Boolean(default=False)
    deleted_at = DateTime()
    deleted_by = String(max_length=100)

    @classmethod
    def create(cls, tenant_id, name, description, category_id=None):
        name = _required_text(name, "Product name", "name")
        description = _required_text(description, "Product description", "description")

        now = datetime.now(UTC)
        product = cls(
            tenant_id=tenant_id,
            name=name,
            description=description,
            category_id=category_id,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                tenant_id=tenant_id,
                name=name,
                category_id=category_id,
                created_at=now,
            )
        )
        return product

    @property
    def active_variants(self) -> list[Variant]:
        return [v for v in self.variants if not v.is_deleted]

    def variant(self, variant_id) -> Variant:
        """Return the live variant with ``variant_id``."""
        variant = next((v for v in self.active_variants if str(v.id) == str(variant_id)), None)
        if variant is None:
            raise VariantNotFound(f"Variant {variant_id} not found")
        return variant

    def _assert_not_deleted(self):
        if self.is_deleted:
            raise BusinessRuleViolation("Product is deleted", field="product")

    def update_details(self, name, description, category_id=None):
        self._assert_not_deleted()
        self.name = _required_text(name, "Product name", "name")
        self.description = _required_text(description, "Product description", "description")
        self.category_id = category_id
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ProductUpdated(
                product_id=str(self.id),
                tenant_id=self.tenant_id,
                name=self.name,
                category_id=self.category_id,
                updated_at=self.updated_at,
            )
        )

    def add_variant(self, sku, name, base_unit=None, attributes=None, variant_id=None) -> Variant:
        """Add a variant. SKUs are unique within the product and stored upper-case."""
        self._assert_not_deleted()
        sku = _required_text(sku, "Variant SKU", "sku").upper()
        name = _required_text(name, "Variant name", "name")
        if any(v.sku == sku for v in self.active_variants):
            raise DuplicateSku(f"Variant with SKU {sku} already exists")

        now = datetime.now(UTC)
        fields = {"id": variant_id} if variant_id else {}
        variant = Variant(
            sku=sku,
            name=name,
            base_unit=base_unit or "each",
            attributes=_attributes_json(attributes),
            created_at=now,
            updated_at=now,
            **fields,
        )
        self.add_variants(variant)
        self.updated_at = now

        self.raise_(
            VariantAdded(
                product_id=str(self.id),
                variant_id=str(variant.id),
                tenant_id=self.tenant_id,
                sku=sku,
                name=name,
                created_at=now,
            )
        )
        return variant

    def update_variant(self, variant_id, name=None, base_unit=None, attributes=None) -> Variant:
        self._assert_not_deleted()
        variant = self.variant(variant_id)
        if name is not None:
            variant.name = _required_text(name, "Variant name", "name")
        if base_unit is not None:
            variant.base_unit = base_unit
        if attributes is not None:
            variant.attributes = _attributes_json(attributes)
        now = datetime.now(UTC)
        variant.updated_at = now
        self.add_variants(variant)
        self.updated_at = now

        self.raise_(
            VariantUpdated(
                product_id=str(self.id),
                variant_id=str(variant.id),
                tenant_id=self.tenant_id,
                name=variant.name,
                updated_at=now,
            )
        )
        return variant

    def delete_variant(self, variant_id, deleted_by) -> Variant:
        if not deleted_by:
            raise InvalidInput("Deleted by is required", field="deleted_by")
        variant = self.variant(variant_id)
        now = datetime.now(UTC)
        variant.is_deleted = True
        variant.deleted_at = now
        variant.deleted_by = deleted_by
        variant.updated_at = now
        self.add_variants(variant)
        self.updated_at = now

        self.raise_(
            VariantDeleted(
                product_id=str(self.id),
                variant_id=str(variant.id),
                tenant_id=self.tenant_id,
                deleted_by=deleted_by,
                deleted_at=now,
            )
        )
        return variant

    def soft_delete(self, deleted_by):
        """Delete the product together with its live variants."""
        if not deleted_by:
            raise InvalidInput("Deleted by is required", field="deleted_by")
        if self.is_deleted:
            raise BusinessRuleViolation("Product is already deleted", field="product")

        now = datetime.now(UTC)
        for variant in self.active_variants:
            variant.is_deleted = True
            variant.deleted_at = now
            variant.deleted_by = deleted_by
            variant.updated_at = now
            self.add_variants(variant)
        self.is_deleted = True
        self.deleted_at = now
        self.deleted_by = deleted_by
        self.updated_at = now
        self.raise_(
            ProductDeleted(
                product_id=str(self.id),
                tenant_id=self.tenant_id,
                deleted_by=deleted_by,
                deleted_at=now,
            )
        )
