"""Product and variant management: commands and handler."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ims.catalogue.product import Product
from ims.domain import ims
from ims.dto import ProductView, VariantView
from ims.errors import DuplicateSku, InvalidInput
from ims.inventory.common import tenant_of


def _parse_attributes(raw):
    if not raw:
        return None
    if isinstance(raw, dict):
        return raw
    try:
        attributes = json.loads(raw)
    except ValueError as exc:
        raise InvalidInput(f"Attributes are not valid JSON: {exc}", field="attributes") from exc
    if not isinstance(attributes, dict):
        raise InvalidInput("Attributes must be a JSON object", field="attributes")
    return attributes


@ims.command(part_of="Product")
class CreateProduct:
    tenant_id = String(max_length=50)
    name = String(required=True, max_length=255)
    description = String(required=True, max_length=1000)
    category_id = Identifier()


@ims.command(part_of="Product")
class UpdateProduct:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = String(required=True, max_length=1000)
    category_id = Identifier()


@ims.command(part_of="Product")
class DeleteProduct:
    product_id = Identifier(required=True)
    deleted_by = String(required=True, max_length=100)


@ims.command(part_of="Product")
class CreateVariant:
    """Add a variant to a product. ``variant_id`` may be supplied by the caller."""

    product_id = Identifier(required=True)
    sku = String(required=True, max_length=100)
    name = String(required=True, max_length=255)
    base_unit = String(max_length=20)
    attributes = Text()  # JSON-encoded attributes
    variant_id = Identifier()


@ims.command(part_of="Product")
class UpdateVariant:
    variant_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    base_unit = String(max_length=20)
    attributes = Text()


@ims.command(part_of="Product")
class DeleteVariant:
    variant_id = Identifier(required=True)
    deleted_by = String(required=True, max_length=100)


@ims.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        product = Product.create(
            tenant_id=tenant_of(command),
            name=command.name,
            description=command.description,
            category_id=command.category_id,
        )
        current_domain.repository_for(Product).add(product)
        return ProductView.from_product(product)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.load(command.product_id)
        product.update_details(command.name, command.description, category_id=command.category_id)
        repo.add(product)
        return ProductView.from_product(product)

    @handle(DeleteProduct)
    def delete_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.load(command.product_id)
        product.soft_delete(command.deleted_by)
        repo.add(product)
        return ProductView.from_product(product)

    @handle(CreateVariant)
    def create_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.load(command.product_id)
        if repo.sku_in_use(command.sku, product.tenant_id):
            raise DuplicateSku(f"Variant with SKU {command.sku.strip().upper()} already exists")
        if command.variant_id and repo.variant_id_taken(command.variant_id):
            raise InvalidInput(f"Variant {command.variant_id} already exists", field="variant_id")

        variant = product.add_variant(
            sku=command.sku,
            name=command.name,
            base_unit=command.base_unit,
            attributes=_parse_attributes(command.attributes),
            variant_id=command.variant_id,
        )
        repo.add(product)
        return VariantView.from_variant(product, variant)

    @handle(UpdateVariant)
    def update_variant(self, command):
        repo = current_domain.repository_for(Product)
        product, _ = repo.load_variant(command.variant_id)
        variant = product.update_variant(
            command.variant_id,
            name=command.name,
            base_unit=command.base_unit,
            attributes=_parse_attributes(command.attributes),
        )
        repo.add(product)
        return VariantView.from_variant(product, variant)

    @handle(DeleteVariant)
    def delete_variant(self, command):
        repo = current_domain.repository_for(Product)
        product, _ = repo.load_variant(command.variant_id)
        variant = product.delete_variant(command.variant_id, command.deleted_by)
        repo.add(product)
        return VariantView.from_variant(product, variant)
