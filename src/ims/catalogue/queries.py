"""Catalogue read side."""

from protean.utils.globals import current_domain

from ims import settings
from ims.catalogue.product import Product
from ims.dto import Page, ProductView, VariantView
from ims.errors import InvalidInput
from ims.ledger.queries import MAX_PAGE_SIZE


def get_product(product_id) -> ProductView:
    return ProductView.from_product(current_domain.repository_for(Product).load(product_id))


def get_products(name=None, category_id=None, page=1, page_size=20, tenant_id=None) -> Page[ProductView]:
    if page < 1 or not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidInput(f"Page must be >= 1 and page size between 1 and {MAX_PAGE_SIZE}", field="page")
    products, total = current_domain.repository_for(Product).list_products(
        tenant_id or settings.default_tenant(),
        name=name,
        category_id=category_id,
        page=page,
        page_size=page_size,
    )
    return Page[ProductView](
        items=[ProductView.from_product(p) for p in products],
        total=total,
        page=page,
        page_size=page_size,
    )


def get_variant(variant_id) -> VariantView:
    product, variant = current_domain.repository_for(Product).load_variant(variant_id)
    return VariantView.from_variant(product, variant)


def get_variants(product_id) -> list[VariantView]:
    """Live variants of a product, ordered by SKU."""
    product = current_domain.repository_for(Product).load(product_id)
    return [VariantView.from_variant(product, v) for v in sorted(product.active_variants, key=lambda v: v.sku)]
