"""Repository for the Product aggregate.

Variants are stored alongside their product; lookups by variant go through
the variant rows and then load the owning product.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ims.catalogue.product import Product, Variant
from ims.domain import ims
from ims.errors import ProductNotFound, VariantNotFound
from ims.shared.paging import page_bounds


@ims.repository(part_of=Product)
class ProductRepository:
    def get_by_id(self, product_id) -> Product | None:
        try:
            product = self.get(str(product_id))
        except ObjectNotFoundError:
            return None
        return None if product.is_deleted else product

    def load(self, product_id) -> Product:
        product = self.get_by_id(product_id)
        if product is None:
            raise ProductNotFound(f"Product {product_id} not found")
        return product

    def get_by_variant(self, variant_id, tenant_id=None) -> Product | None:
        """The live product that owns the live variant ``variant_id``."""
        rows = (
            current_domain.repository_for(Variant)
            ._dao.query.filter(id=str(variant_id), is_deleted=False)
            .all()
            .items
        )
        if not rows:
            return None
        product = self.get_by_id(rows[0].product_id)
        if product is None or (tenant_id and product.tenant_id != tenant_id):
            return None
        return product

    def load_variant(self, variant_id, tenant_id=None) -> tuple[Product, Variant]:
        product = self.get_by_variant(variant_id, tenant_id)
        if product is None:
            raise VariantNotFound(f"Variant {variant_id} not found")
        return product, product.variant(variant_id)

    def variant_id_taken(self, variant_id) -> bool:
        dao = current_domain.repository_for(Variant)._dao
        return bool(dao.query.filter(id=str(variant_id)).all().total)

    def sku_in_use(self, sku, tenant_id) -> bool:
        rows = (
            current_domain.repository_for(Variant)
            ._dao.query.filter(sku=sku.strip().upper(), is_deleted=False)
            .all()
            .items
        )
        for row in rows:
            product = self.get_by_id(row.product_id)
            if product is not None and product.tenant_id == tenant_id:
                return True
        return False

    def list_products(self, tenant_id, name=None, category_id=None, page=1, page_size=20) -> tuple[list[Product], int]:
        filters = {"tenant_id": tenant_id, "is_deleted": False}
        if category_id:
            filters["category_id"] = str(category_id)
        query = self._dao.query.filter(**filters)
        if name:
            query = query.filter(name__icontains=name)
        offset, limit = page_bounds(page, page_size)
        result = query.order_by("name").offset(offset).limit(limit).all()
        return result.items, result.total
