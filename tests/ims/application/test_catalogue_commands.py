"""Application tests for product and variant management."""

import json

from ims.catalogue.management import (
    CreateProduct,
    CreateVariant,
    DeleteProduct,
    DeleteVariant,
    UpdateProduct,
    UpdateVariant,
)
from ims.catalogue.product import Product
from ims.catalogue.queries import get_product, get_products, get_variant, get_variants
from ims.inventory.opening_balance import SetOpeningBalance
from ims.mediator import ask, send
from protean import current_domain


def _product_id(**overrides):
    defaults = {"name": "Trail Shoe", "description": "Lightweight trail running shoe"}
    defaults.update(overrides)
    result = send(CreateProduct, **defaults)
    assert result.is_success, result.error_message
    return result.value.product_id


def _variant(product_id, sku, **overrides):
    result = send(CreateVariant, product_id=product_id, sku=sku, name=f"Trail Shoe {sku}", **overrides)
    assert result.is_success, result.error_message
    return result.value


def _open(variant_id, warehouse_id="wh-shoes"):
    return send(
        SetOpeningBalance,
        variant_id=variant_id,
        warehouse_id=warehouse_id,
        quantity=12,
        reason="Initial count",
    )


class TestProductManagement:
    def test_create_persists(self):
        product_id = _product_id(category_id="cat-shoes")

        product = current_domain.repository_for(Product).get(product_id)
        assert product.name == "Trail Shoe"
        assert product.category_id == "cat-shoes"
        assert product.tenant_id == "default"

    def test_blank_name_rejected(self):
        result = send(CreateProduct, name="  ", description="Lightweight trail running shoe")
        assert result.error_code == "INVALID_INPUT"

    def test_update(self):
        product_id = _product_id()
        result = send(UpdateProduct, product_id=product_id, name="Trail Shoe Pro", description="Now with a rock plate")

        assert result.is_success, result.error_message
        assert ask(get_product, product_id).value.name == "Trail Shoe Pro"

    def test_update_unknown_product(self):
        result = send(UpdateProduct, product_id="prod-missing", name="Nope", description="Nope")
        assert result.error_code == "PRODUCT_NOT_FOUND"

    def test_delete_hides_product_and_variants(self):
        product_id = _product_id()
        variant = _variant(product_id, "TS-41")

        deleted = send(DeleteProduct, product_id=product_id, deleted_by="user-1")
        assert deleted.is_success, deleted.error_message
        assert deleted.value.is_deleted is True
        assert [v.is_deleted for v in deleted.value.variants] == [True]

        assert ask(get_product, product_id).error_code == "PRODUCT_NOT_FOUND"
        assert ask(get_variant, variant.variant_id).error_code == "VARIANT_NOT_FOUND"


class TestVariantManagement:
    def test_create_variant_with_attributes(self):
        product_id = _product_id()
        variant = _variant(product_id, "ts-42", attributes=json.dumps({"size": "42", "colour": "blue"}))

        assert variant.sku == "TS-42"
        assert variant.attributes == {"size": "42", "colour": "blue"}
        found = ask(get_variant, variant.variant_id).value
        assert found.product_id == product_id

    def test_sku_unique_across_tenant_products(self):
        _variant(_product_id(), "TS-41")
        result = send(CreateVariant, product_id=_product_id(name="Road Shoe"), sku="ts-41", name="Road Shoe 41")
        assert result.error_code == "DUPLICATE_SKU"

    def test_caller_supplied_id_must_be_free(self):
        result = send(CreateVariant, product_id=_product_id(), variant_id="var-1001", sku="TS-50", name="Clash")
        assert result.error_code == "INVALID_INPUT"

    def test_attributes_must_be_an_object(self):
        result = send(CreateVariant, product_id=_product_id(), sku="TS-41", name="Bad", attributes="[1, 2]")
        assert result.error_code == "INVALID_INPUT"

    def test_variant_on_unknown_product(self):
        result = send(CreateVariant, product_id="prod-missing", sku="TS-41", name="Orphan")
        assert result.error_code == "PRODUCT_NOT_FOUND"

    def test_update_variant(self):
        variant = _variant(_product_id(), "TS-41")
        result = send(UpdateVariant, variant_id=variant.variant_id, name="Trail Shoe 41 Red", base_unit="pair")

        assert result.is_success, result.error_message
        found = ask(get_variant, variant.variant_id).value
        assert found.name == "Trail Shoe 41 Red"
        assert found.base_unit == "pair"

    def test_delete_variant(self):
        product_id = _product_id()
        kept = _variant(product_id, "TS-41")
        dropped = _variant(product_id, "TS-42")

        result = send(DeleteVariant, variant_id=dropped.variant_id, deleted_by="user-1")
        assert result.is_success, result.error_message

        assert [v.variant_id for v in ask(get_variants, product_id).value] == [kept.variant_id]
        assert send(DeleteVariant, variant_id=dropped.variant_id, deleted_by="user-1").error_code == (
            "VARIANT_NOT_FOUND"
        )

    def test_variants_listed_by_sku(self):
        product_id = _product_id()
        for sku in ("TS-43", "TS-41", "TS-42"):
            _variant(product_id, sku)
        assert [v.sku for v in ask(get_variants, product_id).value] == ["TS-41", "TS-42", "TS-43"]


class TestProductQueries:
    def test_list_filters_by_name(self):
        _product_id(name="Trail Shoe")
        _product_id(name="Road Shoe")

        page = ask(get_products, name="shoe").value
        assert [p.name for p in page.items] == ["Road Shoe", "Trail Shoe"]
        assert page.total == 2

    def test_list_filters_by_category(self):
        _product_id(name="Trail Shoe", category_id="cat-shoes")
        _product_id(name="Rain Jacket", category_id="cat-jackets")

        page = ask(get_products, category_id="cat-jackets").value
        assert [p.name for p in page.items] == ["Rain Jacket"]

    def test_invalid_paging(self):
        assert ask(get_products, page=0).error_code == "INVALID_INPUT"


class TestOpeningBalanceNeedsVariant:
    def test_catalogued_variant_opens(self):
        variant = _variant(_product_id(), "TS-41")
        result = _open(variant.variant_id)
        assert result.is_success, result.error_message

    def test_unknown_variant_rejected(self):
        result = _open("var-zzz")
        assert result.error_code == "VARIANT_NOT_FOUND"

    def test_deleted_variant_rejected(self):
        variant = _variant(_product_id(), "TS-41")
        send(DeleteVariant, variant_id=variant.variant_id, deleted_by="user-1")

        assert _open(variant.variant_id).error_code == "VARIANT_NOT_FOUND"

    def test_variant_of_deleted_product_rejected(self):
        product_id = _product_id()
        variant = _variant(product_id, "TS-41")
        send(DeleteProduct, product_id=product_id, deleted_by="user-1")

        assert _open(variant.variant_id).error_code == "VARIANT_NOT_FOUND"
