"""Tests for the Product aggregate and its variants."""

import pytest
from ims.catalogue.events import ProductCreated, ProductDeleted, VariantAdded, VariantDeleted, VariantUpdated
from ims.catalogue.product import Product
from ims.errors import BusinessRuleViolation, DuplicateSku, InvalidInput, VariantNotFound


def _make_product(**overrides):
    defaults = {"tenant_id": "default", "name": "Trail Shoe", "description": "Lightweight trail running shoe"}
    defaults.update(overrides)
    return Product.create(**defaults)


class TestProductCreation:
    def test_create_sets_fields(self):
        product = _make_product(category_id="cat-shoes")
        assert product.name == "Trail Shoe"
        assert product.category_id == "cat-shoes"
        assert product.is_deleted is False
        assert product.variants == []

    def test_create_raises_event(self):
        product = _make_product()
        events = [e for e in product._events if isinstance(e, ProductCreated)]
        assert len(events) == 1
        assert events[0].product_id == str(product.id)

    @pytest.mark.parametrize("field", ["name", "description"])
    def test_blank_text_rejected(self, field):
        with pytest.raises(InvalidInput) as exc:
            _make_product(**{field: "  "})
        assert field in exc.value.messages


class TestVariants:
    def test_add_variant_uppercases_sku(self):
        product = _make_product()
        variant = product.add_variant("ts-42-blue", "Trail Shoe 42 Blue", attributes={"size": "42"})

        assert variant.sku == "TS-42-BLUE"
        assert variant.base_unit == "each"
        assert variant.attributes_dict == {"size": "42"}
        assert product.variant(variant.id).sku == "TS-42-BLUE"
        added = [e for e in product._events if isinstance(e, VariantAdded)]
        assert added[0].variant_id == str(variant.id)

    def test_caller_supplied_variant_id(self):
        product = _make_product()
        variant = product.add_variant("TS-41", "Trail Shoe 41", variant_id="var-41")
        assert str(variant.id) == "var-41"

    def test_duplicate_sku_within_product(self):
        product = _make_product()
        product.add_variant("TS-41", "Trail Shoe 41")
        with pytest.raises(DuplicateSku):
            product.add_variant("ts-41", "Trail Shoe 41 again")

    def test_update_variant(self):
        product = _make_product()
        variant = product.add_variant("TS-41", "Trail Shoe 41")
        product.update_variant(variant.id, name="Trail Shoe 41 Red", base_unit="pair")

        updated = product.variant(variant.id)
        assert updated.name == "Trail Shoe 41 Red"
        assert updated.base_unit == "pair"
        assert any(isinstance(e, VariantUpdated) for e in product._events)

    def test_deleted_variant_is_not_found(self):
        product = _make_product()
        variant = product.add_variant("TS-41", "Trail Shoe 41")
        product.delete_variant(variant.id, deleted_by="user-1")

        assert [v.is_deleted for v in product.variants] == [True]
        assert product.active_variants == []
        assert any(isinstance(e, VariantDeleted) for e in product._events)
        with pytest.raises(VariantNotFound):
            product.variant(variant.id)

    def test_sku_reusable_after_delete(self):
        product = _make_product()
        variant = product.add_variant("TS-41", "Trail Shoe 41")
        product.delete_variant(variant.id, deleted_by="user-1")
        assert product.add_variant("TS-41", "Trail Shoe 41 v2").sku == "TS-41"

    def test_unknown_variant(self):
        with pytest.raises(VariantNotFound):
            _make_product().update_variant("var-missing", name="Nope")


class TestProductDeletion:
    def test_delete_cascades_to_variants(self):
        product = _make_product()
        product.add_variant("TS-41", "Trail Shoe 41")
        product.add_variant("TS-42", "Trail Shoe 42")
        product.soft_delete(deleted_by="user-1")

        assert product.is_deleted is True
        assert all(v.is_deleted for v in product.variants)
        assert {v.deleted_by for v in product.variants} == {"user-1"}
        assert product.active_variants == []
        assert any(isinstance(e, ProductDeleted) for e in product._events)

    def test_deleted_product_is_read_only(self):
        product = _make_product()
        product.soft_delete(deleted_by="user-1")
        with pytest.raises(BusinessRuleViolation):
            product.add_variant("TS-43", "Trail Shoe 43")
        with pytest.raises(BusinessRuleViolation):
            product.soft_delete(deleted_by="user-1")

    def test_delete_requires_actor(self):
        with pytest.raises(InvalidInput):
            _make_product().soft_delete(deleted_by="")
