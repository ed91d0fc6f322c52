import pytest
from protean import current_domain

from ims.catalogue.management import CreateProduct, CreateVariant
from ims.inventory.item import InventoryItem
from ims.inventory.opening_balance import SetOpeningBalance
from ims.mediator import send

CATALOGUE_VARIANTS = ("var-1001", "var-a", "var-b", "var-c")


@pytest.fixture()
def catalogue():
    """A product carrying every variant the ledger tests open stock for."""
    product = send(CreateProduct, name="Test Widget", description="Widget stocked by the ledger tests")
    assert product.is_success, product.error_message
    for variant_id in CATALOGUE_VARIANTS:
        result = send(
            CreateVariant,
            product_id=product.value.product_id,
            variant_id=variant_id,
            sku=f"SKU-{variant_id}",
            name=f"Widget {variant_id}",
        )
        assert result.is_success, result.error_message
    return product.value.product_id


@pytest.fixture()
def stocked(catalogue):
    """Persisted item holding 100 units of var-1001 at wh-main."""
    result = send(
        SetOpeningBalance,
        variant_id="var-1001",
        warehouse_id="wh-main",
        quantity=100,
        reason="Initial count",
    )
    assert result.is_success, result.error_message
    return current_domain.repository_for(InventoryItem).get_by_variant_and_warehouse("var-1001", "wh-main", "default")
