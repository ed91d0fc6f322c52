import pytest


@pytest.fixture(autouse=True)
def registered_variants(catalogue):
    """Opening balances need a catalogued variant."""
    return catalogue
