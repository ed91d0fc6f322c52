"""Service settings read from the environment.

Framework configuration (databases, brokers, processing mode) lives in
``domain.toml`` and is selected with ``PROTEAN_ENV``. The knobs below tune the
service itself.
"""

import os
from decimal import Decimal


def default_tenant() -> str:
    return os.getenv("IMS_DEFAULT_TENANT", "default")


def command_retries() -> int:
    """Attempts made for a command that hits a version conflict."""
    return max(1, int(os.getenv("IMS_COMMAND_RETRIES", "3")))


def reservation_warning_minutes() -> int:
    return int(os.getenv("IMS_RESERVATION_WARNING_MINUTES", "30"))


def low_stock_threshold() -> Decimal:
    return Decimal(os.getenv("IMS_LOW_STOCK_THRESHOLD", "10"))
