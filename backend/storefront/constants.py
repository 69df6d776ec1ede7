"""
Storefront Global Constants

Centralized location for all system-wide constants used across the application.
"""

from datetime import datetime, timezone

# Cache tag roots shared by services and tagging rules
CATEGORIES_TAG = "categories"
PRODUCTS_TAG = "products"
ORDERS_TAG = "orders"

# Collection cache keys
ALL_CATEGORIES_KEY = "all_categories"
ALL_PRODUCTS_KEY = "all_products"
ALL_ORDERS_KEY = "all_orders"

# Order status used when the caller does not supply one
DEFAULT_ORDER_STATUS = "pending"


# Timestamp Functions
def get_current_timestamp() -> datetime:
    """Get current timestamp with UTC timezone.

    Returns:
        datetime: Current UTC timestamp

    Note: Use this function instead of a constant to get real-time timestamps.
    """
    return datetime.now(timezone.utc)


# Application Constants
APP_NAME = "Storefront"
APP_VERSION = "1.0.0"
