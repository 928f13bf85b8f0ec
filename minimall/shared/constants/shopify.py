"""
Shopify-related constants
"""

SHOPIFY_SCOPES = [
    "read_products",
    "write_products",
    "read_themes",
    "write_themes",
    "read_customers",
    "read_orders",
]

STOREFRONT_API_VERSION = "2024-10"

SHOP_DOMAIN_PATTERN = r"^[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9]\.myshopify\.com$"

# Session token lifetime in seconds
SESSION_TOKEN_TTL = 24 * 60 * 60

GDPR_TOPICS = ["customers/data_request", "customers/redact", "shop/redact"]

# Per-topic webhook limits within a 60s window
WEBHOOK_RATE_LIMITS = {
    "app/uninstalled": 5,
    "orders/create": 50,
    "orders/updated": 50,
    "products/create": 20,
    "products/update": 20,
    "products/delete": 20,
}
DEFAULT_WEBHOOK_RATE_LIMIT = 30
WEBHOOK_RATE_WINDOW_SECONDS = 60

ATTRIBUTION_PREFIX = "minimall_"
