"""
MINIMALL: Shopify link-in-bio storefront backend
"""

__version__ = "1.0.0"
