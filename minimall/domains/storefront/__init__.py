"""
Public storefront: cart and product client, experiment routing
"""

from .cart import (
    StorefrontClient,
    create_storefront_client,
    mock_cart,
    normalize_shop_domain,
)
from .products import MOCK_PRODUCT_WARNING, get_mock_product
from .experiments import (
    ExperimentContext,
    get_experiment_variant,
    route_experiment,
    track_experiment_exposure,
)

__all__ = [
    "StorefrontClient",
    "create_storefront_client",
    "mock_cart",
    "normalize_shop_domain",
    "MOCK_PRODUCT_WARNING",
    "get_mock_product",
    "ExperimentContext",
    "get_experiment_variant",
    "route_experiment",
    "track_experiment_exposure",
]
