"""
Storefront product lookup and the development product catalogue
"""

from typing import Any, Dict, List, Optional

MOCK_PRODUCT_WARNING = "Using mock data - configure SHOPIFY_STOREFRONT_ACCESS_TOKEN"

PRODUCT_QUERY = """
query getProductById($id: ID!) {
  product(id: $id) {
    id
    handle
    title
    description
    vendor
    productType
    tags
    availableForSale
    createdAt
    updatedAt
    priceRange {
      minVariantPrice { amount currencyCode }
      maxVariantPrice { amount currencyCode }
    }
    images(first: 10) {
      nodes { id url altText width height }
    }
    variants(first: 50) {
      nodes {
        id
        title
        availableForSale
        price { amount currencyCode }
        compareAtPrice { amount currencyCode }
        selectedOptions { name value }
        image { id url altText width height }
        sku
        requiresShipping
      }
    }
  }
}
"""


def to_product_gid(product_id: str) -> str:
    if str(product_id).startswith("gid://"):
        return str(product_id)
    return f"gid://shopify/Product/{product_id}"


def flatten_product(product: Dict[str, Any]) -> Dict[str, Any]:
    """Replace GraphQL `nodes` connections with plain lists"""
    flat = dict(product)
    for field in ("images", "variants"):
        connection = flat.get(field)
        if isinstance(connection, dict):
            flat[field] = connection.get("nodes") or []
    return flat


_TEE_IMAGE = "https://images.unsplash.com/photo-1521572163474-6864f9cf17ab?w=600&h=600&fit=crop"

MOCK_PRODUCTS: List[Dict[str, Any]] = [
    {
        "id": "prod_abc",
        "title": "Essential Tee",
        "handle": "essential-tee",
        "description": "A comfortable and stylish essential tee made from 100% organic cotton.",
        "images": [
            {
                "id": "img_1",
                "url": _TEE_IMAGE,
                "altText": "Essential Tee - Black",
                "width": 600,
                "height": 600,
            },
            {
                "id": "img_2",
                "url": f"{_TEE_IMAGE}&sat=-100",
                "altText": "Essential Tee - White",
                "width": 600,
                "height": 600,
            },
        ],
        "variants": [
            {
                "id": "var_1",
                "title": "Black / M",
                "price": {"amount": "29.00", "currencyCode": "USD"},
                "compareAtPrice": {"amount": "39.00", "currencyCode": "USD"},
                "availableForSale": True,
                "selectedOptions": [
                    {"name": "Color", "value": "Black"},
                    {"name": "Size", "value": "M"},
                ],
                "image": {
                    "id": "img_1",
                    "url": _TEE_IMAGE,
                    "altText": "Essential Tee - Black",
                    "width": 600,
                    "height": 600,
                },
                "requiresShipping": True,
            },
        ],
        "priceRange": {
            "minVariantPrice": {"amount": "29.00", "currencyCode": "USD"},
            "maxVariantPrice": {"amount": "29.00", "currencyCode": "USD"},
        },
        "tags": ["cotton", "essential", "casual"],
        "productType": "Apparel",
        "vendor": "Demo Store",
        "availableForSale": True,
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    },
]


def get_mock_product(product_id: str) -> Optional[Dict[str, Any]]:
    for product in MOCK_PRODUCTS:
        if product["id"] == product_id:
            return product
    return None
