"""
Default and demo SiteConfig documents, plus category tree helpers
"""

import secrets
import string
from typing import Any, Dict, List, Optional

from minimall.shared.helpers import now_utc, to_iso_z

CONFIG_ID_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEMO_CONFIG_ID = "demo"
DEMO_SHOP_DOMAIN = "demo-shop.myshopify.com"
DEMO_TIMESTAMP = "2024-01-01T00:00:00.000Z"

_UNSPLASH = "https://images.unsplash.com"


def generate_config_id() -> str:
    return "".join(secrets.choice(CONFIG_ID_ALPHABET) for _ in range(10))


def _single(
    item_id: str, title: str, card_kind: str, card: Dict[str, Any], order: int
) -> Dict[str, Any]:
    return {
        "id": item_id,
        "title": title,
        "card": [card_kind, card],
        "categoryType": ["single", {"children": []}],
        "order": order,
        "visible": True,
    }


def _instagram_category() -> Dict[str, Any]:
    posts = [
        ("Behind the Scenes", "photo-1445205170230-053b83016050"),
        ("Style Guide", "photo-1483985988355-763728e1935b"),
        ("New Collection", "photo-1529139574466-a303027c1d8b"),
    ]
    children = [
        _single(
            "instagram-1",
            "Latest Post",
            "image",
            {
                "image": f"{_UNSPLASH}/photo-1441986300917-64674bd600d8?w=400&h=400&fit=crop",
                "clickAction": {"type": "modal", "target": "instagram-1"},
                "hoverEffect": {"type": "zoom", "intensity": 0.05, "duration": 200},
                "productTags": [
                    {
                        "productId": "prod_abc",
                        "position": {"x": 0.6, "y": 0.4},
                        "label": "Essential Tee",
                    }
                ],
            },
            1,
        )
    ]
    for index, (title, photo) in enumerate(posts, start=2):
        children.append(
            _single(
                f"instagram-{index}",
                title,
                "image",
                {
                    "link": "https://instagram.com/demo",
                    "image": f"{_UNSPLASH}/{photo}?w=400&h=400&fit=crop",
                },
                index,
            )
        )

    return {
        "id": "instagram",
        "title": "INSTAGRAM",
        "card": ["grid", {"link": None, "shape": ["square"]}],
        "categoryType": [
            "feed",
            {"children": children, "displayType": "grid", "itemsPerRow": 2},
        ],
        "order": 1,
        "visible": True,
    }


def _shop_category(shop_domain: str) -> Dict[str, Any]:
    products = [
        ("Essential Tee", "essential-tee", "$29", "photo-1521572163474-6864f9cf17ab"),
        ("Vintage Jacket", "vintage-jacket", "$89", "photo-1551028719-00167b16eac5"),
        ("Classic Jeans", "classic-jeans", "$65", "photo-1542272604-787c3835535d"),
        (
            "Statement Sneakers",
            "statement-sneakers",
            "$125",
            "photo-1549298916-b41d501d3772",
        ),
    ]
    children = [
        _single(
            f"product-{index}",
            title,
            "product",
            {
                "link": f"https://{shop_domain}/products/{handle}",
                "price": price,
                "image": f"{_UNSPLASH}/{photo}?w=400&h=400&fit=crop",
            },
            index,
        )
        for index, (title, handle, price, photo) in enumerate(products, start=1)
    ]

    return {
        "id": "shop",
        "title": "SHOP",
        "card": ["product", {"link": None}],
        "categoryType": [
            "products",
            {
                "children": children,
                "products": [],
                "displayType": "grid",
                "itemsPerRow": 2,
            },
        ],
        "order": 2,
        "visible": True,
    }


def _lookbook_category() -> Dict[str, Any]:
    looks = [
        ("Spring Collection", "SPRING 2024", "photo-1490481651871-ab68de25d43d"),
        ("Urban Essentials", "URBAN", "photo-1506629905587-4b1d7673dab7"),
    ]
    children = [
        _single(
            f"lookbook-{index}",
            title,
            "image",
            {
                "link": None,
                "image": f"{_UNSPLASH}/{photo}?w=800&h=600&fit=crop",
                "overlay": {"text": overlay, "position": "center"},
            },
            index,
        )
        for index, (title, overlay, photo) in enumerate(looks, start=1)
    ]

    return {
        "id": "lookbook",
        "title": "LOOKBOOK",
        "card": ["image", {"link": None, "shape": ["landscape"]}],
        "categoryType": ["gallery", {"children": children, "displayType": "slider"}],
        "order": 3,
        "visible": True,
    }


def default_settings(shop_domain: str) -> Dict[str, Any]:
    return {
        "checkoutLink": f"https://{shop_domain}/cart",
        "shopDomain": shop_domain,
        "brand": {
            "name": "DEMO.STORE",
            "subtitle": "Interactive link in bio tool by maker",
            "socialLinks": {
                "instagram": "https://instagram.com/demo",
                "twitter": "https://twitter.com/demo",
                "pinterest": "https://pinterest.com/demo",
            },
            "ctaButton": {"text": "Visit Demo.Store", "url": f"https://{shop_domain}"},
        },
        "theme": {
            "primaryColor": "#FFFFFF",
            "backgroundColor": "#000000",
            "textColor": "#FFFFFF",
            "accentColor": "#666666",
            "fontFamily": "Inter",
            "borderRadius": "sm",
        },
        "animations": {
            "transitions": {
                "duration": 300,
                "easing": "cubic-bezier(0.25, 0.8, 0.25, 1)",
            },
            "modals": {
                "fadeIn": 200,
                "slideIn": 400,
                "backdrop": {"opacity": 0.8, "blur": 4},
            },
            "hover": {"scale": 1.05, "duration": 200},
        },
        "modals": {
            "backdrop": {"blur": True, "opacity": 0.8},
            "positioning": {"centered": True, "offsetY": 0},
            "behavior": {
                "closeOnBackdrop": True,
                "closeOnEscape": True,
                "preventScroll": True,
            },
        },
        "seo": {
            "title": "DEMO.STORE - Link in Bio",
            "description": "Interactive link in bio for fashion and lifestyle brands",
            "keywords": "fashion, lifestyle, shopping, demo",
        },
    }


def create_default_site_config(
    shop_domain: str, config_id: Optional[str] = None
) -> Dict[str, Any]:
    """A ready-to-render starter storefront for a newly created config"""
    timestamp = to_iso_z(now_utc())
    return {
        "id": config_id or generate_config_id(),
        "version": "1.0.0",
        "categories": [
            _instagram_category(),
            _shop_category(shop_domain),
            _lookbook_category(),
        ],
        "settings": default_settings(shop_domain),
        "createdAt": timestamp,
        "updatedAt": timestamp,
    }


def create_demo_config(config_id: str = DEMO_CONFIG_ID) -> Dict[str, Any]:
    """The stable demo storefront served when no stored config exists"""
    config = create_default_site_config(DEMO_SHOP_DOMAIN, config_id=config_id)
    config["createdAt"] = DEMO_TIMESTAMP
    config["updatedAt"] = DEMO_TIMESTAMP
    return config


def find_category_by_id(
    categories: List[Dict[str, Any]], category_id: str
) -> Optional[Dict[str, Any]]:
    for category in categories:
        if category.get("id") == category_id:
            return category
        found = find_category_by_id(category.get("children") or [], category_id)
        if found:
            return found
    return None


def flatten_categories(categories: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    result = []
    for category in categories:
        result.append(category)
        result.extend(flatten_categories(category.get("children") or []))
    return result


def reorder_categories(
    categories: List[Dict[str, Any]], from_index: int, to_index: int
) -> List[Dict[str, Any]]:
    """Move one category and renumber `order` from 1"""
    result = list(categories)
    if not 0 <= from_index < len(result):
        return result
    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return [{**category, "order": index + 1} for index, category in enumerate(result)]
