"""
Revenue attribution for Shopify orders

Storefront carts tag line items with `minimall_*` properties. Order note
attributes carry the same names and win when both are present.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from minimall.core.logging import get_logger
from minimall.repository.RevenueAttributionRepository import (
    RevenueAttributionRepository,
)
from minimall.shared.helpers import now_utc, parse_iso_timestamp

logger = get_logger(__name__)

_PROPERTY_FIELDS = {
    "minimall_config_id": "config_id",
    "minimall_block_id": "block_id",
    "minimall_layout_preset": "layout_preset",
    "minimall_experiment_key": "experiment_key",
    "minimall_session_id": "session_id",
    "minimall_device": "device",
}

_UTM_FIELDS = {
    "minimall_utm_source": "source",
    "minimall_utm_medium": "medium",
    "minimall_utm_campaign": "campaign",
    "minimall_utm_term": "term",
    "minimall_utm_content": "content",
}


def _apply_property(name: str, value: Any, data: Dict[str, Any]) -> None:
    lower_name = (name or "").lower()
    if lower_name in _PROPERTY_FIELDS:
        data[_PROPERTY_FIELDS[lower_name]] = value
    elif lower_name in _UTM_FIELDS:
        data["utm"][_UTM_FIELDS[lower_name]] = value


def extract_attribution_data(
    order: Dict[str, Any], line_item: Dict[str, Any]
) -> Dict[str, Any]:
    data: Dict[str, Any] = {"utm": {}}
    for prop in line_item.get("properties") or []:
        _apply_property(prop.get("name"), prop.get("value"), data)
    for attr in order.get("note_attributes") or []:
        _apply_property(attr.get("name"), attr.get("value"), data)
    return data


def price_to_cents(price: Any) -> int:
    """Shopify decimal price string -> integer cents, half up"""
    cents = Decimal(str(price)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_line_item_attribution(
    order: Dict[str, Any], line_item: Dict[str, Any], shop_domain: str
) -> Optional[Dict[str, Any]]:
    """Attribution row for one line item, or None for non-storefront items"""
    data = extract_attribution_data(order, line_item)
    if not data.get("config_id") or not data.get("block_id"):
        return None

    price = price_to_cents(line_item["price"])
    quantity = int(line_item["quantity"])
    utm = data["utm"]

    return {
        "order_id": str(order["id"]),
        "line_item_id": str(line_item["id"]),
        "shop_domain": shop_domain,
        "config_id": data["config_id"],
        "block_id": data["block_id"],
        "layout_preset": data.get("layout_preset") or "unknown",
        "experiment_key": data.get("experiment_key") or None,
        "product_id": str(line_item["product_id"]),
        "variant_id": str(line_item["variant_id"]),
        "quantity": quantity,
        "price": price,
        "revenue": price * quantity,
        "utm_source": utm.get("source") or None,
        "utm_medium": utm.get("medium") or None,
        "utm_campaign": utm.get("campaign") or None,
        "utm_term": utm.get("term") or None,
        "utm_content": utm.get("content") or None,
        "session_id": data.get("session_id") or "unknown",
        "device": data.get("device") or "unknown",
        "timestamp": parse_iso_timestamp(order.get("created_at") or "") or now_utc(),
    }


def collect_order_attributions(
    order: Dict[str, Any], shop_domain: str
) -> List[Dict[str, Any]]:
    attributions = []
    for line_item in order.get("line_items") or []:
        try:
            attribution = build_line_item_attribution(order, line_item, shop_domain)
        except Exception as e:
            logger.error(
                f"Failed to process line item {line_item.get('id')}: {e}",
                order_id=order.get("id"),
            )
            continue
        if attribution:
            attributions.append(attribution)
    return attributions


async def process_order_attributions(
    order: Dict[str, Any],
    shop_domain: str,
    repository: Optional[RevenueAttributionRepository] = None,
) -> List[Dict[str, Any]]:
    """
    Extract and store attributions for an order.

    Storage failures are logged and do not fail the caller; the extracted
    attributions are returned either way.
    """
    attributions = collect_order_attributions(order, shop_domain)
    if not attributions:
        return attributions

    repository = repository or RevenueAttributionRepository()
    try:
        await repository.add_many(attributions)
        logger.info(
            f"Saved {len(attributions)} revenue attributions for order #{order.get('order_number')}",
            shop=shop_domain,
        )
    except Exception as e:
        logger.error(f"Failed to save revenue attributions: {e}", shop=shop_domain)
    return attributions
