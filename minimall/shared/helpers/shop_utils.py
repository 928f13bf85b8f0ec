"""
Shop domain helpers
"""

from typing import List


def extract_shop_from_domain(domain: str) -> str:
    """`my-shop.myshopify.com` -> `my-shop`; custom domains keep their first label"""
    if ".myshopify.com" in domain:
        return domain.replace(".myshopify.com", "")
    return domain.split(".")[0] if domain else ""


def shop_identifiers(shop: str) -> List[str]:
    """Both spellings a shop may be stored under: the full domain and its short name"""
    if not shop:
        return []
    identifiers = [shop]
    short_name = extract_shop_from_domain(shop)
    if short_name and short_name != shop:
        identifiers.append(short_name)
    if "." not in shop:
        identifiers.append(f"{shop}.myshopify.com")
    return identifiers
