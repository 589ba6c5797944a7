"""Display helpers shared by the catalog, cart and admin responses"""
import re
from typing import List, Optional

PLACEHOLDER_IMAGE = "/images/placeholder-product.jpg"


def format_price(amount: int, currency: str = "IDR") -> str:
    """Format a whole-unit amount for display, e.g. 15000 -> 'Rp 15.000'"""
    grouped = f"{abs(int(amount)):,}".replace(",", ".")
    sign = "-" if amount < 0 else ""
    if currency == "IDR":
        return f"{sign}Rp {grouped}"
    return f"{sign}{currency} {grouped}"


def get_main_image(images: Optional[List[str]]) -> str:
    if images:
        return images[0]
    return PLACEHOLDER_IMAGE


def has_discount(price: int, original_price: Optional[int]) -> bool:
    return original_price is not None and original_price > price


def get_discount_percentage(price: int, original_price: Optional[int]) -> int:
    """Rounded percentage saved against the original price; 0 when not discounted"""
    if not has_discount(price, original_price):
        return 0
    # Round half up
    return int((original_price - price) * 100 / original_price + 0.5)


def generate_slug(name: str) -> str:
    """'Photobox Classic 4R!' -> 'photobox-classic-4r'"""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
