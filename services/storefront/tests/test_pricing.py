from types import SimpleNamespace
from datetime import datetime, timezone

import pytest

from storefront.services.pricing import (
    PLACEHOLDER_IMAGE, format_price, get_main_image, has_discount, get_discount_percentage, generate_slug
)
from storefront.services.cart_service import summarize
from storefront.services.checkout_service import requires_photos, generate_order_number


@pytest.mark.parametrize("amount, expected", [
    (0, "Rp 0"),
    (500, "Rp 500"),
    (15000, "Rp 15.000"),
    (1250000, "Rp 1.250.000"),
])
def test_format_price_uses_dot_thousands_separator(amount, expected):
    assert format_price(amount) == expected


def test_format_price_other_currency():
    assert format_price(2500, "USD") == "USD 2.500"


def test_main_image_falls_back_to_placeholder():
    assert get_main_image(["a.jpg", "b.jpg"]) == "a.jpg"
    assert get_main_image([]) == PLACEHOLDER_IMAGE
    assert get_main_image(None) == PLACEHOLDER_IMAGE


def test_discount_only_when_original_price_is_higher():
    assert has_discount(100000, 125000)
    assert not has_discount(100000, 100000)
    assert not has_discount(100000, None)
    assert get_discount_percentage(100000, None) == 0
    assert get_discount_percentage(100000, 90000) == 0


def test_discount_percentage_rounds_half_up():
    assert get_discount_percentage(150000, 175000) == 14
    assert get_discount_percentage(75, 100) == 25
    # 12.5% saved
    assert get_discount_percentage(175, 200) == 13


def test_generate_slug():
    assert generate_slug("Photobox Classic 4R!") == "photobox-classic-4r"
    assert generate_slug("  Cetak  Foto -- Polaroid ") == "cetak-foto-polaroid"
    assert generate_slug("!!!") == ""


def test_summarize_cart_lines():
    lines = [SimpleNamespace(price=3500, quantity=10), SimpleNamespace(price=150000, quantity=1)]
    assert summarize(lines) == {"total_items": 11, "total_price": 185000}
    assert summarize([]) == {"total_items": 0, "total_price": 0}


@pytest.mark.parametrize("name, expected", [
    ("Photobox Classic", True),
    ("Cetak 4R", True),
    ("Album FOTO Premium", True),
    ("Frame Kayu", False),
    ("Mug", False),
])
def test_requires_photos(name, expected):
    assert requires_photos(name) is expected


def test_order_number_format():
    now = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    epoch_ms = str(int(now.timestamp() * 1000))
    assert generate_order_number(now) == f"PB-20240115-{epoch_ms[-6:]}"
