import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from storefront.config import settings
from storefront.main import app
from storefront.models import CartItem, Order, OrderItem, OrderPhoto
from storefront.services.cart_service import CartService
from conftest import API


FORM = {
    "customer_name": "Budi Santoso",
    "customer_email": "customer@example.com",
    "customer_phone": "081234567890",
    "address": "Jl. Merdeka No. 1",
    "city": "Bandung",
    "province": "Jawa Barat",
    "postal_code": "40111",
}


def add(client, headers, product, quantity=1, variant=None):
    payload = {"product_id": str(product.id), "quantity": quantity}
    if variant is not None:
        payload["variant_id"] = str(variant.id)
    response = client.post(f"{API}/cart/items", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def user_id_of(client, headers):
    return client.get(f"{API}/auth/me", headers=headers).json()["user"]["id"]


def photo(user_id, name="holiday.jpg"):
    return {
        "file_name": name,
        "file_path": f"{settings.photo_folder}/{user_id}/1718000000000-abc123defgh.jpg",
        "file_size": 2048,
        "mime_type": "image/jpeg",
    }


def test_checkout_without_photo_products(client, db, customer, make_product, events):
    frame = make_product("Frame Kayu", price=50000, sku="FRM-01", images=["products/frame.jpg"])
    add(client, customer, frame, quantity=2)

    response = client.post(
        f"{API}/checkout",
        json={**FORM, "notes": "Gift wrap please"},
        headers={**customer, "User-Agent": "pytest-agent"}
    )

    assert response.status_code == 201, response.text
    body = response.json()
    order = body["order"]
    assert body["order_number"] == order["order_number"]
    assert order["order_number"].startswith("PB-")
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["payment_method"] == "transfer"
    assert order["subtotal"] == 100000
    assert order["shipping_fee"] == settings.shipping_fee
    assert order["tax_amount"] == 0
    assert order["discount_amount"] == 0
    assert order["total_amount"] == 100000 + settings.shipping_fee
    assert order["shipping_address"] == {
        "address": "Jl. Merdeka No. 1", "city": "Bandung", "province": "Jawa Barat", "postal_code": "40111"
    }
    assert order["notes"] == "Gift wrap please"
    assert order["metadata"]["created_from"] == "api"
    assert order["metadata"]["user_agent"] == "pytest-agent"

    [item] = order["items"]
    assert item["product_name"] == "Frame Kayu"
    assert item["price"] == 50000
    assert item["quantity"] == 2
    assert item["subtotal"] == 100000
    assert item["product_data"] == {"images": ["products/frame.jpg"], "sku": "FRM-01"}

    assert db.query(CartItem).count() == 0
    assert events.types() == ["ORDER_CREATED"]
    assert events.events[0][1]["total_amount"] == order["total_amount"]


def test_checkout_snapshots_variant_and_stores_photos(client, db, customer, make_product):
    prints = make_product("Cetak Foto", price=3500, variants=[("4R", 4000)])
    item_id = add(client, customer, prints, quantity=2, variant=prints.variants[0])
    user_id = user_id_of(client, customer)
    photos = [photo(user_id, "a.jpg"), photo(user_id, "b.jpg")]

    response = client.post(
        f"{API}/checkout",
        json={**FORM, "payment_method": "cod", "photo_uploads": {item_id: photos}},
        headers=customer
    )

    assert response.status_code == 201, response.text
    order = response.json()["order"]
    assert order["payment_method"] == "cod"
    assert order["metadata"]["photo_uploads"][item_id][0]["file_name"] == "a.jpg"

    [item] = order["items"]
    assert item["variant_name"] == "4R"
    assert item["price"] == 4000
    assert item["subtotal"] == 8000
    assert [(p["file_name"], p["sort_order"]) for p in item["photos"]] == [("a.jpg", 0), ("b.jpg", 1)]

    stored = db.query(OrderPhoto).filter(OrderPhoto.file_name == "a.jpg").one()
    assert stored.upload_status == "completed"
    assert stored.photo_metadata == {"uploaded_at_checkout": True, "original_file_name": "a.jpg"}


def test_checkout_with_empty_cart(client, customer):
    response = client.post(f"{API}/checkout", json=FORM, headers=customer)

    assert response.status_code == 400
    assert response.json()["detail"] == "Your cart is empty"


@pytest.mark.parametrize("field", ["customer_name", "customer_phone", "address", "postal_code"])
def test_checkout_requires_every_field(client, customer, make_product, field):
    add(client, customer, make_product("Frame Kayu", price=50000))

    response = client.post(f"{API}/checkout", json={**FORM, field: "   "}, headers=customer)

    assert response.status_code == 400
    assert response.json()["detail"] == "Please complete all required fields"


def test_checkout_requires_photos_for_print_products(client, db, customer, make_product):
    add(client, customer, make_product("Photobox Classic"))
    add(client, customer, make_product("Frame Kayu", price=50000))

    response = client.post(f"{API}/checkout", json=FORM, headers=customer)

    assert response.status_code == 400
    assert response.json()["detail"] == "Please upload photos for: Photobox Classic"
    assert db.query(Order).count() == 0
    assert db.query(CartItem).count() == 2


def test_checkout_caps_photos_per_quantity(client, customer, make_product):
    item_id = add(client, customer, make_product("Photobox Classic"), quantity=1)
    user_id = user_id_of(client, customer)
    too_many = [photo(user_id, f"{i}.jpg") for i in range(settings.photos_per_quantity + 1)]

    response = client.post(f"{API}/checkout", json={**FORM, "photo_uploads": {item_id: too_many}}, headers=customer)

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Too many photos for Photobox Classic")


def test_checkout_rejects_photos_for_unknown_lines(client, customer, make_product):
    add(client, customer, make_product("Frame Kayu", price=50000))
    user_id = user_id_of(client, customer)
    stray = "00000000-0000-0000-0000-000000000001"

    response = client.post(f"{API}/checkout", json={**FORM, "photo_uploads": {stray: [photo(user_id)]}}, headers=customer)

    assert response.status_code == 400
    assert stray in response.json()["detail"]


def test_checkout_rejects_someone_elses_photos(client, customer, make_product):
    item_id = add(client, customer, make_product("Photobox Classic"))
    foreign = photo("5b7a4d8e-0000-0000-0000-000000000000")

    response = client.post(f"{API}/checkout", json={**FORM, "photo_uploads": {item_id: [foreign]}}, headers=customer)

    assert response.status_code == 403


def test_checkout_rejects_paths_escaping_own_folder(client, db, customer, make_product):
    item_id = add(client, customer, make_product("Photobox Classic"))
    user_id = user_id_of(client, customer)
    victim_id = "5b7a4d8e-0000-0000-0000-000000000000"
    escaping = {
        **photo(user_id),
        "file_path": f"{settings.photo_folder}/{user_id}/../{victim_id}/1718000000000-abc123defgh.jpg",
    }

    response = client.post(f"{API}/checkout", json={**FORM, "photo_uploads": {item_id: [escaping]}}, headers=customer)

    assert response.status_code == 403
    assert db.query(Order).count() == 0


def test_failed_checkout_writes_nothing(client, db, customer, make_product, monkeypatch, events):
    item_id = add(client, customer, make_product("Photobox Classic"))
    user_id = user_id_of(client, customer)

    def failing_clear_cart(self, user_id, commit=True):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(CartService, "clear_cart", failing_clear_cart)
    unchecked_client = TestClient(app, raise_server_exceptions=False)

    response = unchecked_client.post(
        f"{API}/checkout",
        json={**FORM, "photo_uploads": {item_id: [photo(user_id)]}},
        headers=customer
    )

    assert response.status_code == 500
    db.expire_all()
    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0
    assert db.query(OrderPhoto).count() == 0
    assert db.query(CartItem).count() == 1
    assert events.types() == []


def test_checkout_rejects_unknown_payment_method(client, customer, make_product):
    add(client, customer, make_product("Frame Kayu", price=50000))

    response = client.post(f"{API}/checkout", json={**FORM, "payment_method": "crypto"}, headers=customer)

    assert response.status_code == 422


def test_order_numbers_are_unique(client, db, customer, make_product):
    frame = make_product("Frame Kayu", price=50000)
    numbers = set()
    for _ in range(3):
        add(client, customer, frame)
        response = client.post(f"{API}/checkout", json=FORM, headers=customer)
        numbers.add(response.json()["order_number"])

    assert len(numbers) == 3
    assert db.query(Order).count() == 3
