import uuid

import pytest

from storefront.config import settings
from storefront.models import Order
from conftest import API, sign_up_and_in
from test_checkout import FORM, add

JPEG = b"\xff\xd8\xff\xe0fake-jpeg-bytes"


@pytest.fixture
def place_order(client, make_product):
    frame = make_product("Frame Kayu", price=50000)

    def _place(headers, quantity=1):
        add(client, headers, frame, quantity=quantity)
        response = client.post(f"{API}/checkout", json=FORM, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["order"]
    return _place


def test_list_and_get_own_orders(client, customer, place_order):
    first = place_order(customer)
    second = place_order(customer, quantity=2)

    listed = client.get(f"{API}/orders", headers=customer).json()
    fetched = client.get(f"{API}/orders/{second['id']}", headers=customer).json()

    assert {o["id"] for o in listed} == {first["id"], second["id"]}
    assert fetched["order_number"] == second["order_number"]
    assert fetched["items"][0]["quantity"] == 2


def test_orders_are_private(client, customer, place_order):
    order = place_order(customer)
    other = sign_up_and_in(client, "other@example.com")

    assert client.get(f"{API}/orders", headers=other).json() == []
    assert client.get(f"{API}/orders/{order['id']}", headers=other).status_code == 404
    assert client.post(f"{API}/orders/{order['id']}/cancel", headers=other).status_code == 404
    assert client.get(f"{API}/orders/{uuid.uuid4()}", headers=customer).status_code == 404


def test_order_stats(client, db, customer, place_order):
    pending = place_order(customer)
    delivered = place_order(customer, quantity=2)
    cancelled = place_order(customer)
    db.query(Order).filter(Order.id == uuid.UUID(delivered["id"])).update({Order.status: "delivered"})
    db.commit()
    client.post(f"{API}/orders/{cancelled['id']}/cancel", headers=customer)

    stats = client.get(f"{API}/orders/stats", headers=customer).json()

    assert stats == {
        "total_orders": 3,
        "total_spent": pending["total_amount"] + delivered["total_amount"] + cancelled["total_amount"],
        "pending_orders": 1,
        "processing_orders": 0,
        "completed_orders": 1,
        "cancelled_orders": 1,
    }


def test_cancel_pending_order(client, customer, place_order, events):
    order = place_order(customer)

    response = client.post(f"{API}/orders/{order['id']}/cancel", headers=customer)

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert events.types() == ["ORDER_CREATED", "ORDER_CANCELLED"]


def test_cannot_cancel_processed_order(client, db, customer, place_order):
    order = place_order(customer)
    db.query(Order).update({Order.status: "processing"})
    db.commit()

    response = client.post(f"{API}/orders/{order['id']}/cancel", headers=customer)

    assert response.status_code == 409
    assert response.json()["detail"] == "Order cannot be cancelled because it is already being processed"


def test_add_photos_to_order_item(client, customer, place_order):
    order = place_order(customer)
    item_id = order["items"][0]["id"]
    url = f"{API}/orders/{order['id']}/items/{item_id}/photos"

    first = client.post(url, files=[("files", ("one.jpg", JPEG, "image/jpeg"))], headers=customer)
    second = client.post(
        url,
        files=[("files", ("two.jpg", JPEG, "image/jpeg")), ("files", ("three.png", JPEG, "image/png"))],
        headers=customer
    )

    assert first.status_code == 201, first.text
    assert second.status_code == 201, second.text
    assert [p["sort_order"] for p in first.json() + second.json()] == [0, 1, 2]

    photo = second.json()[0]
    assert photo["upload_status"] == "completed"
    assert photo["file_path"].startswith(f"{settings.photo_folder}/")
    assert f"/{order['id']}/" in photo["file_path"]
    assert photo["file_path"].endswith(".jpg")

    photos = client.get(f"{API}/orders/{order['id']}", headers=customer).json()["items"][0]["photos"]
    assert [p["file_name"] for p in photos] == ["one.jpg", "two.jpg", "three.png"]


def test_add_photos_rejects_non_images_and_foreign_items(client, customer, place_order):
    order = place_order(customer)
    item_id = order["items"][0]["id"]
    url = f"{API}/orders/{order['id']}/items/{item_id}/photos"
    other = sign_up_and_in(client, "other@example.com")

    not_image = client.post(url, files=[("files", ("notes.txt", b"hello", "text/plain"))], headers=customer)
    foreign = client.post(url, files=[("files", ("one.jpg", JPEG, "image/jpeg"))], headers=other)
    wrong_item = client.post(
        f"{API}/orders/{order['id']}/items/{uuid.uuid4()}/photos",
        files=[("files", ("one.jpg", JPEG, "image/jpeg"))],
        headers=customer
    )

    assert not_image.status_code == 400
    assert not_image.json()["detail"] == "File notes.txt is not a valid image file"
    assert foreign.status_code == 404
    assert wrong_item.status_code == 404
