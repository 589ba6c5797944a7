import uuid

import pytest

from storefront.models import CartItem, OrderItem, Product
from conftest import API
from test_checkout import FORM, add
from test_orders import JPEG


def test_create_product_generates_slug(client, admin, make_category, events):
    category = make_category()

    response = client.post(f"{API}/admin/products", json={
        "name": "Photobox Premium 4R!",
        "price": 250000,
        "original_price": 300000,
        "category_id": str(category.id),
        "images": ["products/premium.jpg"],
        "is_featured": True,
    }, headers=admin)

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["slug"] == "photobox-premium-4r"
    assert body["category_name"] == "Photobox"
    assert body["discount_percentage"] == 17
    assert events.types() == ["PRODUCT_CREATED"]

    public = client.get(f"{API}/products/photobox-premium-4r")
    assert public.status_code == 200


def test_create_product_rejects_duplicate_slug_and_unknown_category(client, admin, make_product):
    make_product("Photobox Classic")

    duplicate = client.post(f"{API}/admin/products", json={"name": "Photobox Classic", "price": 1}, headers=admin)
    bad_category = client.post(
        f"{API}/admin/products",
        json={"name": "New Box", "price": 1, "category_id": str(uuid.uuid4())},
        headers=admin
    )

    assert duplicate.status_code == 409
    assert bad_category.status_code == 404


def test_list_products_includes_inactive_with_category_name(client, admin, make_category, make_product):
    category = make_category()
    make_product("Photobox Classic", category_id=category.id)
    make_product("Draft Box", is_active=False)

    products = {p["name"]: p for p in client.get(f"{API}/admin/products", headers=admin).json()}

    assert set(products) == {"Photobox Classic", "Draft Box"}
    assert products["Photobox Classic"]["category_name"] == "Photobox"
    assert products["Draft Box"]["category_name"] == "Uncategorized"


def test_update_product_is_partial(client, db, admin, make_product, events):
    product = make_product("Photobox Classic", price=150000, description="Kotak kayu")
    before = product.updated_at

    response = client.put(f"{API}/admin/products/{product.id}", json={"price": 165000}, headers=admin)

    assert response.status_code == 200
    body = response.json()
    assert body["price"] == 165000
    assert body["description"] == "Kotak kayu"
    assert events.types() == ["PRODUCT_UPDATED"]
    db.expire_all()
    assert db.get(Product, product.id).updated_at >= before


@pytest.mark.parametrize("field", ["name", "price", "stock_quantity", "is_active"])
def test_update_rejects_null_for_required_columns(client, db, admin, make_product, field):
    product = make_product("Photobox Classic", price=150000)

    response = client.put(f"{API}/admin/products/{product.id}", json={field: None}, headers=admin)

    assert response.status_code == 422
    db.expire_all()
    assert db.get(Product, product.id).price == 150000


def test_update_clears_nullable_columns(client, admin, make_product):
    product = make_product("Photobox Classic", price=150000, original_price=175000)

    response = client.put(f"{API}/admin/products/{product.id}", json={"original_price": None}, headers=admin)

    assert response.status_code == 200
    assert response.json()["original_price"] is None
    assert response.json()["has_discount"] is False


def test_variant_update_rejects_null_price(client, admin, make_product):
    product = make_product("Cetak Foto", price=3500, variants=[("4R", 4000)])

    response = client.put(f"{API}/admin/variants/{product.variants[0].id}", json={"price": None}, headers=admin)

    assert response.status_code == 422


def test_delete_product_is_soft(client, db, admin, make_product, events):
    product = make_product("Photobox Classic")

    assert client.delete(f"{API}/admin/products/{product.id}", headers=admin).status_code == 204

    db.expire_all()
    stored = db.get(Product, product.id)
    assert stored.deleted_at is not None
    assert stored.is_active is False
    assert client.get(f"{API}/products/photobox-classic").status_code == 404
    assert client.get(f"{API}/admin/products/{product.id}", headers=admin).status_code == 404
    assert events.types() == ["PRODUCT_DELETED"]


def test_variant_crud(client, db, admin, customer, make_product):
    product = make_product("Cetak Foto", price=3500)

    created = client.post(
        f"{API}/admin/products/{product.id}/variants",
        json={"name": "4R", "price": 4000},
        headers=admin
    )
    assert created.status_code == 201
    variant_id = created.json()["id"]

    updated = client.put(f"{API}/admin/variants/{variant_id}", json={"price": 4500}, headers=admin)
    assert updated.json()["price"] == 4500
    assert updated.json()["name"] == "4R"

    cart_item_id = client.post(
        f"{API}/cart/items",
        json={"product_id": str(product.id), "variant_id": variant_id},
        headers=customer
    ).json()["id"]
    assert cart_item_id

    assert client.delete(f"{API}/admin/variants/{variant_id}", headers=admin).status_code == 204
    assert client.get(f"{API}/products/{product.id}/variants").json() == []
    assert db.query(CartItem).count() == 0
    assert client.delete(f"{API}/admin/variants/{variant_id}", headers=admin).status_code == 404


def test_deleting_variant_keeps_order_snapshot(client, db, admin, customer, make_product):
    product = make_product("Frame Kayu", price=50000, variants=[("A4", 75000)])
    variant = product.variants[0]
    add(client, customer, product, variant=variant)
    client.post(f"{API}/checkout", json=FORM, headers=customer)

    assert client.delete(f"{API}/admin/variants/{variant.id}", headers=admin).status_code == 204

    item = db.query(OrderItem).one()
    assert item.variant_id is None
    assert item.variant_name == "A4"


def test_categories(client, admin):
    created = client.post(f"{API}/admin/categories", json={"name": "Kalender Foto"}, headers=admin)
    duplicate = client.post(f"{API}/admin/categories", json={"name": "Kalender  Foto"}, headers=admin)

    assert created.status_code == 201
    assert created.json()["slug"] == "kalender-foto"
    assert created.json()["is_active"] is True
    assert duplicate.status_code == 409
    assert [c["slug"] for c in client.get(f"{API}/admin/categories", headers=admin).json()] == ["kalender-foto"]


def place_orders(client, customer, make_product):
    frame = make_product("Frame Kayu", price=50000)
    orders = []
    for quantity in (1, 2):
        add(client, customer, frame, quantity=quantity)
        orders.append(client.post(f"{API}/checkout", json=FORM, headers=customer).json()["order"])
    return orders


def test_list_orders_with_counts_and_status_filter(client, admin, customer, make_product):
    first, second = place_orders(client, customer, make_product)
    item_id = first["items"][0]["id"]
    client.post(
        f"{API}/orders/{first['id']}/items/{item_id}/photos",
        files=[("files", ("a.jpg", JPEG, "image/jpeg")), ("files", ("b.jpg", JPEG, "image/jpeg"))],
        headers=customer
    )
    client.patch(f"{API}/admin/orders/{second['id']}/status", json={"status": "processing"}, headers=admin)

    orders = {o["id"]: o for o in client.get(f"{API}/admin/orders", headers=admin).json()}
    processing = client.get(f"{API}/admin/orders", params={"status": "processing"}, headers=admin).json()

    assert orders[first["id"]]["item_count"] == 1
    assert orders[first["id"]]["photo_count"] == 2
    assert orders[second["id"]]["photo_count"] == 0
    assert [o["id"] for o in processing] == [second["id"]]
    assert client.get(f"{API}/admin/orders", params={"status": "lost"}, headers=admin).status_code == 400


def test_update_status_publishes_only_on_change(client, admin, customer, make_product, events):
    order, _ = place_orders(client, customer, make_product)
    url = f"{API}/admin/orders/{order['id']}/status"

    shipped = client.patch(url, json={"status": "shipped"}, headers=admin)
    client.patch(url, json={"status": "shipped"}, headers=admin)
    invalid = client.patch(url, json={"status": "teleported"}, headers=admin)

    assert shipped.status_code == 200
    assert shipped.json()["status"] == "shipped"
    assert events.types().count("ORDER_STATUS_CHANGED") == 1
    assert invalid.status_code == 422
    assert client.patch(f"{API}/admin/orders/{uuid.uuid4()}/status", json={"status": "shipped"}, headers=admin).status_code == 404


def test_update_payment_status(client, admin, customer, make_product):
    order, _ = place_orders(client, customer, make_product)
    url = f"{API}/admin/orders/{order['id']}/payment-status"

    paid = client.patch(url, json={"payment_status": "paid"}, headers=admin)

    assert paid.status_code == 200
    assert paid.json()["payment_status"] == "paid"
    assert client.patch(url, json={"payment_status": "maybe"}, headers=admin).status_code == 422


def test_order_detail_and_item_photos(client, admin, customer, make_product):
    order, _ = place_orders(client, customer, make_product)
    item_id = order["items"][0]["id"]
    client.post(
        f"{API}/orders/{order['id']}/items/{item_id}/photos",
        files=[("files", ("a.jpg", JPEG, "image/jpeg")), ("files", ("b.jpg", JPEG, "image/jpeg"))],
        headers=customer
    )

    detail = client.get(f"{API}/admin/orders/{order['id']}", headers=admin)
    photos = client.get(f"{API}/admin/order-items/{item_id}/photos", headers=admin)

    assert detail.status_code == 200
    assert detail.json()["customer_name"] == FORM["customer_name"]
    assert [p["file_name"] for p in photos.json()] == ["a.jpg", "b.jpg"]
    assert client.get(f"{API}/admin/order-items/{uuid.uuid4()}/photos", headers=admin).status_code == 404

    path = photos.json()[0]["file_path"]
    download = client.get(f"{API}/admin/photos/download", params={"path": path}, headers=admin)
    assert download.status_code == 200
    assert download.content == JPEG
    assert "attachment" in download.headers["content-disposition"]


def test_dashboard_stats(client, admin, customer, make_product):
    first, second = place_orders(client, customer, make_product)
    client.patch(f"{API}/admin/orders/{second['id']}/status", json={"status": "delivered"}, headers=admin)

    stats = client.get(f"{API}/admin/stats", headers=admin).json()

    assert stats == {
        "total_orders": 2,
        "total_revenue": first["total_amount"] + second["total_amount"],
        "total_products": 1,
        "total_users": 2,
        "pending_orders": 1,
        "processing_orders": 0,
        "completed_orders": 1,
        "total_photos": 0,
    }


def test_upload_product_image(client, admin):
    response = client.post(
        f"{API}/admin/images",
        files={"file": ("classic.jpg", JPEG, "image/jpeg")},
        headers=admin
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["public_id"].startswith("products/")
    assert body["url"] == f"http://testserver/media/{body['public_id']}"
