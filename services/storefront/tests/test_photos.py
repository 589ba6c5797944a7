import re
import uuid
from pathlib import Path

import pytest

from storefront.config import settings
from storefront.services.photo_service import validate_file, build_storage_key, is_owned_key
from conftest import API, sign_up_and_in
from test_orders import JPEG


def upload(client, headers, name="holiday.jpg", content=JPEG, content_type="image/jpeg", folder=None):
    data = {"folder": folder} if folder else None
    return client.post(f"{API}/photos", files={"file": (name, content, content_type)}, data=data, headers=headers)


def test_validate_file():
    validate_file("image/jpeg", 10, "a.jpg", max_size=10)

    with pytest.raises(ValueError, match="File a.pdf is not a valid image file"):
        validate_file("application/pdf", 10, "a.pdf")
    with pytest.raises(ValueError, match="File a.jpg is not a valid image file"):
        validate_file(None, 10, "a.jpg")
    with pytest.raises(ValueError, match="File big.jpg is too large. Maximum 1MB"):
        validate_file("image/jpeg", 1024 * 1024 + 1, "big.jpg", max_size=1024 * 1024)


def test_storage_key_layout():
    user_id = uuid.uuid4()

    key = build_storage_key(user_id, "Holiday.Photo.JPG", now_ms=1718000000000)
    nested = build_storage_key(user_id, "a.png", folder="/album/", now_ms=1718000000000)

    assert re.fullmatch(rf"{settings.photo_folder}/{user_id}/1718000000000-[a-z0-9]{{11}}\.JPG", key)
    assert nested.startswith(f"{settings.photo_folder}/{user_id}/album/1718000000000-")
    assert nested.endswith(".png")


def test_upload_photo(client, customer):
    response = upload(client, customer, folder="album")

    assert response.status_code == 201, response.text
    body = response.json()
    user_id = client.get(f"{API}/auth/me", headers=customer).json()["user"]["id"]
    assert body["file_name"] == "holiday.jpg"
    assert body["file_path"].startswith(f"{settings.photo_folder}/{user_id}/album/")
    assert body["public_url"] == f"http://testserver/media/{body['file_path']}"
    assert body["file_size"] == len(JPEG)
    assert body["mime_type"] == "image/jpeg"

    served = client.get(f"/media/{body['file_path']}")
    assert served.status_code == 200
    assert served.content == JPEG


def test_upload_rejects_non_images_and_large_files(client, customer, monkeypatch):
    not_image = upload(client, customer, name="notes.txt", content=b"hello", content_type="text/plain")
    monkeypatch.setattr(settings, "max_photo_size_bytes", 4)
    too_large = upload(client, customer)

    assert not_image.status_code == 400
    assert not_image.json()["detail"] == "File notes.txt is not a valid image file"
    assert too_large.status_code == 400
    assert too_large.json()["detail"].startswith("File holiday.jpg is too large")


@pytest.mark.parametrize("folder", ["../../products", "album/../..", "album//2024", "./album"])
def test_storage_key_rejects_unsafe_folders(folder):
    with pytest.raises(ValueError, match="Invalid folder"):
        build_storage_key(uuid.uuid4(), "a.jpg", folder=folder)


def test_upload_cannot_escape_own_folder(client, customer):
    products_dir = Path(settings.local_storage_dir, "products")
    before = set(products_dir.glob("*"))

    response = upload(client, customer, folder="../../products")

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid folder: ../../products"
    assert set(products_dir.glob("*")) == before


def test_is_owned_key():
    user_id = uuid.uuid4()
    other_id = uuid.uuid4()

    assert is_owned_key(user_id, f"{settings.photo_folder}/{user_id}/album/1-a.jpg")
    assert not is_owned_key(user_id, f"{settings.photo_folder}/{other_id}/1-a.jpg")
    assert not is_owned_key(user_id, f"{settings.photo_folder}/{user_id}/../{other_id}/1-a.jpg")
    assert not is_owned_key(user_id, f"{settings.photo_folder}/{user_id}//1-a.jpg")


def test_upload_requires_authentication(client):
    assert upload(client, {}).status_code == 401


def test_delete_own_photo(client, customer):
    path = upload(client, customer).json()["file_path"]

    assert client.delete(f"{API}/photos", params={"path": path}, headers=customer).status_code == 204
    assert client.get(f"/media/{path}").status_code == 404
    assert client.delete(f"{API}/photos", params={"path": path}, headers=customer).status_code == 404


def test_cannot_delete_someone_elses_photo(client, customer):
    path = upload(client, customer).json()["file_path"]
    other = sign_up_and_in(client, "other@example.com")
    other_id = client.get(f"{API}/auth/me", headers=other).json()["user"]["id"]
    escape = f"{settings.photo_folder}/{other_id}/../{path.split('/', 1)[1]}"

    assert client.delete(f"{API}/photos", params={"path": path}, headers=other).status_code == 403
    assert client.delete(f"{API}/photos", params={"path": escape}, headers=other).status_code == 403
    assert client.get(f"/media/{path}").status_code == 200


def test_photo_url(client, customer):
    def url_for(path):
        return client.get(f"{API}/photos/url", params={"path": path}, headers=customer).json()["url"]

    assert url_for("") is None
    assert url_for("https://cdn.example.com/a.jpg") == "https://cdn.example.com/a.jpg"
    assert url_for("order-photos/u/a.jpg") == "http://testserver/media/order-photos/u/a.jpg"


def test_admin_download_redirects_absolute_urls_and_reports_missing(client, admin):
    redirect = client.get(
        f"{API}/admin/photos/download",
        params={"path": "https://cdn.example.com/a.jpg"},
        headers=admin,
        follow_redirects=False
    )
    missing = client.get(f"{API}/admin/photos/download", params={"path": "order-photos/none.jpg"}, headers=admin)
    escape = client.get(f"{API}/admin/photos/download", params={"path": "../../etc/passwd"}, headers=admin)

    assert redirect.status_code == 307
    assert redirect.headers["location"] == "https://cdn.example.com/a.jpg"
    assert missing.status_code == 404
    assert escape.status_code == 400
