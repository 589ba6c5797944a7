import os
import tempfile

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["KAFKA_ENABLED"] = "false"
os.environ["RUN_MIGRATIONS"] = "false"
os.environ["IMAGE_PROVIDER"] = "local"
os.environ["LOCAL_STORAGE_DIR"] = tempfile.mkdtemp(prefix="storefront-media-")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

import pytest
from fastapi.testclient import TestClient

import storefront.models  # noqa: F401
from storefront.db.database import Base, engine, SessionLocal, get_db
from storefront.main import app
from storefront.models import ProductCategory, Product, ProductVariant, UserProfile

API = "/api/storefront"
PASSWORD = "secret123"


def override_get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def sign_up_and_in(client, email, password=PASSWORD, full_name=None):
    response = client.post(f"{API}/auth/sign-up", json={
        "email": email, "password": password, "full_name": full_name
    })
    assert response.status_code == 201, response.text
    return sign_in(client, email, password)


def sign_in(client, email, password=PASSWORD):
    response = client.post(f"{API}/auth/sign-in", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    body = response.json()
    return {"Authorization": f"Bearer {body['access_token']}"}


@pytest.fixture
def customer(client):
    return sign_up_and_in(client, "customer@example.com", full_name="Budi Santoso")


@pytest.fixture
def admin(client, db):
    headers = sign_up_and_in(client, "admin@example.com", full_name="Admin")
    profile = db.query(UserProfile).filter(UserProfile.email == "admin@example.com").one()
    profile.role = "admin"
    db.commit()
    return headers


@pytest.fixture
def make_category(db):
    def _make(name="Photobox", slug="photobox", is_active=True):
        category = ProductCategory(name=name, slug=slug, is_active=is_active)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category
    return _make


@pytest.fixture
def make_product(db):
    def _make(name="Photobox Classic", slug=None, price=150000, variants=(), **fields):
        product = Product(
            name=name,
            slug=slug or name.lower().replace(" ", "-"),
            price=price,
            **fields
        )
        db.add(product)
        db.flush()
        for index, (variant_name, variant_price) in enumerate(variants):
            db.add(ProductVariant(
                product_id=product.id,
                name=variant_name,
                price=variant_price,
                sort_order=index
            ))
        db.commit()
        db.refresh(product)
        return product
    return _make


class RecordingProducer:
    """Stands in for the Kafka producer and keeps published events"""

    def __init__(self):
        self.events = []

    def __getattr__(self, name):
        if not name.startswith("publish_"):
            raise AttributeError(name)

        def record(**kwargs):
            self.events.append((name[len("publish_"):].upper(), kwargs))
        return record

    def flush(self):
        pass

    def types(self):
        return [event_type for event_type, _ in self.events]


@pytest.fixture
def events(monkeypatch):
    recorder = RecordingProducer()
    monkeypatch.setattr("storefront.kafka.producer.get_event_producer", lambda: recorder)
    return recorder
