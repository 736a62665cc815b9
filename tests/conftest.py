import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from config import Settings
from database import CatalogStore, OrderStore, SettingsStore
from main import create_app
from notifier import ChangeNotifier
from orders import OrderProcessor
from schemas import CategoryCreate, ProductCreate

ADMIN_EMAIL = "admin@petshop.forest"
ADMIN_PASSWORD = "admin123"


class FakeSocket:
    """Stands in for a connected WebSocket and records what it was sent."""

    def __init__(self, state=WebSocketState.CONNECTED, fail=False):
        self.client_state = state
        self.fail = fail
        self.sent = []

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(message)

    def events(self):
        return [m["event"] for m in self.sent]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        SECRET_KEY="test-secret",
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        UPLOAD_DIR=str(tmp_path / "uploads"),
        SEED_CATALOG=False,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers(client):
    res = client.post("/api/login", data={"username": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


@pytest.fixture
def catalog():
    return CatalogStore()


@pytest.fixture
def order_store():
    return OrderStore()


@pytest.fixture
def site():
    return SettingsStore("Welcome to the forest", "https://www.youtube.com/embed/intro")


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def processor(catalog, order_store, notifier):
    return OrderProcessor(catalog, order_store, notifier)


@pytest.fixture
def dogs(catalog):
    return catalog.create_category(CategoryCreate(name="Dogs", description="Everything canine"))


def make_product(catalog, category_id, name="Golden Retriever Puppy", price=25000, stock=2, **extra):
    fields = {
        "name": name,
        "categoryId": category_id,
        "type": "pet",
        "species": "Dog",
        "description": f"{name} from the forest",
        "priceInINR": price,
        "stock": stock,
    }
    fields.update(extra)
    return catalog.create_product(ProductCreate(**fields))
