import os
import tempfile

import pytest

# Point data and logs at a scratch directory before any backend module is imported
_SCRATCH = tempfile.mkdtemp(prefix="paper-trading-tests-")
os.environ.setdefault("LOG_DIR", os.path.join(_SCRATCH, "logs"))
os.environ.setdefault("DATA_DIR", os.path.join(_SCRATCH, "data"))
os.environ["SIMULATOR_ENABLED"] = "false"

from fastapi.testclient import TestClient

from config.env_setup import EnvConfig
from config.settings import load_stock_universe
from db.tinydb.client import close_database, get_database
from services.portfolio_service import PortfolioService
from services.quote_store import QuoteStore
from services.trade_engine import TradeEngine
from services.user_store import UserStore


def set_price(store: QuoteStore, symbol: str, price: float) -> None:
    """Pin one quote to a known price."""
    store.transform(lambda q: q.model_copy(update={"price": price}) if q.symbol == symbol else q)


@pytest.fixture
def quote_store():
    return QuoteStore(load_stock_universe())


@pytest.fixture
def users_file(tmp_path):
    path = tmp_path / "users.json"
    yield path
    close_database(path)


@pytest.fixture
def user_store(users_file):
    return UserStore(get_database(users_file), seed_cash=500000)


@pytest.fixture
def engine(quote_store, user_store):
    return TradeEngine(quote_store, user_store)


@pytest.fixture
def portfolio_service(quote_store, user_store):
    return PortfolioService(quote_store, user_store, seed_cash=500000)


@pytest.fixture
def alice(user_store):
    return user_store.create("alice@x.com", "secret", "Alice")


@pytest.fixture
def app(users_file):
    """Create and configure a new app instance for each test."""
    from main import create_app

    settings = EnvConfig(USERS_FILE=users_file, SIMULATOR_ENABLED=False)
    return create_app(settings)


@pytest.fixture
def client(app):
    """A test client for the app, with the lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    response = client.post("/api/auth/register", json={
        "email": "alice@x.com", "password": "secret", "name": "Alice",
    })
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def pin_price():
    return set_price
