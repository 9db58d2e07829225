import os

# Pas de Redis réel pour le rate limiting pendant les tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import fakeredis
import pytest
from typing import Generator
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from marketplace import config as app_config
from marketplace.app_setup.factory import create_app
from marketplace.dependencies import get_stripe, get_shippo, get_optional_shippo, get_db, get_optional_db
from marketplace.messaging.store import MessageStore

NOW = 1_700_000_000.0


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/tests/unit/" in nodeid or nodeid.startswith("tests/unit/") or nodeid.startswith("unit/"):
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in nodeid or nodeid.startswith("tests/integration/") or nodeid.startswith("integration/"):
            item.add_marker(pytest.mark.integration)


class Clock:
    """Horloge contrôlable (secondes epoch) pour la rétention de la messagerie."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, days: float = 0, seconds: float = 0) -> None:
        self.now += days * 86400 + seconds


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def message_store(redis_client, clock) -> MessageStore:
    return MessageStore(redis_client, clock=clock)


# Aucun secret réel: les collaborateurs sont injectés par les tests
@pytest.fixture(autouse=True)
def _no_real_collaborators(monkeypatch):
    monkeypatch.setattr(app_config, "STRIPE_SECRET_KEY", "", raising=True)
    monkeypatch.setattr(app_config, "SHIPPO_API_KEY", "", raising=True)
    monkeypatch.setattr("marketplace.app_setup.lifespan.create_db_client", lambda: None)
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)


@pytest.fixture
def gateway() -> MagicMock:
    """Faux StripeGateway (mêmes méthodes, réponses dict)."""
    gw = MagicMock(name="StripeGateway")
    gw.create_payment_intent.return_value = {"id": "pi_test_123", "client_secret": "pi_test_123_secret_abc"}
    gw.retrieve_payment_intent.return_value = {
        "id": "pi_test_123",
        "amount": 2000,
        "currency": "usd",
        "latest_charge": {"id": "ch_test_123", "amount": 2000},
    }
    gw.create_refund.return_value = {"id": "re_test_123", "status": "succeeded"}
    gw.create_express_account.return_value = {"id": "acct_test_new"}
    gw.create_onboarding_link.return_value = {"url": "https://connect.stripe.test/setup/abc"}
    gw.retrieve_account.return_value = {
        "id": "acct_test_existing",
        "charges_enabled": True,
        "details_submitted": True,
        "payouts_enabled": False,
    }
    return gw


@pytest.fixture
def shippo() -> MagicMock:
    client = MagicMock(name="ShippoClient")
    client.create_shipment.return_value = {
        "object_id": "shp_1",
        "rates": [{"object_id": "rate_1", "amount": "7.50", "provider": "USPS"}],
    }
    client.purchase_label.return_value = {
        "object_id": "txn_1",
        "status": "SUCCESS",
        "label_url": "https://shippo.test/label.pdf",
        "tracking_number": "9400",
    }
    client.refund_label.return_value = {"object_id": "rf_1", "status": "QUEUED"}
    return client


@pytest.fixture
def db() -> MagicMock:
    return MagicMock(name="SupabaseClient")


@pytest.fixture
def app(message_store):
    application = create_app()
    # Posé avant le démarrage: le lifespan ne le remplace pas
    application.state.message_store = message_store
    return application


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def wired_client(app, client, gateway, shippo, db) -> TestClient:
    """Client dont tous les collaborateurs sont des faux."""
    app.dependency_overrides[get_stripe] = lambda: gateway
    app.dependency_overrides[get_shippo] = lambda: shippo
    app.dependency_overrides[get_optional_shippo] = lambda: shippo
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_optional_db] = lambda: db
    return client
