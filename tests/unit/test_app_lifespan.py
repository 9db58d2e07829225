import asyncio
from unittest.mock import MagicMock

from fastapi import FastAPI

from marketplace import config
from marketplace.app_setup import lifespan as lifespan_module
from marketplace.messaging.store import MessageStore
from marketplace.payments.stripe_client import StripeGateway
from marketplace.shipping.shippo_client import ShippoClient


def test_collaborators_built_from_config(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_dummy")
    monkeypatch.setattr(config, "SHIPPO_API_KEY", "shippo_test_dummy")
    app = FastAPI()

    lifespan_module.init_collaborators(app)

    assert isinstance(app.state.stripe, StripeGateway)
    assert isinstance(app.state.shippo, ShippoClient)
    assert isinstance(app.state.message_store, MessageStore)
    assert app.state.db is None
    app.state.shippo.close()


def test_missing_secrets_leave_collaborators_unconfigured():
    app = FastAPI()
    lifespan_module.init_collaborators(app)
    assert app.state.stripe is None
    assert app.state.shippo is None


def test_injected_collaborators_are_kept(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_dummy")
    app = FastAPI()
    fake = MagicMock()
    app.state.stripe = fake
    lifespan_module.init_collaborators(app)
    assert app.state.stripe is fake


def test_rate_limiter_disabled_for_tests(monkeypatch):
    monkeypatch.setenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
    app = FastAPI()
    asyncio.run(lifespan_module.init_rate_limiter(app))
    assert app.state.rate_limit_enabled is False


def test_rate_limiter_init_failure_disables_limits(monkeypatch):
    monkeypatch.delenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", raising=False)
    monkeypatch.delenv("USE_FAKE_REDIS_FOR_TESTS", raising=False)

    async def _boom(redis, *args, **kwargs):
        raise ConnectionError("redis down")

    monkeypatch.setattr(lifespan_module.FastAPILimiter, "init", _boom)
    monkeypatch.setattr(lifespan_module, "create_async_redis", lambda url: MagicMock())
    app = FastAPI()
    asyncio.run(lifespan_module.init_rate_limiter(app))
    assert app.state.rate_limit_enabled is False
