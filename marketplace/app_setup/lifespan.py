"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Construit les collaborateurs une seule fois par process et les pose sur app.state:
  stripe (StripeGateway), shippo (ShippoClient), db (Supabase), message_store (MessageStore).
  Un secret manquant laisse le collaborateur à None: les handlers concernés répondent 500.
- Initialise FastAPILimiter (Redis) avec options de test (fakeredis).
- Variables d'environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive complètement (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l'init échoue
"""
import os
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from marketplace import config
from marketplace.infra.redis_client import create_redis, create_async_redis
from marketplace.infra.supabase_client import create_db_client
from marketplace.messaging.store import MessageStore
from marketplace.payments.stripe_client import StripeGateway
from marketplace.shipping.shippo_client import ShippoClient

try:
    from fakeredis.aioredis import FakeRedis  # tests only
except ImportError:
    FakeRedis = None

logger = logging.getLogger("uvicorn.error")


def init_collaborators(app: FastAPI) -> None:
    """
    Construit les clients des collaborateurs à partir de marketplace.config.
    - Ne remplace pas un collaborateur déjà posé (tests: injection avant démarrage)
    """
    state = app.state
    if getattr(state, "stripe", None) is None:
        state.stripe = StripeGateway(config.STRIPE_SECRET_KEY) if config.STRIPE_SECRET_KEY else None
        if state.stripe is None:
            logger.warning("STRIPE_SECRET_KEY manquant: endpoints de paiement indisponibles")
    if getattr(state, "shippo", None) is None:
        state.shippo = ShippoClient(config.SHIPPO_API_KEY, config.SHIPPO_API_URL) if config.SHIPPO_API_KEY else None
        if state.shippo is None:
            logger.warning("SHIPPO_API_KEY manquant: endpoints shipping indisponibles")
    if getattr(state, "db", None) is None:
        state.db = create_db_client()
    if getattr(state, "message_store", None) is None:
        state.message_store = MessageStore(create_redis(config.REDIS_URL))


async def init_rate_limiter(app: FastAPI) -> None:
    try:
        if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
            app.state.rate_limit_enabled = False
            logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
            return

        use_fake = os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1"
        if use_fake:
            if not FakeRedis:
                raise RuntimeError("USE_FAKE_REDIS_FOR_TESTS=1 mais fakeredis n'est pas installé.")
            r = FakeRedis(decode_responses=True)
        else:
            r = create_async_redis(config.RATE_LIMIT_REDIS_URL)

        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
    except Exception as e:
        app.state.rate_limit_enabled = False
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            logger.warning(f"Rate limiting falling back to local in-memory due to init error: {e}")
        else:
            logger.warning(f"Rate limiting disabled due to init error: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Démarrage: collaborateurs puis rate limiting. Arrêt: fermeture du client HTTP Shippo.
    """
    init_collaborators(app)
    await init_rate_limiter(app)

    yield

    shippo = getattr(app.state, "shippo", None)
    if isinstance(shippo, ShippoClient):
        shippo.close()
