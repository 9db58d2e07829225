"""
Factory d'application recommandée pour les entrypoints (ex: marketplace.asgi).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import register_cors_middleware, register_security_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers


def create_app() -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - en-têtes de sécurité, puis CORS (ajouté en dernier pour répondre aux préflights en premier)
      - gestionnaires d'exceptions ({"error": ...})
      - tous les routers (paiements, commandes, shipping, vendeurs, annonces, messagerie, health)
    Retour:
      FastAPI prêt à être utilisé par le serveur ASGI.
    """
    app = FastAPI(title="Marketplace API", lifespan=lifespan)
    register_security_middleware(app)
    register_cors_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
