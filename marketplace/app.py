# module marketplace.app
"""
Instance FastAPI unique de l'application.
Toute la construction (lifespan, middlewares, handlers d'erreurs, routers) vit dans app_setup.factory.
"""
import logging

from marketplace.app_setup.factory import create_app

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = create_app()
