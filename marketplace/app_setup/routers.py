"""
Registre central des routers.
- Paiements: createPaymentIntent
- Commandes: cancelOrder
- Shipping: shippingRates, shippoGetRates, shippoCreateLabel
- Vendeurs: createConnectedAccount, checkSellerStatus
- Annonces: deleteSoldProducts
- Messagerie: conversations, messages
- Health
"""
from fastapi import FastAPI
from marketplace.payments import views as payments_views
from marketplace.orders import views as orders_views
from marketplace.shipping import views as shipping_views
from marketplace.sellers import views as sellers_views
from marketplace.listings import views as listings_views
from marketplace.messaging import views as messaging_views
from marketplace.health.router import router as health_router


def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l'application.
    - Les chemins reprennent les noms des fonctions serverless appelées par le front.
    """
    app.include_router(payments_views.router)
    app.include_router(orders_views.router)
    app.include_router(shipping_views.router)
    app.include_router(sellers_views.router)
    app.include_router(listings_views.router)
    app.include_router(messaging_views.router)
    app.include_router(health_router)
