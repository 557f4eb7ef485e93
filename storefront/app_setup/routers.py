"""
Registre central des routers.
- API v1: payments (HDFC + Stripe legacy), custom orders
- Health: health_router
"""
from fastapi import FastAPI
from storefront.payments import views as payments_views
from storefront.custom_orders import views as custom_orders_views
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API v1
    app.include_router(payments_views.router)
    app.include_router(custom_orders_views.router)
    # Health & monitoring
    app.include_router(health_router)
