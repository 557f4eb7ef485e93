import logging
from typing import Any, Dict, List

import stripe
from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool
from starlette.status import HTTP_303_SEE_OTHER

from storefront.config import ORDER_SUCCESS_BASE_URL
from storefront.utils.security import require_user
from storefront.utils.rate_limit import optional_rate_limit
from storefront.payments import service as payments_service
from storefront.payments.errors import GatewayError, PaymentError, UnknownError
from storefront.payments.hdfc_client import HdfcGateway, get_gateway
from storefront.payments.models import CartLine, SessionRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

class CheckoutRequest(BaseModel):
    products: List[CartLine] = Field(default_factory=list)

# module storefront.payments.views
@router.post("/initiateJuspayPayment", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def initiate_juspay_payment(body: SessionRequest, gateway: HdfcGateway = Depends(get_gateway)):
    """
    Ouvre une session de paiement HDFC pour le panier soumis.
    - Entrée JSON: { totalAmount, products, userId, customOrder?, isPaid?, date, customerName, email, zipLinks }
    - Sécurité: total recalculé côté serveur (prix du catalogue), rate limit (10 req / 60s)
    - Réponse: payload de session passerelle (payment_links, sdk_payload, ...) sans 'http'
    - Erreurs: {"message": ...} (400 montant/panier, 502/504 passerelle, 500 opaque)
    """
    try:
        session = await payments_service.initiate_payment(body, gateway)
        return JSONResponse(session)
    except PaymentError:
        raise
    except Exception:
        logger.exception("Erreur initiate_juspay_payment")
        raise UnknownError()

async def _read_order_id(request: Request) -> str | None:
    """order_id ou orderId, depuis un body JSON ou formulaire (redirection passerelle)."""
    ctype = (request.headers.get("content-type") or "").lower()
    try:
        if ctype.startswith("application/json"):
            data: Dict[str, Any] = await request.json() or {}
        else:
            data = dict(await request.form())
    except Exception:
        data = {}
    # Body JSON qui n'est pas un objet (liste, scalaire): aucun order_id lisible
    if not isinstance(data, dict):
        data = {}
    order_id = data.get("order_id") or data.get("orderId") or request.query_params.get("order_id")
    return str(order_id) if order_id else None

@router.post("/handleJuspayResponse", include_in_schema=False)
async def handle_juspay_response(request: Request, gateway: HdfcGateway = Depends(get_gateway)):
    """
    Retour/notification passerelle: réconcilie le statut puis redirige vers la page de succès.
    - Statut réel relu auprès de la passerelle, montant comparé au montant stocké
    - CHARGED: règlement idempotent + reçu PDF + email 'Order Summary'
    - Redirection 303 vers /order-success/<transaction_id> quel que soit le statut
    - Erreurs (order_id manquant, transaction inconnue, montant différent): {"message": ...}, sans redirection
    """
    try:
        order_id = await _read_order_id(request)
        outcome = await payments_service.handle_gateway_callback(order_id, gateway)
        logger.info("payments.callback order_id=%s status=%s message=%s", order_id, outcome.status, outcome.message)
        return RedirectResponse(
            url=f"{ORDER_SUCCESS_BASE_URL}/order-success/{outcome.transaction.id}",
            status_code=HTTP_303_SEE_OTHER,
        )
    except PaymentError:
        raise
    except Exception:
        logger.exception("Erreur handle_juspay_response")
        raise UnknownError()

@router.get("/handleJuspayResponsebyID/{transaction_id}")
async def handle_juspay_response_by_id(transaction_id: str, gateway: HdfcGateway = Depends(get_gateway)):
    """
    Alternative sans callback (polling): statut passerelle courant d'une transaction interne.
    - Aucune mutation, aucune redirection
    - Réponse: {status, orderDetails, message}
    """
    try:
        return await payments_service.order_status_by_id(transaction_id, gateway)
    except PaymentError:
        raise
    except Exception:
        logger.exception("Erreur handle_juspay_response_by_id")
        raise UnknownError()

@router.post("/checkout-session", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(body: CheckoutRequest, user: dict = Depends(require_user)):
    """
    Checkout legacy Stripe pour l'utilisateur authentifié.
    - Entrée JSON: { "products": ["<product_id>", ...] }
    - Prix résolus côté serveur; réponse {id, url}
    """
    try:
        session = await run_in_threadpool(payments_service.create_stripe_checkout, user.get("id", ""), body.products)
        return JSONResponse({"id": session.get("id"), "url": session.get("url")})
    except PaymentError:
        raise
    except stripe.StripeError as e:
        logger.warning("payments.checkout stripe error: %s", e)
        raise GatewayError(getattr(e, "user_message", None) or str(e))
    except Exception:
        logger.exception("Erreur create_checkout_session")
        raise UnknownError()
