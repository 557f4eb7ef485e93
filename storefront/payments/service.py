"""
Cas d'usage 'payments': orchestre cart, repository, passerelle HDFC, reçu et email.

Flux:
  initiate_payment -> vérification du total -> transaction 'pending' -> session passerelle
  handle_gateway_callback -> statut réel -> règlement idempotent -> reçu PDF + email
  order_status_by_id -> lecture seule du statut (polling)
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from storefront.catalog import repository as catalog_repo
from storefront.config import CHECKOUT_SUCCESS_URL, CHECKOUT_CANCEL_URL, STRIPE_CURRENCY
from storefront.custom_orders import repository as custom_orders_repo
from storefront.utils import mailer
from . import cart
from . import repository
from . import receipt
from . import stripe_client
from .errors import GatewayTimeoutError, InvalidRequestError, NotFoundError, TamperError
from .hdfc_client import HdfcGateway, strip_transport_metadata
from .models import (
    CartLine,
    OrderStatus,
    SessionRequest,
    Transaction,
    TransactionDraft,
    amounts_match,
    quantize_amount,
    status_message,
)

logger = logging.getLogger(__name__)

ORDER_SUMMARY_SUBJECT = "Order Summary"


class CallbackOutcome(BaseModel):
    transaction: Transaction
    status: str
    message: str
    settled: bool = False
    email_sent: bool = False


async def initiate_payment(body: SessionRequest, gateway: HdfcGateway, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Ouvre une session de paiement hébergée pour un panier vérifié.
    Étapes: montant > 0, recalcul du total, transaction 'pending', session
    passerelle, drapeau "déjà payé" d'une commande personnalisée, réponse sans 'http'.
    """
    if quantize_amount(body.totalAmount) <= 0:
        raise InvalidRequestError("Invalid amount")

    verified = await run_in_threadpool(cart.verify_order_total, body.products, body.totalAmount, now)
    draft = TransactionDraft.from_verified(
        verified,
        user_id=body.userId,
        custom_order_id=body.customOrder,
        date=body.date,
        customer_name=body.customerName,
        customer_email=body.email,
        zip_links=body.zipLinks,
    )
    transaction = await run_in_threadpool(repository.create_transaction, draft)

    session = await gateway.create_session(
        order_id=transaction.hdfc_order_id,
        amount=transaction.amount,
        customer_id=body.userId,
        customer_email=body.email or None,
    )

    if body.customOrder and body.isPaid:
        await run_in_threadpool(custom_orders_repo.mark_custom_order_paid, body.customOrder)

    logger.info(
        "payments.initiate order_id=%s amount=%s items=%s user_id=%s",
        transaction.hdfc_order_id, transaction.amount, len(transaction.line_items), body.userId,
    )
    return strip_transport_metadata(session)


async def _live_status(gateway: HdfcGateway, order_id: str, customer_id: Optional[str]) -> Tuple[Dict[str, Any], bool]:
    """
    Statut courant côté passerelle. Un timeout est traité comme un statut
    PENDING (réessayable), jamais comme un échec: retourne (réponse, timed_out).
    """
    try:
        return await gateway.order_status(order_id, customer_id=customer_id), False
    except GatewayTimeoutError:
        logger.warning("payments.status timeout order_id=%s, treated as pending", order_id)
        return {"status": OrderStatus.PENDING.value}, True


async def settle_transaction(transaction: Transaction) -> Optional[Transaction]:
    """
    Règlement idempotent: transaction puis commande personnalisée liée.
    - Retourne None si la transaction était déjà payée (aucun effet de bord).
    - Si l'écriture de la commande personnalisée échoue, la transaction est
      remise à 'pending' (compensation) et l'erreur est propagée: la prochaine
      notification de la passerelle relancera le règlement.
    """
    settled = await run_in_threadpool(repository.mark_paid, transaction.hdfc_order_id)
    if settled is None:
        return None
    if settled.custom_order_id:
        try:
            updated = await run_in_threadpool(custom_orders_repo.mark_custom_order_paid, settled.custom_order_id)
        except Exception:
            logger.exception(
                "payments.settle custom order update failed order_id=%s custom_order_id=%s",
                settled.hdfc_order_id, settled.custom_order_id,
            )
            await run_in_threadpool(repository.revert_paid, settled.hdfc_order_id)
            raise
        if not updated:
            logger.warning("payments.settle custom order not found custom_order_id=%s", settled.custom_order_id)
    return settled


def build_order_summary_context(transaction: Transaction) -> Dict[str, Any]:
    return {
        "customer_name": transaction.customer_name,
        "products": transaction.line_items,
        "total_amount": quantize_amount(transaction.amount),
        "zip_links": transaction.zip_links,
        "date": transaction.date,
        "order_id": transaction.hdfc_order_id,
    }


def send_order_summary(transaction: Transaction) -> str:
    """Génère le reçu PDF et envoie l'email 'Order Summary' (pièce jointe)."""
    pdf = receipt.generate_receipt(
        transaction.hdfc_order_id,
        transaction.amount,
        transaction.line_items,
        transaction.customer_name,
        transaction.zip_links,
    )
    html = mailer.render_email("order_summary.html", build_order_summary_context(transaction))
    return mailer.send_email(
        to=transaction.customer_email,
        subject=ORDER_SUMMARY_SUBJECT,
        html=html,
        attachments=[mailer.make_attachment(receipt.receipt_filename(transaction.hdfc_order_id), pdf)],
    )


async def handle_gateway_callback(order_id: Optional[str], gateway: HdfcGateway) -> CallbackOutcome:
    """
    Réconcilie la notification de la passerelle avec la transaction stockée.
    Préconditions (aucune mutation sinon): order_id présent, transaction
    existante, montant passerelle == montant stocké.
    """
    order_id = (order_id or "").strip()
    if not order_id:
        raise InvalidRequestError("order_id not present or cannot be empty")

    transaction = await run_in_threadpool(repository.find_by_gateway_order_id, order_id)
    if transaction is None:
        raise NotFoundError("Transaction not found")

    status_response, timed_out = await _live_status(gateway, order_id, transaction.user_id)
    raw_status = status_response.get("status")
    if not timed_out and not amounts_match(status_response.get("amount"), transaction.amount):
        logger.warning(
            "payments.callback amount mismatch order_id=%s gateway=%s stored=%s",
            order_id, status_response.get("amount"), transaction.amount,
        )
        raise TamperError("Amount mismatch detected")

    outcome = CallbackOutcome(transaction=transaction, status=str(raw_status), message=status_message(raw_status))
    if OrderStatus.parse(raw_status) is not OrderStatus.CHARGED:
        return outcome

    settled = await settle_transaction(transaction)
    if settled is None:
        logger.info("payments.callback already settled order_id=%s", order_id)
        return outcome

    outcome.transaction = settled
    outcome.settled = True
    try:
        await run_in_threadpool(send_order_summary, settled)
        outcome.email_sent = True
    except Exception:
        logger.exception("payments.callback order summary failed order_id=%s", order_id)
    logger.info("payments.callback settled order_id=%s email_sent=%s", order_id, outcome.email_sent)
    return outcome


async def order_status_by_id(transaction_id: str, gateway: HdfcGateway) -> Dict[str, Any]:
    """Lecture seule: statut passerelle courant pour une transaction interne."""
    transaction = await run_in_threadpool(repository.find_by_id, transaction_id)
    if transaction is None:
        raise NotFoundError("Transaction not found")
    status_response, _ = await _live_status(gateway, transaction.hdfc_order_id, transaction.user_id)
    raw_status = status_response.get("status")
    return {
        "status": raw_status,
        "orderDetails": transaction.to_public(),
        "message": status_message(raw_status),
    }


def to_stripe_line_items(lines: List[CartLine], now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Lignes Stripe Checkout à partir des prix serveur (une ligne par produit, quantité agrégée).
    Les produits gratuits (prix effectif 0) sont ignorés.
    """
    products_by_id = catalog_repo.get_products_map(line.product for line in lines)
    snapshots = cart.resolve_line_items(lines, products_by_id, now=now)
    grouped: Dict[str, Dict[str, Any]] = {}
    for li in snapshots:
        unit_amount = int(quantize_amount(li.price) * 100)
        if unit_amount <= 0:
            continue
        entry = grouped.setdefault(
            f"{li.product}:{unit_amount}",
            {
                "quantity": 0,
                "price_data": {
                    "currency": STRIPE_CURRENCY,
                    "unit_amount": unit_amount,
                    "product_data": {"name": li.name},
                },
            },
        )
        entry["quantity"] += 1
    line_items = list(grouped.values())
    if not line_items:
        raise InvalidRequestError("No payable item in cart")
    return line_items


def create_stripe_checkout(user_id: str, lines: List[CartLine], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Checkout legacy Stripe: session hébergée construite à partir des prix du catalogue."""
    line_items = to_stripe_line_items(lines, now=now)
    metadata = {
        "user_id": user_id,
        "products": json.dumps([line.product for line in lines])[:450],
    }
    return stripe_client.create_session(
        line_items=line_items,
        mode="payment",
        success_url=CHECKOUT_SUCCESS_URL,
        cancel_url=CHECKOUT_CANCEL_URL,
        metadata=metadata,
    )
