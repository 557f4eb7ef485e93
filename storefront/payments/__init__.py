"""
Module 'payments' (feature-first): point d'entrée public.
Réunit vérification du panier, ledger des transactions, passerelle HDFC,
reçu PDF, checkout Stripe legacy et cas d'usage.
"""

from .cart import calculate_amount, resolve_line_items, verify_order_total
from .errors import (
    PaymentError,
    InvalidRequestError,
    TamperError,
    NotFoundError,
    GatewayError,
    GatewayTimeoutError,
    UnknownError,
)
from .hdfc_client import HdfcGateway, build_gateway, get_gateway, strip_transport_metadata
from .models import OrderStatus, SessionRequest, Transaction, TransactionDraft, status_message
from .receipt import generate_receipt
from .repository import create_transaction, find_by_gateway_order_id, find_by_id, mark_paid
from .service import (
    initiate_payment,
    handle_gateway_callback,
    order_status_by_id,
    settle_transaction,
    create_stripe_checkout,
)

__all__ = [
    # cart
    "calculate_amount",
    "resolve_line_items",
    "verify_order_total",
    # errors
    "PaymentError",
    "InvalidRequestError",
    "TamperError",
    "NotFoundError",
    "GatewayError",
    "GatewayTimeoutError",
    "UnknownError",
    # gateway
    "HdfcGateway",
    "build_gateway",
    "get_gateway",
    "strip_transport_metadata",
    # models
    "OrderStatus",
    "SessionRequest",
    "Transaction",
    "TransactionDraft",
    "status_message",
    # receipt
    "generate_receipt",
    # repository
    "create_transaction",
    "find_by_gateway_order_id",
    "find_by_id",
    "mark_paid",
    # services
    "initiate_payment",
    "handle_gateway_callback",
    "order_status_by_id",
    "settle_transaction",
    "create_stripe_checkout",
]
