"""Couche service des commandes personnalisées.
Rôles:
- Créer une commande personnalisée pour l'utilisateur connecté.
- Notifier l'administrateur par email (best-effort: l'échec d'envoi est journalisé).
"""
from typing import Any, Dict
import logging

from storefront.config import ADMIN_NOTIFICATION_EMAIL, ADMIN_DASHBOARD_URL
from storefront.custom_orders import repository
from storefront.utils import mailer

logger = logging.getLogger(__name__)

def notify_admin_new_custom_order(user: Dict[str, Any]) -> None:
    metadata = user.get("metadata") or {}
    html = mailer.render_email(
        "new_custom_order.html",
        {
            "customer_name": metadata.get("full_name") or user.get("email") or "",
            "phone": metadata.get("phone") or "",
            "email": user.get("email") or "",
            "dashboard_url": ADMIN_DASHBOARD_URL,
        },
    )
    mailer.send_email(to=ADMIN_NOTIFICATION_EMAIL, subject="New Custom Order found", html=html)

def create_custom_order(user: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    """Crée la commande (is_paid=False) puis notifie l'admin."""
    payload = {**data, "user_id": user.get("id"), "is_paid": False, "is_deleted": False}
    custom_order = repository.create_custom_order(payload)
    if not custom_order:
        raise RuntimeError("Impossible de créer la commande personnalisée")
    try:
        notify_admin_new_custom_order(user)
    except Exception:
        logger.exception("custom_orders.notify_admin failed custom_order_id=%s", custom_order.get("id"))
    return custom_order
