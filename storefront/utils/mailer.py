"""
Envoi d'emails via Resend + rendu des corps HTML (templates Jinja2).
"""
import base64
import logging
from typing import Any, Dict, List, Optional

import resend
from fastapi.templating import Jinja2Templates

from storefront.config import RESEND_API_KEY, MAIL_FROM, TEMPLATES_DIR

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

class EmailDeliveryError(RuntimeError):
    pass

def render_email(template_name: str, context: Dict[str, Any]) -> str:
    """Rend un template d'email (templates/emails/<template_name>)."""
    return templates.get_template(f"emails/{template_name}").render(**context)

def make_attachment(filename: str, content: bytes) -> Dict[str, str]:
    """Pièce jointe Resend: contenu encodé en base64."""
    return {"filename": filename, "content": base64.b64encode(content).decode("ascii")}

def send_email(
    *,
    to: str | List[str],
    subject: str,
    html: str,
    attachments: Optional[List[Dict[str, str]]] = None,
    sender: Optional[str] = None,
) -> str:
    """
    Envoie un email et retourne l'identifiant Resend.
    - Soulève EmailDeliveryError si la clé API manque ou si Resend ne renvoie pas d'id.
    """
    if not RESEND_API_KEY:
        raise EmailDeliveryError("RESEND_API_KEY manquant")
    resend.api_key = RESEND_API_KEY
    payload: Dict[str, Any] = {
        "from": sender or MAIL_FROM,
        "to": [to] if isinstance(to, str) else list(to),
        "subject": subject,
        "html": html,
    }
    if attachments:
        payload["attachments"] = attachments
    response = resend.Emails.send(payload)
    email_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
    if not email_id:
        raise EmailDeliveryError(f"Réponse Resend invalide: {response}")
    logger.info("mailer.send_email sent id=%s subject=%s", email_id, subject)
    return email_id
