"""
Calcul du prix effectif d'un produit (logique pure, pas de DB).
- Règle temporaire d'escalade/réduction valable jusqu'à price_validity_date.
- Les produits "freebie" valent toujours 0.
"""
from datetime import datetime, date, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

ESCALATION = "escalation"
REDUCTION = "reduction"
NOTHING = "nothing"

# module storefront.catalog.pricing
def to_decimal(value: Any) -> Decimal:
    """
    Convertit un prix (str|int|float|Decimal|None) en Decimal.
    - Passe par str() pour éviter les artefacts binaires des float.
    - Retourne Decimal(0) si parsing impossible.
    """
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value if value is not None else 0))
    except (InvalidOperation, ValueError):
        return Decimal(0)

def parse_instant(value: Any) -> Optional[datetime]:
    """
    Normalise une date limite (datetime, date ou chaîne ISO) en datetime UTC.
    Les valeurs naïves sont considérées en UTC; None/invalide -> None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime(value.year, value.month, value.day)
    else:
        try:
            instant = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant

def compute_effective_price(
    price: Any,
    update_type: Optional[str],
    percentage: Any,
    validity_date: Any,
    now: Optional[datetime] = None,
) -> Decimal:
    """
    Retourne le prix effectif:
    - avant la date limite: escalation -> price + price*pct/100,
      reduction -> price - price*pct/100, nothing -> price
    - à partir de la date limite (ou sans date): price inchangé
    """
    base = to_decimal(price)
    cutoff = parse_instant(validity_date)
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    if cutoff is None or current >= cutoff:
        return base

    delta = base * to_decimal(percentage) / Decimal(100)
    if update_type == ESCALATION:
        return base + delta
    if update_type == REDUCTION:
        return base - delta
    return base

def resolve_product_price(product: Dict[str, Any], now: Optional[datetime] = None) -> Decimal:
    """
    Prix effectif d'un produit du catalogue.
    Un freebie court-circuite toute règle de prix.
    """
    if product.get("is_freebie"):
        return Decimal(0)
    return compute_effective_price(
        product.get("price"),
        product.get("price_update_type"),
        product.get("price_percentage"),
        product.get("price_validity_date"),
        now=now,
    )
