"""
Logique panier: recalcul serveur du total et détection de falsification.
Les prix viennent toujours du catalogue, jamais du client.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from storefront.catalog import pricing
from storefront.catalog import repository as catalog_repo
from .errors import InvalidRequestError, TamperError
from .models import CartLine, LineItemSnapshot, VerifiedOrder, quantize_amount

# module storefront.payments.cart
def resolve_line_items(
    lines: List[CartLine],
    products_by_id: Dict[str, Dict[str, Any]],
    now: Optional[datetime] = None,
) -> List[LineItemSnapshot]:
    """
    Construit les snapshots (produit, nom, prix effectif) dans l'ordre du panier.
    - Une entrée = quantité 1 (un produit répété compte plusieurs fois).
    - Soulève InvalidRequestError si une référence est vide ou inconnue.
    """
    snapshots: List[LineItemSnapshot] = []
    for line in lines:
        product = products_by_id.get(line.product)
        if not line.product or product is None:
            raise InvalidRequestError(f"Unknown product: {line.product or '<empty>'}")
        snapshots.append(
            LineItemSnapshot(
                product=line.product,
                name=str(product.get("name") or "Design"),
                price=pricing.resolve_product_price(product, now=now),
            )
        )
    return snapshots

def calculate_amount(lines: List[CartLine], now: Optional[datetime] = None) -> VerifiedOrder:
    """Somme des prix effectifs des produits référencés (état courant du catalogue)."""
    if not lines:
        raise InvalidRequestError("Cart is empty")
    products_by_id = catalog_repo.get_products_map(line.product for line in lines)
    line_items = resolve_line_items(lines, products_by_id, now=now)
    total = sum((li.price for li in line_items), Decimal(0))
    return VerifiedOrder(line_items=line_items, total=quantize_amount(total))

def verify_order_total(lines: List[CartLine], claimed_total: Any, now: Optional[datetime] = None) -> VerifiedOrder:
    """
    Vérifie le total annoncé par le client.
    - Montant <= 0: InvalidRequestError, avant toute lecture du catalogue.
    - Total recalculé différent: TamperError, aucune persistance.
    La comparaison est exacte: un total annoncé au-delà du centime
    (ex: 100.004) ne correspond jamais au total recalculé.
    """
    if quantize_amount(claimed_total) <= 0:
        raise InvalidRequestError("Invalid amount")
    verified = calculate_amount(lines, now=now)
    if verified.total != pricing.to_decimal(claimed_total):
        raise TamperError("Amount mismatch, potential tampering detected.")
    return verified
