"""
Accès aux produits (table 'products'), source de vérité des prix.
"""
from typing import Dict, Any, Iterable, List
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, name, price, is_freebie, price_update_type, price_percentage, price_validity_date"

# module storefront.catalog.repository
def fetch_products_by_ids(ids: List[str]) -> List[dict]:
    """
    Récupère les produits par leurs IDs.
    - Retourne [] si ids vide.
    - Les erreurs d'accès sont propagées: un prix introuvable ne doit jamais valider un panier.
    """
    if not ids:
        return []
    res = (
        supabase_client.get_supabase()
        .table("products")
        .select(PRODUCT_COLUMNS)
        .in_("id", [str(i) for i in ids])
        .execute()
    )
    return res.data or []

def get_products_map(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """
    Retourne un dict {id: produit} à partir d'une liste d'IDs (dédoublonnée).
    """
    unique_ids = list(dict.fromkeys(str(i) for i in ids))
    products = fetch_products_by_ids(unique_ids)
    return {str(p.get("id")): p for p in products}
