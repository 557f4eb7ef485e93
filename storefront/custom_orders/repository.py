from typing import Any, Dict, List, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "custom_orders"

def get_custom_order(custom_order_id: str) -> Optional[dict]:
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .select("*")
        .eq("id", custom_order_id)
        .eq("is_deleted", False)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def create_custom_order(payload: Dict[str, Any]) -> Optional[dict]:
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .insert(payload)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def set_custom_order_paid(custom_order_id: str, is_paid: bool) -> bool:
    """Met à jour le drapeau is_paid; True si une ligne a été modifiée."""
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .update({"is_paid": is_paid})
        .eq("id", custom_order_id)
        .execute()
    )
    return bool(res.data)

def mark_custom_order_paid(custom_order_id: str) -> bool:
    return set_custom_order_paid(custom_order_id, True)

# Colonnes exposées au filtrage / tri / projection (liste admin)
FILTER_COLUMNS = {"user_id", "is_paid", "size", "title"}
SORT_COLUMNS = {"id", "created_at", "title", "is_paid"}
FIELD_COLUMNS = {"id", "user_id", "title", "description", "size", "image", "zip", "is_paid", "created_at"}

def _filter_value(column: str, raw: str) -> Any:
    if column == "is_paid":
        return str(raw).lower() in ("1", "true", "yes")
    return raw

def list_custom_orders(
    filters: Optional[Dict[str, str]] = None,
    sort: Optional[str] = None,
    fields: Optional[str] = None,
) -> List[dict]:
    """
    Liste les commandes non supprimées.
    - filters: égalité stricte, colonnes de FILTER_COLUMNS uniquement (les autres clés sont ignorées)
    - sort: "col1,-col2" ("-" = décroissant), par défaut "-created_at"
    - fields: projection "col1,col2" restreinte à FIELD_COLUMNS
    """
    columns = [c.strip() for c in (fields or "").split(",") if c.strip() in FIELD_COLUMNS]
    query = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .select(", ".join(columns) if columns else "*")
        .eq("is_deleted", False)
    )
    for column, raw in (filters or {}).items():
        if column in FILTER_COLUMNS:
            query = query.eq(column, _filter_value(column, raw))
    for key in [k.strip() for k in (sort or "-created_at").split(",") if k.strip()]:
        column = key.lstrip("-")
        if column in SORT_COLUMNS:
            query = query.order(column, desc=key.startswith("-"))
    res = query.execute()
    return res.data or []

def update_custom_order(custom_order_id: str, changes: Dict[str, Any]) -> Optional[dict]:
    """Met à jour une commande non supprimée; None si absente."""
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .update(changes)
        .eq("id", custom_order_id)
        .eq("is_deleted", False)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def soft_delete_custom_order(custom_order_id: str) -> bool:
    """Suppression logique (is_deleted=true); False si absente ou déjà supprimée."""
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .update({"is_deleted": True})
        .eq("id", custom_order_id)
        .eq("is_deleted", False)
        .execute()
    )
    return bool(res.data)
