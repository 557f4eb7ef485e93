"""
Accès aux données pour la feature 'payments' (ledger des transactions).
Écritures via le client service-role (callback passerelle sans session utilisateur).
"""
from typing import Optional
import logging
from postgrest.exceptions import APIError
import storefront.infra.supabase_client as supabase_client
from .errors import TamperError
from .models import Transaction, TransactionDraft, amounts_match, new_gateway_order_id

logger = logging.getLogger(__name__)

TABLE = "transactions"
UNIQUE_VIOLATION = "23505"
MAX_INSERT_ATTEMPTS = 3

# module storefront.payments.repository
def _first(res) -> Optional[dict]:
    rows = res.data or []
    return rows[0] if isinstance(rows, list) and rows else None

def _insert_row(draft: TransactionDraft):
    return (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .insert(draft.to_row())
        .execute()
    )

def create_transaction(draft: TransactionDraft) -> Transaction:
    """
    Insère une transaction 'pending' et renvoie la ligne stockée.
    - La table porte une contrainte UNIQUE(hdfc_order_id): en cas de collision
      d'identifiant passerelle (code Postgres 23505), un nouvel identifiant est
      tiré et l'insertion rejouée (MAX_INSERT_ATTEMPTS au total).
    - Si la couche de persistance a altéré le montant, TamperError:
      la ligne reste orpheline (jamais payée) et sera nettoyée hors bande.
    """
    for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
        try:
            res = _insert_row(draft)
            break
        except APIError as e:
            if e.code != UNIQUE_VIOLATION or attempt == MAX_INSERT_ATTEMPTS:
                raise
            logger.warning(
                "payments.repository.create_transaction duplicate hdfc_order_id=%s attempt=%s",
                draft.hdfc_order_id, attempt,
            )
            draft = draft.model_copy(update={"hdfc_order_id": new_gateway_order_id()})
    row = _first(res)
    if row is None:
        raise RuntimeError(f"Insertion transaction sans retour hdfc_order_id={draft.hdfc_order_id}")
    transaction = Transaction.model_validate(row)
    if not amounts_match(transaction.amount, draft.amount):
        logger.error(
            "payments.repository.create_transaction amount altered hdfc_order_id=%s requested=%s stored=%s",
            draft.hdfc_order_id, draft.amount, transaction.amount,
        )
        raise TamperError("Amount tampered")
    return transaction

def find_by_gateway_order_id(order_id: str) -> Optional[Transaction]:
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .select("*")
        .eq("hdfc_order_id", order_id)
        .limit(1)
        .execute()
    )
    row = _first(res)
    return Transaction.model_validate(row) if row else None

def find_by_id(transaction_id: str) -> Optional[Transaction]:
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .select("*")
        .eq("id", transaction_id)
        .limit(1)
        .execute()
    )
    row = _first(res)
    return Transaction.model_validate(row) if row else None

def mark_paid(order_id: str) -> Optional[Transaction]:
    """
    Passe is_paid à true uniquement si la transaction est encore impayée.
    Retourne la transaction si CET appel a effectué la transition, sinon None
    (déjà payée ou inexistante): les effets de bord du règlement en dépendent.
    """
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .update({"is_paid": True})
        .eq("hdfc_order_id", order_id)
        .eq("is_paid", False)
        .execute()
    )
    row = _first(res)
    return Transaction.model_validate(row) if row else None

def revert_paid(order_id: str) -> bool:
    """Compensation du règlement: remet is_paid à false (si encore true)."""
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .update({"is_paid": False})
        .eq("hdfc_order_id", order_id)
        .eq("is_paid", True)
        .execute()
    )
    return bool(res.data)
