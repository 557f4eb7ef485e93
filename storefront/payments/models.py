"""
Modèles du flux de paiement HDFC: corps de requête, snapshots de lignes,
transaction (ledger) et statuts passerelle.
"""
import secrets
import time
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CENT = Decimal("0.01")

def quantize_amount(value: Any) -> Decimal:
    """Montant monétaire arrondi au centime (ROUND_HALF_UP)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value if value is not None else 0))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)

def amounts_match(left: Any, right: Any) -> bool:
    return quantize_amount(left) == quantize_amount(right)

def new_gateway_order_id() -> str:
    """
    Identifiant de commande envoyé à la passerelle: préfixe horodaté (ms)
    + 2 caractères aléatoires, 21 caractères au total (limite HDFC).
    """
    return f"order_{int(time.time() * 1000)}{secrets.token_hex(1)}"


class OrderStatus(str, Enum):
    CHARGED = "CHARGED"
    PENDING = "PENDING"
    PENDING_VBV = "PENDING_VBV"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"

    @classmethod
    def parse(cls, raw: Any) -> Optional["OrderStatus"]:
        try:
            return cls(str(raw or "").strip().upper())
        except ValueError:
            return None

STATUS_MESSAGES: Dict[OrderStatus, str] = {
    OrderStatus.CHARGED: "order payment done successfully",
    OrderStatus.PENDING: "order payment pending",
    OrderStatus.PENDING_VBV: "order payment pending",
    OrderStatus.AUTHORIZATION_FAILED: "order payment authorization failed",
    OrderStatus.AUTHENTICATION_FAILED: "order payment authentication failed",
}

def status_message(raw_status: Any) -> str:
    status = OrderStatus.parse(raw_status)
    if status is None:
        return f"order status: {raw_status}"
    return STATUS_MESSAGES[status]


class CartLine(BaseModel):
    """
    Ligne soumise par le client: seule la référence produit est lue (le prix client est ignoré).
    Formes acceptées: "<id>", {"product": "<id>"}, {"product": {"_id": ...}}, {"_id": ...}.
    """
    model_config = ConfigDict(extra="ignore")

    product: str

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_id(cls, data):
        if not isinstance(data, dict):
            return {"product": data}
        if "product" not in data:
            return {"product": data.get("_id") or data.get("id")}
        return data

    @field_validator("product", mode="before")
    @classmethod
    def _coerce_product(cls, v):
        if isinstance(v, dict):
            v = v.get("_id") or v.get("id")
        return str(v or "").strip()


class SessionRequest(BaseModel):
    """Corps de POST /initiateJuspayPayment."""
    model_config = ConfigDict(extra="ignore")

    totalAmount: Decimal
    products: List[CartLine] = Field(default_factory=list)
    userId: str
    customOrder: Optional[str] = None
    isPaid: bool = False
    date: Optional[str] = None
    customerName: str = ""
    email: str = ""
    zipLinks: List[str] = Field(default_factory=list)


class LineItemSnapshot(BaseModel):
    """Snapshot figé au moment de l'achat (embarqué dans la transaction)."""
    model_config = ConfigDict(extra="ignore")

    product: str
    name: str = ""
    price: Decimal = Decimal(0)


class VerifiedOrder(BaseModel):
    """Panier dont le total a été recalculé côté serveur."""
    line_items: List[LineItemSnapshot]
    total: Decimal


class TransactionDraft(BaseModel):
    """
    Transaction à insérer. Construite uniquement via from_verified():
    le montant provient toujours du total vérifié.
    """
    hdfc_order_id: str
    line_items: List[LineItemSnapshot]
    user_id: str
    amount: Decimal
    custom_order_id: Optional[str] = None
    is_paid: bool = False
    date: Optional[str] = None
    customer_name: str = ""
    customer_email: str = ""
    zip_links: List[str] = Field(default_factory=list)

    @classmethod
    def from_verified(
        cls,
        verified: VerifiedOrder,
        *,
        user_id: str,
        custom_order_id: Optional[str] = None,
        date: Optional[str] = None,
        customer_name: str = "",
        customer_email: str = "",
        zip_links: Optional[List[str]] = None,
    ) -> "TransactionDraft":
        return cls(
            hdfc_order_id=new_gateway_order_id(),
            line_items=list(verified.line_items),
            user_id=user_id,
            amount=quantize_amount(verified.total),
            custom_order_id=custom_order_id or None,
            is_paid=False,
            date=date,
            customer_name=customer_name,
            customer_email=customer_email,
            zip_links=list(zip_links or []),
        )

    def to_row(self) -> Dict[str, Any]:
        """Ligne PostgREST: Decimal sérialisés en chaîne (colonne numeric)."""
        return {
            "hdfc_order_id": self.hdfc_order_id,
            "line_items": [
                {"product": li.product, "name": li.name, "price": str(li.price)} for li in self.line_items
            ],
            "user_id": self.user_id,
            "amount": str(self.amount),
            "custom_order_id": self.custom_order_id,
            "is_paid": self.is_paid,
            "date": self.date,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "zip_links": self.zip_links,
        }


class Transaction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    hdfc_order_id: str
    line_items: List[LineItemSnapshot] = Field(default_factory=list)
    user_id: Optional[str] = None
    amount: Decimal
    custom_order_id: Optional[str] = None
    is_paid: bool = False
    date: Optional[str] = None
    customer_name: str = ""
    customer_email: str = ""
    zip_links: List[str] = Field(default_factory=list)

    @field_validator("id", "custom_order_id", "user_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v):
        return None if v is None else str(v)

    @field_validator("zip_links", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return v or []

    def to_public(self) -> Dict[str, Any]:
        """Représentation JSON renvoyée au client (orderDetails)."""
        return self.model_dump(mode="json")
