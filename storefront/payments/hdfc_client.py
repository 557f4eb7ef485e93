"""
Adaptateur HDFC SmartGateway (Juspay): centralise les appels HTTP et la configuration.
Le client est construit une fois dans le lifespan (app.state.gateway) puis injecté via get_gateway.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx
from fastapi import Request

from storefront import config
from .errors import GatewayError, GatewayTimeoutError

logger = logging.getLogger(__name__)

API_VERSION = "2023-06-30"

# module storefront.payments.hdfc_client
class HdfcGateway:
    """
    Client asynchrone de la passerelle.
    - create_session: ouvre une session "paymentPage" (page de paiement hébergée)
    - order_status: statut courant d'une commande (status, amount, ...)
    Les erreurs réseau/HTTP sont converties en GatewayError / GatewayTimeoutError.
    """

    def __init__(
        self,
        *,
        base_url: str,
        merchant_id: str,
        api_key: str,
        payment_page_client_id: str,
        return_url: str,
        currency: str = "USD",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.merchant_id = merchant_id
        self.payment_page_client_id = payment_page_client_id
        self.return_url = return_url
        self.currency = currency
        self._client = httpx.AsyncClient(
            base_url=base_url,
            auth=httpx.BasicAuth(api_key, ""),
            headers={"x-merchantid": merchant_id, "version": API_VERSION},
            timeout=timeout,
            transport=transport,
        )

    async def create_session(
        self,
        *,
        order_id: str,
        amount: Decimal,
        customer_id: str,
        customer_email: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "order_id": order_id,
            "amount": str(amount),
            "customer_id": customer_id,
            "payment_page_client_id": self.payment_page_client_id,
            "action": "paymentPage",
            "return_url": self.return_url,
            "currency": self.currency,
        }
        if customer_email:
            payload["customer_email"] = customer_email
        return await self._request("POST", "/session", json=payload, headers={"x-customerid": customer_id})

    async def order_status(self, order_id: str, customer_id: Optional[str] = None) -> Dict[str, Any]:
        headers = {"x-customerid": customer_id} if customer_id else None
        return await self._request("GET", f"/orders/{order_id}", headers=headers)

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("hdfc %s %s timeout: %s", method, path, e)
            raise GatewayTimeoutError("Payment gateway timeout, please retry")
        except httpx.RequestError as e:
            logger.warning("hdfc %s %s unreachable: %s", method, path, e)
            raise GatewayError("Payment gateway unreachable")

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.is_error:
            raise GatewayError(_error_message(data, resp.status_code))
        if not isinstance(data, dict):
            raise GatewayError("Invalid payment gateway response")
        data["http"] = {"status_code": resp.status_code, "headers": dict(resp.headers)}
        return data

    async def aclose(self) -> None:
        await self._client.aclose()

def _error_message(data: Any, status_code: int) -> str:
    if isinstance(data, dict):
        for key in ("error_message", "user_message", "message", "status"):
            if data.get(key):
                return str(data[key])
    return f"Payment gateway error (HTTP {status_code})"

def strip_transport_metadata(response: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Retire le champ 'http' (métadonnées de transport) avant de renvoyer la réponse au client."""
    if response is None:
        return response
    return {k: v for k, v in response.items() if k != "http"}

def build_gateway() -> HdfcGateway:
    return HdfcGateway(
        base_url=config.HDFC_BASE_URL,
        merchant_id=config.HDFC_MERCHANT_ID,
        api_key=config.HDFC_API_KEY,
        payment_page_client_id=config.HDFC_PAYMENT_PAGE_CLIENT_ID,
        return_url=config.HDFC_RETURN_URL,
        currency=config.HDFC_CURRENCY,
        timeout=config.HDFC_TIMEOUT_SECONDS,
    )

def get_gateway(request: Request) -> HdfcGateway:
    """Dépendance FastAPI: client passerelle partagé (créé par le lifespan)."""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        gateway = build_gateway()
        request.app.state.gateway = gateway
    return gateway
