# module storefront.custom_orders.views

"""Endpoints des commandes personnalisées.
- GET /api/v1/custom-orders: liste filtrable / triable (admin).
- POST /api/v1/custom-orders: crée une commande pour l'utilisateur connecté et notifie l'admin.
- GET /api/v1/custom-orders/{id}: détail d'une commande (404 si absente ou supprimée).
- PATCH /api/v1/custom-orders/{id}: mise à jour (admin).
- DELETE /api/v1/custom-orders/{id}: suppression logique (admin), 204.
"""
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront.utils.security import require_admin, require_user
from storefront.custom_orders import repository as custom_orders_repo
from storefront.custom_orders import service as custom_orders_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/custom-orders", tags=["Custom Orders API"])

class CustomOrderRequest(BaseModel):
    title: str
    description: str = ""
    size: Optional[str] = None
    image: Optional[str] = None
    zip: Optional[str] = None

class CustomOrderUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    size: Optional[str] = None
    image: Optional[str] = None
    zip: Optional[str] = None
    is_paid: Optional[bool] = None

@router.get("")
def api_list_custom_orders(request: Request, admin: dict = Depends(require_admin)):
    """
    Query string: filtres d'égalité (user_id, is_paid, size, title),
    sort=col,-col et fields=col,col.
    """
    params = dict(request.query_params)
    sort = params.pop("sort", None)
    fields = params.pop("fields", None)
    custom_orders = custom_orders_repo.list_custom_orders(filters=params, sort=sort, fields=fields)
    return {"customOrders": custom_orders}

@router.post("", status_code=201)
def api_create_custom_order(body: CustomOrderRequest, user: dict = Depends(require_user)):
    try:
        custom_order = custom_orders_service.create_custom_order(user, body.model_dump(exclude_none=True))
        return JSONResponse({"customOrder": custom_order}, status_code=201)
    except Exception:
        logger.exception("Erreur api_create_custom_order")
        raise HTTPException(status_code=500, detail="Custom order creation failed")

@router.get("/{custom_order_id}")
def api_get_custom_order(custom_order_id: str):
    custom_order = custom_orders_repo.get_custom_order(custom_order_id)
    if not custom_order:
        raise HTTPException(status_code=404, detail="CustomOrder not found")
    return {"customOrder": custom_order}

@router.patch("/{custom_order_id}")
def api_update_custom_order(custom_order_id: str, body: CustomOrderUpdate, admin: dict = Depends(require_admin)):
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No field to update")
    custom_order = custom_orders_repo.update_custom_order(custom_order_id, changes)
    if not custom_order:
        raise HTTPException(status_code=404, detail="CustomOrder not found")
    logger.info("custom_orders.update id=%s fields=%s by=%s", custom_order_id, sorted(changes), admin.get("id"))
    return {"customOrder": custom_order}

@router.delete("/{custom_order_id}", status_code=204)
def api_delete_custom_order(custom_order_id: str, admin: dict = Depends(require_admin)):
    if not custom_orders_repo.soft_delete_custom_order(custom_order_id):
        raise HTTPException(status_code=404, detail="CustomOrder not found")
    logger.info("custom_orders.delete id=%s by=%s", custom_order_id, admin.get("id"))
    return Response(status_code=204)
