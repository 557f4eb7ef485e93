from fastapi import APIRouter
from fastapi.responses import JSONResponse
from storefront.health import service as health_service

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/supabase")
def health_supabase():
    return JSONResponse(health_service.health_supabase_info())

@router.get("/gateway")
def health_gateway():
    return health_service.health_gateway_info()
