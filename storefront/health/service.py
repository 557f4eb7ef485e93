from urllib.parse import urlparse
from storefront.config import SUPABASE_URL, HDFC_BASE_URL, HDFC_MERCHANT_ID
import storefront.infra.supabase_client as supabase_client

TABLES = ["products", "transactions", "custom_orders"]

def _check_table(client, name: str):
    try:
        res = client.table(name).select("id").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def health_supabase_info():
    parsed = urlparse(SUPABASE_URL) if SUPABASE_URL else None
    info = {
        "hostname": parsed.hostname if parsed else None,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        client = supabase_client.get_service_supabase()
        for t in TABLES:
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = True
    except Exception as e:
        info["error"] = str(e)
    return info

def health_gateway_info():
    return {
        "base_url": HDFC_BASE_URL,
        "merchant_configured": bool(HDFC_MERCHANT_ID),
    }
