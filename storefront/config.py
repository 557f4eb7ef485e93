# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

TEMPLATES_DIR = BASE_DIR / "templates"

"""
Configuration centrale du backend boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Expose le chemin des templates (emails)
- Normalise et expose les secrets/URLs (Supabase, HDFC SmartGateway, Stripe, Resend)
- Fournit les URLs de redirection pour les flux de paiement
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _float_env(name: str, default: float) -> float:
    try:
        return float(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# Supabase: URL et clés (anon/service)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies / sécurité
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")

# CORS
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

# HDFC SmartGateway (Juspay): sandbox ou production
HDFC_SANDBOX_BASE_URL = "https://smartgatewayuat.hdfcbank.com"
HDFC_PRODUCTION_BASE_URL = "https://smartgateway.hdfcbank.com"
HDFC_ENV = _clean_env(os.getenv("HDFC_ENV") or "sandbox").lower()
HDFC_BASE_URL = HDFC_PRODUCTION_BASE_URL if HDFC_ENV == "production" else HDFC_SANDBOX_BASE_URL
HDFC_MERCHANT_ID = _clean_env(os.getenv("HDFC_MERCHANT_ID") or "")
HDFC_API_KEY = _clean_env(os.getenv("HDFC_API_KEY") or "")
HDFC_PAYMENT_PAGE_CLIENT_ID = _clean_env(os.getenv("HDFC_PAYMENT_PAGE_CLIENT_ID") or "")
HDFC_CURRENCY = _clean_env(os.getenv("HDFC_CURRENCY") or "USD")
HDFC_TIMEOUT_SECONDS = _float_env("HDFC_TIMEOUT_SECONDS", 15.0)

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000")

# URL de retour enregistrée auprès de la passerelle (pointe vers le callback)
HDFC_RETURN_URL = _clean_env(
    os.getenv("HDFC_RETURN_URL") or f"{BASE_URL}/api/v1/payments/handleJuspayResponse"
)

# Page de succès du front (suffixée par /order-success/<transaction_id>)
ORDER_SUCCESS_BASE_URL = _clean_env(os.getenv("ORDER_SUCCESS_BASE_URL") or "http://localhost:3000").rstrip("/")

# Stripe (checkout legacy)
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_CURRENCY = _clean_env(os.getenv("STRIPE_CURRENCY") or "usd").lower()
CHECKOUT_SUCCESS_URL = _clean_env(os.getenv("CHECKOUT_SUCCESS_URL") or "http://localhost:3000/checkout/success")
CHECKOUT_CANCEL_URL = _clean_env(os.getenv("CHECKOUT_CANCEL_URL") or "http://localhost:3000/cart")

# Emails (Resend)
RESEND_API_KEY = _clean_env(os.getenv("RESEND_API_KEY") or "")
MAIL_FROM = _clean_env(os.getenv("MAIL_FROM") or "RG Embroidery Designs <orders@rgembroiderydesigns.com>")
ADMIN_NOTIFICATION_EMAIL = _clean_env(os.getenv("ADMIN_NOTIFICATION_EMAIL") or "rgdigitizing@gmail.com")
SUPPORT_EMAIL = _clean_env(os.getenv("SUPPORT_EMAIL") or "info@rgembroiderydesigns.com")
ADMIN_DASHBOARD_URL = _clean_env(os.getenv("ADMIN_DASHBOARD_URL") or "https://dashboard.rgembroiderydesigns.com")
