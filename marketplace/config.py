# marketplace.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du backend marketplace.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Expose les secrets des collaborateurs (Stripe, Shippo, Supabase), jamais en dur dans le code
- Expose les constantes métier (commissions, rétention) et les URLs par défaut de l'onboarding vendeur
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

# Stripe: clé secrète (Connect + PaymentIntents + Refunds)
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")

# Shippo: clé API et URL de base (surchargée en tests / sandbox)
SHIPPO_API_KEY = _clean_env(os.getenv("SHIPPO_API_KEY") or "")
SHIPPO_API_URL = _clean_env(os.getenv("SHIPPO_API_URL") or "https://api.goshippo.com").rstrip("/")

# Supabase: base documentaire (tables products, users)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Redis: messagerie + rate limiting
REDIS_URL = _clean_env(os.getenv("REDIS_URL") or "redis://127.0.0.1:6379/0")
RATE_LIMIT_REDIS_URL = _clean_env(os.getenv("RATE_LIMIT_REDIS_URL") or REDIS_URL)

# CORS: les handlers sont appelés depuis le front statique (origine libre par défaut)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Paiements
DEFAULT_CURRENCY = _clean_env(os.getenv("DEFAULT_CURRENCY") or "usd").lower()
CONNECT_COUNTRY = _clean_env(os.getenv("CONNECT_COUNTRY") or "US").upper()

# Onboarding vendeur: URLs par défaut si le front ne les fournit pas
ONBOARDING_RETURN_URL = _clean_env(os.getenv("ONBOARDING_RETURN_URL") or "http://localhost:3000/success")
ONBOARDING_REFRESH_URL = _clean_env(os.getenv("ONBOARDING_REFRESH_URL") or "http://localhost:3000/reauth")

# Constantes métier (non configurables)
PLATFORM_FEE_RATE = "0.10"
CANCELLATION_FEE_RATE = "0.05"
SOLD_LISTING_RETENTION_DAYS = 90
REAPER_BATCH_SIZE = 500
MESSAGE_RETENTION_DAYS = 30
