# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe, bKash, assistant)
- Fournit l'URL publique utilisée pour construire les redirections de checkout
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# URL publique de la boutique (redirections checkout, page de succès COD)
BASE_URL = _clean_env(os.getenv("BASE_URL") or os.getenv("NEXT_PUBLIC_BASE_URL") or "http://localhost:8000").rstrip("/")

# Supabase: URL du projet et clés (anon / service-role pour les écritures serveur)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Stripe: clé secrète et secret de signature des webhooks
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_WEBHOOK_TOLERANCE = _int_env("STRIPE_WEBHOOK_TOLERANCE", 300)

# Devise de la boutique (prix produits exprimés dans cette devise)
STORE_CURRENCY = _clean_env(os.getenv("STORE_CURRENCY") or "bdt").lower()

# Mobile money (bKash): API partenaire qui renvoie l'URL de paiement
BKASH_API_URL = _clean_env(os.getenv("BKASH_API_URL") or "") or f"{BASE_URL}/api/bkash"

# Assistant conversationnel: modèle de langage compatible OpenAI
OPENAI_API_KEY = _clean_env(os.getenv("OPENAI_API_KEY") or "")
OPENAI_BASE_URL = (_clean_env(os.getenv("OPENAI_BASE_URL") or "") or "https://api.openai.com/v1").rstrip("/")
OPENAI_MODEL = _clean_env(os.getenv("OPENAI_MODEL") or "") or "gpt-4o-mini"
ASSISTANT_SESSION_TTL = _int_env("ASSISTANT_SESSION_TTL", 60 * 60 * 24)

# Stock: nombre de tentatives de mise à jour conditionnelle avant abandon
STOCK_UPDATE_MAX_RETRIES = _int_env("STOCK_UPDATE_MAX_RETRIES", 3)

# CORS / hôtes autorisés
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]
