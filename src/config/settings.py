"""
Configuration settings for the Sycamore Church backend
"""

import os
import resend
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Environment configuration
ENV = os.getenv("ENV", "PROD")  # PROD or QA
DATABASE_URL = os.getenv("DATABASE_URL")
PORT = int(os.getenv("PORT", 8080))

# Email (Resend)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
FROM_EMAIL = os.getenv("FROM_EMAIL", "Sycamore Church <noreply@sycamore.church>")
FRONTEND_URL = os.getenv("FRONTEND_URL", "https://mobile.sycamore.church")

# Authentication
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-in-production")
JWT_ALGORITHM = "HS256"
JWT_ISSUER = os.getenv("JWT_ISSUER", "sycamore-church-api")
AUTH_COOKIE_NAME = "auth-token"
WEB_TOKEN_TTL_HOURS = int(os.getenv("WEB_TOKEN_TTL_HOURS", 24))
MOBILE_TOKEN_TTL_DAYS = int(os.getenv("MOBILE_TOKEN_TTL_DAYS", 7))
RESET_TOKEN_TTL_MINUTES = int(os.getenv("RESET_TOKEN_TTL_MINUTES", 15))
MAX_LOGIN_ATTEMPTS = int(os.getenv("MAX_LOGIN_ATTEMPTS", 5))
LOCKOUT_MINUTES = int(os.getenv("LOCKOUT_MINUTES", 30))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))
MIN_PASSWORD_LENGTH = 6

# Cloudflare R2 (S3 compatible) storage
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "sycamore-media")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", 50 * 1024 * 1024))

# Paystack payments
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
PAYSTACK_TIMEOUT_SECONDS = float(os.getenv("PAYSTACK_TIMEOUT_SECONDS", 15))
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "NGN")

# Event listing windows and recurrence caps
WEB_EVENT_WINDOW_DAYS = 365
MOBILE_EVENT_WINDOW_DAYS = 90
RECURRENCE_MAX_INSTANCES = {
    "weekly": 24,
    "monthly": 12,
    "yearly": 6,
}
CHECK_IN_WINDOW_HOURS = 2

logger.info(f"Environment: {ENV}")

# Validate required environment variables
if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is required")
if not RESEND_API_KEY:
    logger.warning("RESEND_API_KEY not set - outgoing email will fail")
if not (R2_ACCOUNT_ID and R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY):
    logger.warning("R2 credentials not set - media uploads will not be available")
if not PAYSTACK_SECRET_KEY:
    logger.warning("PAYSTACK_SECRET_KEY not set - online donations cannot be verified")
if ENV == "PROD" and JWT_SECRET == "dev-secret-change-in-production":
    logger.warning("JWT_SECRET is using the development default")

# Configure Resend
resend.api_key = RESEND_API_KEY

# CORS settings
ALLOWED_ORIGINS = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]
