"""
Health check API route
"""

from fastapi import APIRouter, HTTPException

from database.connection import get_db_pool
from config.settings import ENV, RESEND_API_KEY, R2_ACCESS_KEY_ID, PAYSTACK_SECRET_KEY
from utils.helpers import utc_now

router = APIRouter()


@router.get("/")
async def health_check():
    """
    Health check - reports unhealthy (503) only when the database is unreachable

    Optional integrations are listed for monitoring but never fail the check.
    """
    db_pool = get_db_pool()

    try:
        if db_pool is None:
            raise RuntimeError("Database pool not initialized")
        async with db_pool.acquire() as conn:
            await conn.fetchval("SELECT 1")

        return {
            "status": "healthy",
            "timestamp": utc_now().isoformat(),
            "environment": ENV,
            "database": "connected",
            "integrations": {
                "email": "resend_configured" if RESEND_API_KEY else "not_configured",
                "storage": "r2_configured" if R2_ACCESS_KEY_ID else "not_configured",
                "payments": "paystack_configured" if PAYSTACK_SECRET_KEY else "not_configured",
            },
        }

    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Health check failed: {str(e)}")
