"""
Router de supervision
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError

from ..core.config import settings
from ..core.database import verifier_connexion_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def health_check():
    try:
        base_ok = verifier_connexion_db()
    except SQLAlchemyError as e:
        logger.error("❌ Base de données injoignable: %s", e)
        base_ok = False
    return {
        "status": "healthy" if base_ok else "degraded",
        "database": "ok" if base_ok else "error",
        "app": settings.APP_NAME,
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "time": datetime.now(timezone.utc).isoformat(),
    }
