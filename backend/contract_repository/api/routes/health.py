import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from contract_repository.api.deps import get_core_banking, get_db
from contract_repository.config import settings
from contract_repository.core.observability import uptime_seconds, utc_now_iso
from contract_repository.services.core_banking import CoreBankingService

router = APIRouter(prefix="/health", tags=["health"])

logger = logging.getLogger("contract_repository.health")


@router.get("", summary="Healthcheck")
def healthcheck():
    """Liveness. Keep payload stable for monitoring systems."""
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.environment,
        "time": utc_now_iso(),
        "uptime_seconds": round(uptime_seconds(), 2),
        "version": settings.build_version,
    }


@router.get("/ready", summary="Readiness")
def readiness(
    db: Session = Depends(get_db),
    core_banking: CoreBankingService = Depends(get_core_banking),
):
    database_ok = True
    try:
        db.execute(text("select 1"))
    except Exception:
        logger.exception("readiness_database_check_failed")
        database_ok = False
    core_banking_ok = core_banking.is_system_available()
    return {
        "status": "ok" if database_ok and core_banking_ok else "degraded",
        "database": "up" if database_ok else "down",
        "core_banking": {"system": core_banking.system_name, "available": core_banking_ok},
        "time": utc_now_iso(),
    }
