from typing import Optional

from fastapi import Header, Request

from contract_repository.core.observability import request_id_for
from contract_repository.database import get_db
from contract_repository.services.core_banking import CoreBankingService, get_core_banking_service

DEFAULT_USERNAME = "system"


def get_current_username(
    x_user: Optional[str] = Header(default=None, description="Acting user recorded in audit fields"),
) -> str:
    """There is no authentication layer; the caller names itself for the audit trail."""
    name = str(x_user or "").strip()
    return name[:100] if name else DEFAULT_USERNAME


def get_request_id(request: Request) -> str:
    return request_id_for(request)


def get_core_banking() -> CoreBankingService:
    return get_core_banking_service()


__all__ = [
    "DEFAULT_USERNAME",
    "get_core_banking",
    "get_current_username",
    "get_db",
    "get_request_id",
]
