import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from contract_repository import models

logger = logging.getLogger("contract_repository.audit")


def _json_default(value: Any) -> str:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def audit_event(
    db: Session,
    action: str,
    *,
    entity_id: Optional[int],
    username: Optional[str],
    payload: Optional[Dict[str, Any]] = None,
    entity_type: str = "contract",
    request_id: Optional[str] = None,
) -> models.AuditLog:
    """
    Stage an audit row in the caller's session.

    The row is committed (or rolled back) together with the change it
    describes; callers own the transaction.
    """
    log = models.AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        username=username,
        payload_json=json.dumps(payload or {}, default=_json_default, sort_keys=True),
        request_id=request_id,
    )
    db.add(log)
    logger.info(
        "audit_event",
        extra={"action": action, "entity_type": entity_type, "entity_id": entity_id, "username": username},
    )
    return log


def get_history(
    db: Session,
    entity_id: int,
    *,
    entity_type: str = "contract",
    limit: int = 200,
) -> List[models.AuditLog]:
    """Audit rows for one entity, newest first."""
    return (
        db.query(models.AuditLog)
        .filter(models.AuditLog.entity_type == entity_type, models.AuditLog.entity_id == int(entity_id))
        .order_by(models.AuditLog.id.desc())
        .limit(int(limit))
        .all()
    )


def payload_of(log: models.AuditLog) -> Dict[str, Any]:
    if not log.payload_json:
        return {}
    try:
        data = json.loads(log.payload_json)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
