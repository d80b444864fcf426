# app/services/audit.py
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.audit import AuditLog

def record_audit(
    db: Session,
    *,
    user_id: Optional[int],
    entity: str,
    entity_id: Any,
    action: str,
    diff: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Registra uma intervenção administrativa na mesma transação da alteração."""
    row = AuditLog(user_id=user_id, entity=entity, entity_id=str(entity_id), action=action, diff_json=diff)
    db.add(row)
    return row
