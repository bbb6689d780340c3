"""
Audit trail helper - writes into the caller's transaction
"""
from typing import Optional

from sqlalchemy.orm import Session

from app.models import AuditLog

def record_audit(
    db: Session,
    table_name: str,
    record_id,
    action: str,
    before_data: Optional[dict] = None,
    after_data: Optional[dict] = None,
    performed_by: Optional[int] = None
) -> AuditLog:
    audit = AuditLog(
        table_name=table_name,
        record_id=str(record_id),
        action=action,
        performed_by=performed_by,
        before_data=before_data,
        after_data=after_data
    )
    db.add(audit)
    return audit
