"""Audit trail for project, snapshot, permission and sign-in events.

``log`` is called after the audited change has been committed. It writes and
commits its own row and swallows store errors (with a warning), because an
audit hiccup must not turn a successful publish into a 500. The caller's
address is taken from the request context when the middleware has set one.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.logging_config import client_ip_var
from ..models.user import AuditLog

logger = logging.getLogger(__name__)


def _client_ip() -> Optional[str]:
    # Empty outside requests (startup jobs, service-level tests).
    return client_ip_var.get()[:45] or None


def log(
    db: Session,
    user_id: Optional[str],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[dict] = None,
    ip_address: Optional[str] = None,
) -> None:
    """Record *action* by *user_id* on (*resource_type*, *resource_id*)."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=json.dumps(details, default=str) if details else None,
        ip_address=ip_address or _client_ip(),
    )
    try:
        db.add(entry)
        db.commit()
    except sqlalchemy.exc.SQLAlchemyError as e:
        db.rollback()
        logger.warning(
            "Audit entry dropped: %s", e,
            extra={"action": action, "resource_type": resource_type, "resource_id": resource_id},
        )


def entry_details(entry: AuditLog) -> dict:
    """Decoded ``details`` of *entry* ({} when empty)."""
    return json.loads(entry.details) if entry.details else {}


def get_by_resource(db: Session, resource_type: str, resource_id: str, limit: int = 100) -> List[AuditLog]:
    """Entries for one resource, newest first."""
    return (
        db.query(AuditLog)
        .filter(AuditLog.resource_type == resource_type, AuditLog.resource_id == resource_id)
        .order_by(AuditLog.id.desc())
        .limit(limit)
        .all()
    )


def purge_old_entries(db: Session, days: int) -> int:
    """Drop entries older than *days*; returns how many went. ``days <= 0`` keeps everything."""
    if days <= 0:
        return 0
    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    try:
        purged = db.query(AuditLog).filter(AuditLog.created_at < cutoff).delete(synchronize_session=False)
        db.commit()
    except sqlalchemy.exc.SQLAlchemyError as e:
        db.rollback()
        logger.warning("Audit retention purge failed: %s", e)
        return 0
    return purged
