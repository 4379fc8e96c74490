import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from models.log import AUDIT_ACTIONS, Log

logger = logging.getLogger(__name__)


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host


def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, request_id=None, meta=None):
    """Persist an audit entry and commit it on its own."""
    if action not in AUDIT_ACTIONS:
        logger.warning("Unknown audit action %s", action)
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip,
                request_id=request_id, meta=meta or {})
    db.add(entry)
    db.commit()
    return entry
