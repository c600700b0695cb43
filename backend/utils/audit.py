import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from models.log import Log

logger = logging.getLogger(__name__)

def write_log(db: Session, *, session_key, action, resource, status="SUCCESS", ip=None, meta=None):
    entry = Log(session_key=session_key, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        # The audited action already happened; a lost audit row must not turn it into an error
        db.rollback()
        logger.exception("Failed to write audit log %s/%s: %s", resource, action, e)
