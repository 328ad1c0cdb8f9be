from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .crud import create_audit_entry
from .models import AuditLog

logger = logging.getLogger(__name__)


class AuditSink:
    """Best-effort audit trail. Failures are logged and never raised."""

    def append(
        self,
        db: Session,
        action: str,
        actor_id: Optional[int],
        details: str,
        train_id: Optional[int] = None,
        controller_id: Optional[int] = None,
    ) -> Optional[AuditLog]:
        try:
            return create_audit_entry(
                db,
                action=action,
                user_id=actor_id,
                details=details,
                train_id=train_id,
                controller_id=controller_id,
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Audit entry {action} for user {actor_id} dropped: {str(e)}")
            return None
