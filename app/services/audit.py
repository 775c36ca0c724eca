import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.constants import AuditActionEnum, AuditEntityTypeEnum
from app.crud.admin_audit_log import admin_audit_log as crud_audit_log
from app.crud.base import PaginatedResponse
from app.schemas.admin_audit_log import AdminAuditLog, AdminAuditLogCreate, AuditRequestInfo

logger = logging.getLogger(__name__)


class AuditService:

    def log_action(
        self,
        db: Session,
        *,
        admin_id: int,
        action: AuditActionEnum,
        entity_type: AuditEntityTypeEnum,
        entity_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        request_info: Optional[AuditRequestInfo] = None,
    ) -> Optional[AdminAuditLog]:
        """Append an audit entry. Failures are logged and never interrupt the admin action."""
        try:
            entry = crud_audit_log.create(db, obj_in=AdminAuditLogCreate(
                admin_id=admin_id,
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id is not None else None,
                details=details,
                ip_address=request_info.ip_address if request_info else None,
                user_agent=request_info.user_agent if request_info else None,
            ))
            return AdminAuditLog.model_validate(entry)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to write audit log {action.value} for {entity_type.value} {entity_id}: {e}")
            return None

    def list_logs(
        self,
        db: Session,
        *,
        admin_id: Optional[int] = None,
        action: Optional[AuditActionEnum] = None,
        entity_type: Optional[AuditEntityTypeEnum] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        size: int = 50,
    ) -> PaginatedResponse[AdminAuditLog]:
        result = crud_audit_log.get_filtered(
            db,
            admin_id=admin_id,
            action=action,
            entity_type=entity_type,
            start_date=start_date,
            end_date=end_date,
            page=page,
            size=size,
        )
        result["items"] = [AdminAuditLog.model_validate(item) for item in result["items"]]
        return PaginatedResponse[AdminAuditLog](**result)


audit_service = AuditService()
