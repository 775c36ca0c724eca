from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy.orm import Session

from app.core.constants import AuditActionEnum, AuditEntityTypeEnum
from app.crud.base import CRUDBase, paginate
from app.models.admin_audit_log import AdminAuditLog
from app.schemas.admin_audit_log import AdminAuditLogCreate

class CRUDAdminAuditLog(CRUDBase[AdminAuditLog, AdminAuditLogCreate, AdminAuditLogCreate]):

    def get_filtered(
        self, db: Session, *, admin_id: Optional[int] = None, action: Optional[AuditActionEnum] = None,
        entity_type: Optional[AuditEntityTypeEnum] = None, start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None, page: int = 1, size: int = 50
    ) -> Dict[str, Any]:
        query = db.query(self.model)
        if admin_id is not None:
            query = query.filter(self.model.admin_id == admin_id)
        if action is not None:
            query = query.filter(self.model.action == action)
        if entity_type is not None:
            query = query.filter(self.model.entity_type == entity_type)
        if start_date is not None:
            query = query.filter(self.model.created_at >= start_date)
        if end_date is not None:
            query = query.filter(self.model.created_at <= end_date)
        query = query.order_by(self.model.created_at.desc(), self.model.id.desc())
        return paginate(query, page=page, size=size)

    def get_for_entity(
        self, db: Session, *, entity_type: AuditEntityTypeEnum, entity_id: Any,
        actions: Optional[Sequence[AuditActionEnum]] = None, limit: Optional[int] = None
    ) -> List[AdminAuditLog]:
        query = (
            db.query(self.model)
            .filter(self.model.entity_type == entity_type)
            .filter(self.model.entity_id == str(entity_id))
        )
        if actions:
            query = query.filter(self.model.action.in_(list(actions)))
        query = query.order_by(self.model.created_at.desc(), self.model.id.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

admin_audit_log = CRUDAdminAuditLog(AdminAuditLog)
