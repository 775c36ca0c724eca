from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.constants import AuditActionEnum, AuditEntityTypeEnum
from app.crud.base import PaginatedResponse
from app.models.user import User
from app.schemas.admin_audit_log import AdminAuditLog
from app.schemas.response import APIResponse
from app.services.audit import audit_service
from app.utils import deps

router = APIRouter()

@router.get("/", response_model=APIResponse[PaginatedResponse[AdminAuditLog]])
async def list_audit_logs(
    db: Session = Depends(deps.get_db),
    admin: User = Depends(deps.require_admin),
    admin_id: Optional[int] = None,
    action: Optional[AuditActionEnum] = None,
    entity_type: Optional[AuditEntityTypeEnum] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=200),
):
    logs = audit_service.list_logs(
        db,
        admin_id=admin_id,
        action=action,
        entity_type=entity_type,
        start_date=start_date,
        end_date=end_date,
        page=page,
        size=size,
    )
    return APIResponse(message="Audit logs retrieved successfully", data=logs)
