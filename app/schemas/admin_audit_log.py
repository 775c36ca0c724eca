from pydantic import BaseModel, ConfigDict
from typing import Optional, Any, Dict
from datetime import datetime

from app.core.constants import AuditActionEnum, AuditEntityTypeEnum

class AdminAuditLogCreate(BaseModel):
    admin_id: int
    action: AuditActionEnum
    entity_type: AuditEntityTypeEnum
    entity_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

class AdminAuditLog(AdminAuditLogCreate):
    id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class AuditRequestInfo(BaseModel):
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
