from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.crud.base import PaginatedResponse
from app.models.user import User
from app.schemas.admin_audit_log import AuditRequestInfo
from app.schemas.response import APIResponse
from app.schemas.user import User as UserSchema, UserDetail, UserUpdate
from app.services.user import user_service
from app.utils import deps

router = APIRouter()

@router.get("/", response_model=APIResponse[PaginatedResponse[UserSchema]])
async def list_users(
    db: Session = Depends(deps.get_db),
    admin: User = Depends(deps.require_admin),
    search: Optional[str] = None,
    role: Optional[RoleEnum] = None,
    is_active: Optional[bool] = None,
    sort_by: str = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
):
    users = user_service.list_users(
        db, search=search, role=role, is_active=is_active, sort_by=sort_by,
        descending=sort_order == "desc", page=page, size=size,
    )
    return APIResponse(message="Users retrieved successfully", data=users)


@router.get("/{user_id}", response_model=APIResponse[UserDetail])
async def get_user(
    *,
    db: Session = Depends(deps.get_db),
    user_id: int,
    admin: User = Depends(deps.require_admin)
):
    detail = user_service.get_user_detail(db, user_id)
    return APIResponse(message="User retrieved successfully", data=detail)


@router.put("/{user_id}", response_model=APIResponse[UserSchema])
async def update_user(
    *,
    db: Session = Depends(deps.get_db),
    user_id: int,
    user_in: UserUpdate,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    user = user_service.update_user(db, user_id=user_id, user_in=user_in, admin=admin, request_info=request_info)
    return APIResponse(message="User updated successfully", data=user)
