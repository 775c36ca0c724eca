from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.admin_audit_log import AuditRequestInfo
from app.schemas.response import APIResponse
from app.schemas.subject import Subject, SubjectCreate, SubjectDetail, SubjectUpdate
from app.services.catalog import catalog_service
from app.utils import deps

router = APIRouter()

@router.get("/", response_model=APIResponse[List[Subject]])
async def list_subjects(
    db: Session = Depends(deps.get_db),
    admin: User = Depends(deps.require_admin),
    is_active: Optional[bool] = None,
):
    subjects = catalog_service.list_subjects(db, is_active=is_active)
    return APIResponse(message="Subjects retrieved successfully", data=subjects)


@router.post("/", response_model=APIResponse[Subject], status_code=status.HTTP_201_CREATED)
async def create_subject(
    *,
    db: Session = Depends(deps.get_db),
    subject_in: SubjectCreate,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    subject = catalog_service.create_subject(db, subject_in=subject_in, admin=admin, request_info=request_info)
    return APIResponse(message="Subject created successfully", data=subject)


@router.get("/{subject_id}", response_model=APIResponse[SubjectDetail])
async def get_subject(
    *,
    db: Session = Depends(deps.get_db),
    subject_id: int,
    admin: User = Depends(deps.require_admin)
):
    detail = catalog_service.get_subject_detail(db, subject_id)
    return APIResponse(message="Subject retrieved successfully", data=detail)


@router.put("/{subject_id}", response_model=APIResponse[Subject])
async def update_subject(
    *,
    db: Session = Depends(deps.get_db),
    subject_id: int,
    subject_in: SubjectUpdate,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    subject = catalog_service.update_subject(
        db, subject_id=subject_id, subject_in=subject_in, admin=admin, request_info=request_info
    )
    return APIResponse(message="Subject updated successfully", data=subject)
