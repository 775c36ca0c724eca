from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.constants import DifficultyEnum, QuestionStatusEnum
from app.crud.base import PaginatedResponse
from app.models.user import User
from app.schemas.admin_audit_log import AuditRequestInfo
from app.schemas.question import Question, QuestionBulkAction, QuestionBulkResult, QuestionCreate, QuestionUpdate
from app.schemas.response import APIResponse
from app.services.question import question_service
from app.utils import deps

router = APIRouter()

@router.get("/", response_model=APIResponse[PaginatedResponse[Question]])
async def list_questions(
    db: Session = Depends(deps.get_db),
    admin: User = Depends(deps.require_admin),
    subject_id: Optional[int] = None,
    topic_id: Optional[int] = None,
    question_status: Optional[QuestionStatusEnum] = Query(None, alias="status"),
    difficulty: Optional[DifficultyEnum] = None,
    exam_type: Optional[str] = None,
    exam_year: Optional[int] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
):
    filters = {
        "subject_id": subject_id,
        "topic_id": topic_id,
        "status": question_status,
        "difficulty": difficulty,
        "exam_type": exam_type,
        "exam_year": exam_year,
        "search": search,
    }
    questions = question_service.list_questions(db, filters=filters, page=page, size=size)
    return APIResponse(message="Questions retrieved successfully", data=questions)


@router.post("/", response_model=APIResponse[Question], status_code=status.HTTP_201_CREATED)
async def create_question(
    *,
    db: Session = Depends(deps.get_db),
    question_in: QuestionCreate,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    question = question_service.create_question(db, question_in=question_in, admin=admin, request_info=request_info)
    return APIResponse(message="Question created successfully", data=question)


@router.post("/bulk", response_model=APIResponse[QuestionBulkResult])
async def bulk_action(
    *,
    db: Session = Depends(deps.get_db),
    bulk_in: QuestionBulkAction,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    result = question_service.bulk_action(db, bulk_in=bulk_in, admin=admin, request_info=request_info)
    return APIResponse(message=f"Bulk {bulk_in.action.value} applied to {result.affected} questions", data=result)


@router.get("/{question_id}", response_model=APIResponse[Question])
async def get_question(
    *,
    db: Session = Depends(deps.get_db),
    question_id: int,
    admin: User = Depends(deps.require_admin)
):
    question = question_service.get_question(db, question_id)
    return APIResponse(message="Question retrieved successfully", data=question)


@router.put("/{question_id}", response_model=APIResponse[Question])
async def update_question(
    *,
    db: Session = Depends(deps.get_db),
    question_id: int,
    question_in: QuestionUpdate,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    question = question_service.update_question(
        db, question_id=question_id, question_in=question_in, admin=admin, request_info=request_info
    )
    return APIResponse(message="Question updated successfully", data=question)


@router.delete("/{question_id}", response_model=APIResponse[Question])
async def archive_question(
    *,
    db: Session = Depends(deps.get_db),
    question_id: int,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    question = question_service.archive_question(db, question_id=question_id, admin=admin, request_info=request_info)
    return APIResponse(message="Question archived successfully", data=question)
