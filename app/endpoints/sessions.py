from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.response import APIResponse
from app.schemas.learning_session import (
    LearningSession,
    LearningSessionComplete,
    LearningSessionCreate,
    LearningSessionUpdate,
    ResumeCheck,
)
from app.schemas.session_answer import SessionAnswer, SessionAnswerCreate
from app.services.learning_session import learning_session_service
from app.utils import deps

router = APIRouter()

@router.post("/", response_model=APIResponse[LearningSession], status_code=status.HTTP_201_CREATED)
async def create_session(
    *,
    db: Session = Depends(deps.get_db),
    session_in: LearningSessionCreate,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    session = await learning_session_service.create_session(db, session_in=session_in, current_user=current_user)
    return APIResponse(message="Session created successfully", data=session)


@router.get("/{session_id}", response_model=APIResponse[LearningSession])
async def get_session(
    *,
    db: Session = Depends(deps.get_db),
    session_id: str,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    session = await learning_session_service.get_session(db, session_id, current_user)
    return APIResponse(message="Session retrieved successfully", data=session)


@router.get("/{session_id}/answers", response_model=APIResponse[List[SessionAnswer]])
async def get_session_answers(
    *,
    db: Session = Depends(deps.get_db),
    session_id: str,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    answers = await learning_session_service.get_session_answers(db, session_id, current_user)
    return APIResponse(message="Session answers retrieved successfully", data=answers)


@router.patch("/{session_id}", response_model=APIResponse[LearningSession])
async def update_session(
    *,
    db: Session = Depends(deps.get_db),
    session_id: str,
    session_in: LearningSessionUpdate,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    session = await learning_session_service.update_session(db, session_id, session_in, current_user)
    return APIResponse(message="Session updated successfully", data=session)


@router.post("/{session_id}/answers", response_model=APIResponse[SessionAnswer], status_code=status.HTTP_201_CREATED)
async def create_session_answer(
    *,
    db: Session = Depends(deps.get_db),
    session_id: str,
    answer_in: SessionAnswerCreate,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    answer = await learning_session_service.record_answer(db, session_id, answer_in, current_user)
    return APIResponse(message="Answer recorded successfully", data=answer)


@router.post("/{session_id}/complete", response_model=APIResponse[LearningSession])
async def complete_session(
    *,
    db: Session = Depends(deps.get_db),
    session_id: str,
    completion_in: LearningSessionComplete,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    session = await learning_session_service.complete_session(db, session_id, completion_in, current_user)
    return APIResponse(message="Session completed successfully", data=session)


@router.get("/{session_id}/resume-check", response_model=APIResponse[ResumeCheck])
async def resume_check(
    *,
    db: Session = Depends(deps.get_db),
    session_id: str,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    check = await learning_session_service.resume_check(db, session_id, current_user)
    return APIResponse(message="Resume check completed", data=check)
