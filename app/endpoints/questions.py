from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.question import Question, QuestionIdsRequest
from app.schemas.response import APIResponse
from app.services.question import question_service
from app.utils import deps

router = APIRouter()

@router.post("/by-ids", response_model=APIResponse[List[Question]])
async def get_questions_by_ids(
    *,
    db: Session = Depends(deps.get_db),
    ids_in: QuestionIdsRequest
):
    questions = question_service.get_questions_by_ids(db, ids_in.question_ids)
    return APIResponse(message="Questions retrieved successfully", data=questions)
