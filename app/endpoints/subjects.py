from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.schemas.subject import Subject, Topic
from app.services.catalog import catalog_service
from app.utils import deps

router = APIRouter()

@router.get("/", response_model=APIResponse[List[Subject]])
async def list_subjects(db: Session = Depends(deps.get_db)):
    subjects = catalog_service.list_subjects(db, is_active=True)
    return APIResponse(message="Subjects retrieved successfully", data=subjects)


@router.get("/{subject_id}/topics", response_model=APIResponse[List[Topic]])
async def list_topics(
    *,
    db: Session = Depends(deps.get_db),
    subject_id: int
):
    topics = catalog_service.list_topics(db, subject_id)
    return APIResponse(message="Topics retrieved successfully", data=topics)
