from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.admin_audit_log import AuditRequestInfo
from app.schemas.response import APIResponse
from app.schemas.subject import Topic, TopicCreate, TopicReorder, TopicReorderResult, TopicUpdate
from app.services.catalog import catalog_service
from app.utils import deps

router = APIRouter()

@router.post("/", response_model=APIResponse[Topic], status_code=status.HTTP_201_CREATED)
async def create_topic(
    *,
    db: Session = Depends(deps.get_db),
    topic_in: TopicCreate,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    topic = catalog_service.create_topic(db, topic_in=topic_in, admin=admin, request_info=request_info)
    return APIResponse(message="Topic created successfully", data=topic)


# Declared before /{topic_id} so "reorder" is never read as an id
@router.put("/reorder", response_model=APIResponse[TopicReorderResult])
async def reorder_topics(
    *,
    db: Session = Depends(deps.get_db),
    reorder_in: TopicReorder,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    result = catalog_service.reorder_topics(db, reorder_in=reorder_in, admin=admin, request_info=request_info)
    return APIResponse(message="Topics reordered successfully", data=result)


@router.put("/{topic_id}", response_model=APIResponse[Topic])
async def update_topic(
    *,
    db: Session = Depends(deps.get_db),
    topic_id: int,
    topic_in: TopicUpdate,
    admin: User = Depends(deps.require_admin),
    request_info: AuditRequestInfo = Depends(deps.get_request_info)
):
    topic = catalog_service.update_topic(db, topic_id=topic_id, topic_in=topic_in, admin=admin, request_info=request_info)
    return APIResponse(message="Topic updated successfully", data=topic)
