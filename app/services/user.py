import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.constants import AuditActionEnum, AuditEntityTypeEnum, RoleEnum
from app.crud.admin_audit_log import admin_audit_log as crud_audit_log
from app.crud.base import PaginatedResponse
from app.crud.learning_session import learning_session as crud_learning_session
from app.crud.user import user as crud_user
from app.models.user import User
from app.schemas.admin_audit_log import AdminAuditLog, AuditRequestInfo
from app.schemas.learning_session import LearningSessionSummary
from app.schemas.user import User as UserSchema, UserDetail, UserStats, UserUpdate
from app.services.audit import audit_service

logger = logging.getLogger(__name__)

HISTORY_ACTIONS = (AuditActionEnum.ROLE_CHANGE, AuditActionEnum.STATUS_CHANGE, AuditActionEnum.CREATE)


class UserService:

    def _get_or_404(self, db: Session, user_id: int) -> User:
        user = crud_user.get(db, id=user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
        return user

    def list_users(
        self, db: Session, *, search: Optional[str] = None, role: Optional[RoleEnum] = None,
        is_active: Optional[bool] = None, sort_by: str = "created_at", descending: bool = True,
        page: int = 1, size: int = 20
    ) -> PaginatedResponse[UserSchema]:
        result = crud_user.get_filtered_paginated(
            db, search=search, role=role, is_active=is_active, sort_by=sort_by,
            descending=descending, page=page, size=size,
        )
        result["items"] = [UserSchema.model_validate(u) for u in result["items"]]
        return PaginatedResponse[UserSchema](**result)

    def get_user_detail(self, db: Session, user_id: int) -> UserDetail:
        user = self._get_or_404(db, user_id)
        sessions, answered, correct = crud_learning_session.completed_totals(db, user_id=user.id)
        stats = UserStats(
            total_sessions=sessions,
            total_questions_answered=answered,
            total_correct_answers=correct,
            average_accuracy=round(correct * 100 / answered) if answered else 0,
            current_streak=user.current_streak or 0,
            total_study_minutes=user.total_study_minutes or 0,
        )
        recent = crud_audit_log.get_for_entity(db, entity_type=AuditEntityTypeEnum.USER, entity_id=user.id, limit=10)
        history = crud_audit_log.get_for_entity(
            db, entity_type=AuditEntityTypeEnum.USER, entity_id=user.id, actions=HISTORY_ACTIONS
        )
        return UserDetail(
            user=UserSchema.model_validate(user),
            stats=stats,
            recent_sessions=[
                LearningSessionSummary.model_validate(s)
                for s in crud_learning_session.get_for_user(db, user_id=user.id, limit=5)
            ],
            recent_activity=[AdminAuditLog.model_validate(entry) for entry in recent],
            role_history=[AdminAuditLog.model_validate(entry) for entry in history],
        )

    def update_user(
        self, db: Session, *, user_id: int, user_in: UserUpdate, admin: User,
        request_info: Optional[AuditRequestInfo] = None
    ) -> UserSchema:
        user = self._get_or_404(db, user_id)
        changes = user_in.model_dump(exclude_unset=True)
        previous_role = user.role
        previous_active = user.is_active

        new_role = changes.get("role")
        if new_role is not None and new_role != previous_role:
            if RoleEnum.SUPER_ADMIN in (new_role, previous_role) and admin.role != RoleEnum.SUPER_ADMIN:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Only super admins can grant or revoke the super admin role."
                )
            if user.id == admin.id and new_role == RoleEnum.STUDENT:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot demote yourself.")
        if changes.get("is_active") is False and user.id == admin.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate yourself.")

        user = crud_user.update(db, db_obj=user, obj_in=changes)

        if user.role != previous_role:
            logger.info(f"Admin {admin.id} changed role of user {user.id}: {previous_role.value} -> {user.role.value}")
            audit_service.log_action(
                db, admin_id=admin.id, action=AuditActionEnum.ROLE_CHANGE, entity_type=AuditEntityTypeEnum.USER,
                entity_id=user.id,
                details={"previous_role": previous_role.value, "new_role": user.role.value, "user_email": user.email},
                request_info=request_info,
            )
        if user.is_active != previous_active:
            audit_service.log_action(
                db, admin_id=admin.id, action=AuditActionEnum.STATUS_CHANGE, entity_type=AuditEntityTypeEnum.USER,
                entity_id=user.id,
                details={"previous_active": previous_active, "new_active": user.is_active, "user_email": user.email},
                request_info=request_info,
            )
        if "full_name" in changes:
            audit_service.log_action(
                db, admin_id=admin.id, action=AuditActionEnum.UPDATE, entity_type=AuditEntityTypeEnum.USER,
                entity_id=user.id, details={"fields": ["full_name"]}, request_info=request_info,
            )
        return UserSchema.model_validate(user)


user_service = UserService()
