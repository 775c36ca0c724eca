from typing import Any, Dict, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.crud.base import CRUDBase, paginate
from app.models.user import User
from app.schemas.user import User as UserSchema, UserUpdate

SORTABLE_COLUMNS = ("created_at", "full_name", "email", "last_active_date")

class CRUDUser(CRUDBase[User, UserSchema, UserUpdate]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        return db.query(self.model).filter(self.model.email == email).first()

    def get_filtered_paginated(
        self, db: Session, *, search: Optional[str] = None, role: Optional[RoleEnum] = None,
        is_active: Optional[bool] = None, sort_by: str = "created_at", descending: bool = True,
        page: int = 1, size: int = 20
    ) -> Dict[str, Any]:
        query = db.query(self.model)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(self.model.email.ilike(pattern), self.model.full_name.ilike(pattern)))
        if role is not None:
            query = query.filter(self.model.role == role)
        if is_active is not None:
            query = query.filter(self.model.is_active == is_active)

        column = getattr(self.model, sort_by if sort_by in SORTABLE_COLUMNS else "created_at")
        query = query.order_by(column.desc() if descending else column.asc(), self.model.id.desc())
        return paginate(query, page=page, size=size)

user = CRUDUser(User)
