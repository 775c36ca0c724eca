from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.core.database import SessionLocal
from app.core.security import decode_access_token
from app.crud.user import user as user_crud
from app.models.user import User
from app.schemas.admin_audit_log import AuditRequestInfo

http_bearer = HTTPBearer()
optional_bearer = HTTPBearer(auto_error=False)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_transactional_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

def _user_from_token(db: Session, token: str) -> User:
    try:
        payload = decode_access_token(token)
        subject = payload.get("sub")
        if subject is None:
            raise HTTPException(status_code=401, detail="Invalid token")
        user_id = int(subject)
    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")

    user = user_crud.get(db, id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return user

async def get_current_user(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer)
) -> User:
    return _user_from_token(db, credentials.credentials)

async def get_optional_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer)
) -> Optional[User]:
    """Resolve the caller when a bearer token is present; guests get None."""
    if credentials is None:
        return None
    return _user_from_token(db, credentials.credentials)

async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role not in (RoleEnum.ADMIN, RoleEnum.SUPER_ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user

def get_device_id(x_device_id: Optional[str] = Header(None)) -> Optional[str]:
    return x_device_id

def get_request_info(request: Request) -> AuditRequestInfo:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        ip_address = forwarded_for.split(",")[0].strip()
    else:
        ip_address = request.headers.get("x-real-ip") or (request.client.host if request.client else None)
    return AuditRequestInfo(ip_address=ip_address, user_agent=request.headers.get("user-agent"))

def get_review_generator():
    from app.services.review_generator import review_generator
    return review_generator

def get_session_factory():
    return SessionLocal

def get_session_gateway(session_factory=Depends(get_session_factory)):
    from app.engine.gateway import DatabaseSessionGateway
    return DatabaseSessionGateway(session_factory)
