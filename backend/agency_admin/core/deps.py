from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from agency_admin.core.config import get_settings
from agency_admin.core.database import get_db
from agency_admin.core.security import ADMIN_ROLE, decode_token
from agency_admin.models.admin_user import AdminUser

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{get_settings().API_PREFIX}/auth/login")


@dataclass(frozen=True)
class AdminPrincipal:
    subject: str
    session_version: int


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_admin(token: str = Depends(oauth2_scheme)) -> AdminPrincipal:
    """Token-only check: enough for read endpoints."""
    try:
        payload = decode_token(token)
    except JWTError:
        raise _credentials_exception()

    subject = payload.get("sub")
    session_version = payload.get("sv")
    if payload.get("typ") != "access" or payload.get("role") != ADMIN_ROLE:
        raise _credentials_exception()
    if not subject or session_version is None:
        raise _credentials_exception()
    return AdminPrincipal(subject=str(subject), session_version=int(session_version))


def get_admin_identity(
    principal: AdminPrincipal = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AdminUser:
    """Resolve the token to a live admin account, for actions attributed to a person."""
    try:
        user_id = int(principal.subject)
    except ValueError:
        raise _credentials_exception()

    user = db.query(AdminUser).filter(AdminUser.id == user_id).first()
    if not user:
        raise _credentials_exception()
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Admin account inactive")
    if user.session_version != principal.session_version:
        raise HTTPException(status_code=401, detail="Session revoked", headers={"WWW-Authenticate": "Bearer"})
    return user
