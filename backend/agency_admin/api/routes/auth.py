from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from agency_admin.core.config import get_settings
from agency_admin.core.database import get_db, utcnow
from agency_admin.core.rate_limit import RATE_LIMIT_POLICIES, limiter
from agency_admin.core.security import create_access_token, verify_password
from agency_admin.models.admin_user import AdminUser
from agency_admin.schemas.auth import TokenResponse
from agency_admin.services.audit import audit_event

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
@limiter.limit(RATE_LIMIT_POLICIES["auth"])
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    settings = get_settings()
    user = db.query(AdminUser).filter(AdminUser.email == form_data.username).first()
    now = utcnow()
    ip_address = request.client.host if request.client else None

    if not user or not user.is_active:
        audit_event(db, "login_failed", "auth", user_id=user.id if user else None, ip_address=ip_address)
        raise HTTPException(status_code=400, detail="Incorrect email or password")

    if user.locked_until and user.locked_until > now:
        raise HTTPException(status_code=423, detail="Account is temporarily locked")

    if not verify_password(form_data.password, user.hashed_password):
        user.failed_login_attempts += 1
        if user.failed_login_attempts >= settings.LOGIN_MAX_ATTEMPTS:
            user.locked_until = now + timedelta(minutes=settings.LOGIN_LOCK_MINUTES)
            user.failed_login_attempts = 0
        db.commit()
        audit_event(db, "login_failed", "auth", user_id=user.id, ip_address=ip_address)
        raise HTTPException(status_code=400, detail="Incorrect email or password")

    user.failed_login_attempts = 0
    user.locked_until = None
    db.commit()

    access = create_access_token(str(user.id), user.session_version)
    audit_event(db, "login_success", "auth", user_id=user.id, ip_address=ip_address)
    return TokenResponse(access_token=access)
