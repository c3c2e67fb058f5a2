from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from .security import (
    REMEMBER_ME_DURATION,
    SESSION_COOKIE,
    SESSION_DURATION,
    AdminContext,
    AdminSecurity,
    AuthError,
    client_info,
    get_security,
    require_admin,
    session_token,
)

router = APIRouter(prefix="/api/admin/auth", tags=["auth"])


class AdminLogin(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: EmailStr
    password: str = Field(min_length=8)
    two_factor_code: Optional[str] = None
    remember_me: bool = False


@router.post("")
def login(credentials: AdminLogin, request: Request, response: Response,
          security: AdminSecurity = Depends(get_security)):
    ip_address, user_agent = client_info(request)

    # 1. Verify credentials (raises on failure / lockout)
    try:
        admin, session = security.authenticate(
            credentials.email, credentials.password, ip_address, user_agent,
            remember_me=credentials.remember_me,
        )
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    # 2. Session cookie
    lifetime = REMEMBER_ME_DURATION if credentials.remember_me else SESSION_DURATION
    response.set_cookie(
        SESSION_COOKIE,
        session.token,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        samesite="strict",
        secure=request.url.scheme == "https",
        path="/",
    )

    return {
        "success": True,
        "message": "Login successful",
        "admin": admin.to_dict(),
        "session": session.to_dict(current_id=session.id),
        "token": session.token,
    }


@router.get("")
def check_session(ctx: AdminContext = Depends(require_admin())):
    return {
        "success": True,
        "authenticated": True,
        "admin": ctx.admin.to_dict(),
        "session": ctx.session.to_dict(current_id=ctx.session.id),
    }


@router.delete("")
def logout(request: Request, response: Response, security: AdminSecurity = Depends(get_security)):
    token = session_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    ip_address, user_agent = client_info(request)
    security.logout(token, ip_address, user_agent)
    response.delete_cookie(SESSION_COOKIE, path="/")
    return {"success": True, "message": "Logged out successfully"}
