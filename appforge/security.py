"""
Admin sessions, permissions and the audit trail.

Everything lives in process memory and resets on restart. Session tokens are
signed JWTs, but a token only counts while its in-memory session is active:
logout and revocation flip `is_active` and the token stops working.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import jwt
from fastapi import HTTPException, Request, status

from .config import Settings
from .models import isoformat, utcnow

logger = logging.getLogger(__name__)

SESSION_COOKIE = "admin_session"
ALGORITHM = "HS256"

MAX_LOGIN_ATTEMPTS = 5
SESSION_DURATION = timedelta(hours=8)
REMEMBER_ME_DURATION = timedelta(days=30)
INACTIVITY_TIMEOUT = timedelta(hours=2)
AUDIT_LOG_LIMIT = 1000

VIEW_ORDERS = "view_orders"
UPDATE_ORDERS = "update_orders"
VIEW_CUSTOMERS = "view_customers"
MANAGE_REFUNDS = "manage_refunds"
VIEW_ANALYTICS = "view_analytics"
SYSTEM_ADMIN = "system_admin"

DEFAULT_ADMIN_PERMISSIONS = [
    VIEW_ORDERS,
    UPDATE_ORDERS,
    VIEW_CUSTOMERS,
    MANAGE_REFUNDS,
    VIEW_ANALYTICS,
    SYSTEM_ADMIN,
]


class AuthError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


@dataclass
class AdminUser:
    id: str
    email: str
    name: str
    role: str
    permissions: List[str] = field(default_factory=list)
    login_attempts: int = 0
    is_locked: bool = False
    two_factor_enabled: bool = False
    login_time: Optional[datetime] = None
    last_login_time: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "permissions": list(self.permissions),
            "twoFactorEnabled": self.two_factor_enabled,
        }


@dataclass
class AdminSession:
    id: str
    admin_id: str
    email: str
    token: str
    ip_address: str
    user_agent: str
    created_at: datetime
    expires_at: datetime
    last_activity: datetime
    is_active: bool = True

    def to_dict(self, current_id: Optional[str] = None) -> dict:
        return {
            "id": self.id,
            "adminId": self.admin_id,
            "adminEmail": self.email,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "createdAt": isoformat(self.created_at),
            "expiresAt": isoformat(self.expires_at),
            "lastActivity": isoformat(self.last_activity),
            "isActive": self.is_active,
            "isCurrentSession": self.id == current_id,
        }


class AdminSecurity:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.admins: List[AdminUser] = [
            AdminUser(
                id="admin-1",
                email=settings.admin_email,
                name="ECE Admin",
                role="super_admin",
                permissions=list(DEFAULT_ADMIN_PERMISSIONS),
            )
        ]
        self.sessions: List[AdminSession] = []
        self.audit_log: List[dict] = []

    # -------------------- login / logout --------------------

    def authenticate(self, email: str, password: str, ip_address: str, user_agent: str,
                     remember_me: bool = False) -> Tuple[AdminUser, AdminSession]:
        admin = self.find_admin(email=email)
        if admin is None:
            self.log_action(email, "login_failed", "user_not_found", ip_address, user_agent, severity="high")
            logger.warning(f"Admin login failed for unknown email {email}")
            raise AuthError(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

        if admin.is_locked:
            self.log_action(admin.email, "login_blocked", "account_locked", ip_address, user_agent, severity="high")
            raise AuthError(status.HTTP_423_LOCKED, "Account is locked. Please contact system administrator.")

        # Plaintext comparison against the configured password
        if password != self.settings.admin_password:
            admin.login_attempts += 1
            if admin.login_attempts >= MAX_LOGIN_ATTEMPTS:
                admin.is_locked = True
                self.log_action(admin.email, "account_locked", f"{admin.login_attempts} failed attempts",
                                ip_address, user_agent, severity="critical")
                logger.warning(f"Admin account {admin.email} locked after {admin.login_attempts} failed attempts")
            self.log_action(admin.email, "login_failed", f"invalid_password attempts={admin.login_attempts}",
                            ip_address, user_agent, severity="high")
            raise AuthError(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

        admin.login_attempts = 0
        admin.last_login_time = admin.login_time
        admin.login_time = utcnow()

        session = self.create_session(admin, ip_address, user_agent, remember_me)
        self.log_action(admin.email, "login_success", f"session={session.id}", ip_address, user_agent, severity="low")
        logger.info(f"Admin {admin.email} logged in from {ip_address}")
        return admin, session

    def create_session(self, admin: AdminUser, ip_address: str, user_agent: str,
                       remember_me: bool = False) -> AdminSession:
        now = utcnow()
        expires_at = now + (REMEMBER_ME_DURATION if remember_me else SESSION_DURATION)
        session_id = f"session-{uuid.uuid4().hex}"
        token = jwt.encode(
            {
                "sid": session_id,
                "sub": admin.email,
                "role": admin.role,
                "exp": expires_at.replace(tzinfo=timezone.utc),
            },
            self.settings.secret_key,
            algorithm=ALGORITHM,
        )
        session = AdminSession(
            id=session_id,
            admin_id=admin.id,
            email=admin.email,
            token=token,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=now,
            expires_at=expires_at,
            last_activity=now,
        )
        self.sessions.append(session)
        return session

    def validate(self, token: str) -> Optional[AdminSession]:
        try:
            claims = jwt.decode(token, self.settings.secret_key, algorithms=[ALGORITHM])
        except jwt.PyJWTError:
            return None

        session = self.find_session(claims.get("sid"))
        if session is None or not session.is_active or session.token != token:
            return None

        now = utcnow()
        if now > session.expires_at or now - session.last_activity > INACTIVITY_TIMEOUT:
            session.is_active = False
            return None

        session.last_activity = now
        return session

    def logout(self, token: str, ip_address: str, user_agent: str) -> bool:
        session = next((s for s in self.sessions if s.token == token), None)
        if session is None:
            return False
        session.is_active = False
        self.log_action(session.email, "logout", f"session={session.id}", ip_address, user_agent, severity="low")
        return True

    # -------------------- session management --------------------

    def find_admin(self, email: Optional[str] = None, admin_id: Optional[str] = None) -> Optional[AdminUser]:
        for admin in self.admins:
            if (email is not None and admin.email == email) or (admin_id is not None and admin.id == admin_id):
                return admin
        return None

    def find_session(self, session_id: Optional[str]) -> Optional[AdminSession]:
        return next((s for s in self.sessions if s.id == session_id), None)

    def active_sessions(self) -> List[AdminSession]:
        return [s for s in self.sessions if s.is_active]

    def revoke(self, session_id: str) -> bool:
        session = self.find_session(session_id)
        if session is None or not session.is_active:
            return False
        session.is_active = False
        return True

    def revoke_all(self, keep_session_id: Optional[str] = None) -> int:
        revoked = 0
        for session in self.active_sessions():
            if session.id != keep_session_id:
                session.is_active = False
                revoked += 1
        return revoked

    def extend(self, session_id: str) -> bool:
        session = self.find_session(session_id)
        if session is None or not session.is_active:
            return False
        session.last_activity = utcnow()
        return True

    # -------------------- permissions / audit --------------------

    @staticmethod
    def has_permission(admin: AdminUser, permission: str) -> bool:
        if admin.role == "super_admin":
            return True
        return permission in admin.permissions or SYSTEM_ADMIN in admin.permissions

    def log_action(self, admin_email: str, action: str, details: str, ip_address: str, user_agent: str,
                   severity: str = "medium") -> dict:
        entry = {
            "id": f"audit_{uuid.uuid4().hex[:12]}",
            "adminEmail": admin_email,
            "action": action,
            "details": details,
            "ipAddress": ip_address,
            "userAgent": user_agent,
            "severity": severity,
            "timestamp": isoformat(utcnow()),
        }
        self.audit_log.insert(0, entry)
        del self.audit_log[AUDIT_LOG_LIMIT:]
        return entry

    def audit_entries(self, limit: int = 100, offset: int = 0) -> List[dict]:
        return self.audit_log[offset:offset + limit]


# --- FastAPI dependencies ---

@dataclass
class AdminContext:
    admin: AdminUser
    session: AdminSession
    ip_address: str
    user_agent: str

    def log(self, security: AdminSecurity, action: str, details: str, severity: str = "medium") -> dict:
        return security.log_action(self.admin.email, action, details, self.ip_address, self.user_agent, severity)


def get_security(request: Request) -> AdminSecurity:
    return request.app.state.security


def client_info(request: Request) -> Tuple[str, str]:
    headers = request.headers
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = (
            headers.get("x-real-ip")
            or headers.get("cf-connecting-ip")
            or (request.client.host if request.client else None)
            or "unknown"
        )
    return ip_address, headers.get("user-agent", "unknown")


def session_token(request: Request) -> Optional[str]:
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    auth = request.headers.get("authorization", "")
    if auth.startswith("Bearer "):
        return auth[len("Bearer "):].strip() or None
    return None


def require_admin(permission: Optional[str] = None):
    """Build a dependency that resolves the calling admin or raises 401/403."""

    def dependency(request: Request) -> AdminContext:
        security = get_security(request)
        token = session_token(request)
        if not token:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

        session = security.validate(token)
        if session is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session invalid")

        admin = security.find_admin(admin_id=session.admin_id)
        if admin is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session invalid")

        if permission and not security.has_permission(admin, permission):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

        ip_address, user_agent = client_info(request)
        return AdminContext(admin=admin, session=session, ip_address=ip_address, user_agent=user_agent)

    return dependency
