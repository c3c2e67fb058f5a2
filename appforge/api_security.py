from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .dependencies import get_dashboard
from .models import isoformat, utcnow
from .security import SYSTEM_ADMIN, AdminContext, AdminSecurity, get_security, require_admin
from .state import DashboardState

router = APIRouter(prefix="/api/admin/security", tags=["security"])

require_system_admin = require_admin(SYSTEM_ADMIN)


# --- Pydantic Schemas ---

class PermissionParams(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    level: Optional[int] = None
    resource: Optional[str] = None
    actions: List[str] = []


class RoleParams(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    permissions: List[str] = []
    level: Optional[int] = None


class PermissionAction(BaseModel):
    action: Literal["create", "update", "delete"]
    params: PermissionParams


class RoleAction(BaseModel):
    action: Literal["create", "update", "delete"]
    params: RoleParams


class SessionAction(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: Literal["revoke", "revoke_all", "extend", "update_activity"]
    session_id: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)


# --- Permissions ---

@router.get("/permissions")
def list_permissions(category: Optional[str] = None,
                     ctx: AdminContext = Depends(require_system_admin),
                     dashboard: DashboardState = Depends(get_dashboard)):
    permissions = dashboard.permissions
    if category:
        permissions = [p for p in permissions if p["category"] == category]
    categories = list(dict.fromkeys(p["category"] for p in dashboard.permissions))
    return {"success": True, "permissions": permissions, "categories": categories}


@router.post("/permissions")
def permission_action(body: PermissionAction,
                      ctx: AdminContext = Depends(require_system_admin),
                      security: AdminSecurity = Depends(get_security),
                      dashboard: DashboardState = Depends(get_dashboard)):
    params = body.params

    if body.action == "create":
        if not params.id and not (params.resource and params.actions):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Permission id or resource required")
        permission = {
            "id": params.id or f"{params.resource}.{params.actions[0]}",
            "name": params.name,
            "description": params.description,
            "category": params.category,
            "level": params.level,
            "resource": params.resource,
            "actions": params.actions,
        }
        if dashboard.find(dashboard.permissions, permission["id"]):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Permission already exists")
        dashboard.permissions.append(permission)
        ctx.log(security, "CREATE_PERMISSION", f"Created permission {permission['id']}", severity="high")
        return {"success": True, "permission": permission, "message": "Permission created successfully"}

    permission = dashboard.find(dashboard.permissions, params.id) if params.id else None
    if permission is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Permission not found")

    if body.action == "update":
        permission.update(params.model_dump(exclude={"id"}))
        ctx.log(security, "UPDATE_PERMISSION", f"Updated permission {permission['id']}", severity="high")
        return {"success": True, "permission": permission, "message": "Permission updated successfully"}

    dashboard.permissions.remove(permission)
    ctx.log(security, "DELETE_PERMISSION", f"Deleted permission {permission['id']}", severity="high")
    return {"success": True, "message": "Permission deleted successfully"}


# --- Roles ---

@router.get("/roles")
def list_roles(ctx: AdminContext = Depends(require_system_admin),
               dashboard: DashboardState = Depends(get_dashboard)):
    return {"success": True, "roles": dashboard.roles}


@router.post("/roles")
def role_action(body: RoleAction,
                ctx: AdminContext = Depends(require_system_admin),
                security: AdminSecurity = Depends(get_security),
                dashboard: DashboardState = Depends(get_dashboard)):
    params = body.params
    now = isoformat(utcnow())

    if body.action == "create":
        role = {
            "id": str(int(utcnow().timestamp() * 1000)),
            "name": params.name,
            "description": params.description,
            "permissions": params.permissions,
            "level": params.level,
            "adminCount": 0,
            "createdAt": now,
            "updatedAt": now,
        }
        dashboard.roles.append(role)
        ctx.log(security, "CREATE_ROLE", f"Created role {role['name']}", severity="high")
        return {"success": True, "role": role, "message": "Role created successfully"}

    role = dashboard.find(dashboard.roles, params.id) if params.id else None
    if role is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")

    if body.action == "update":
        role.update(params.model_dump(exclude={"id"}), updatedAt=now)
        ctx.log(security, "UPDATE_ROLE", f"Updated role {role['name']}", severity="high")
        return {"success": True, "role": role, "message": "Role updated successfully"}

    if role["name"] == "Super Admin":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete Super Admin role")
    dashboard.roles.remove(role)
    ctx.log(security, "DELETE_ROLE", f"Deleted role {role['name']}", severity="high")
    return {"success": True, "message": "Role deleted successfully"}


# --- Sessions ---

@router.get("/sessions")
def list_sessions(ctx: AdminContext = Depends(require_system_admin),
                  security: AdminSecurity = Depends(get_security)):
    sessions = [s.to_dict(current_id=ctx.session.id) for s in security.active_sessions()]
    return {"success": True, "sessions": sessions, "total": len(sessions)}


@router.post("/sessions")
def session_action(body: SessionAction,
                   ctx: AdminContext = Depends(require_system_admin),
                   security: AdminSecurity = Depends(get_security)):
    if body.action == "revoke_all":
        revoked = security.revoke_all(keep_session_id=ctx.session.id)
        ctx.log(security, "REVOKE_ALL_SESSIONS", f"Revoked {revoked} sessions", severity="critical")
        return {"success": True, "message": f"Revoked {revoked} sessions", "revokedCount": revoked}

    session = security.find_session(body.session_id) if body.session_id else None
    if body.action == "update_activity":
        if session is not None:
            security.extend(session.id)
        return {"success": True, "message": "Activity updated"}

    if session is None or not session.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")

    if body.action == "revoke":
        if session.id == ctx.session.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot revoke your current session")
        security.revoke(session.id)
        ctx.log(security, "REVOKE_SESSION", f"Revoked session {session.id} ({session.email})", severity="high")
        return {"success": True, "message": "Session revoked successfully"}

    security.extend(session.id)
    return {"success": True, "message": "Session extended successfully"}


@router.delete("/sessions")
def emergency_revoke(emergency: Optional[str] = None,
                     ctx: AdminContext = Depends(require_system_admin),
                     security: AdminSecurity = Depends(get_security)):
    if emergency != "true":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request")

    revoked = security.revoke_all(keep_session_id=ctx.session.id)
    ctx.log(security, "EMERGENCY_REVOKE", f"Emergency revocation of {revoked} sessions", severity="critical")
    return {"success": True, "message": "Emergency session revocation completed", "revokedCount": revoked}


# --- Audit ---

@router.get("/audit")
def audit_log(limit: int = Query(100, ge=1), offset: int = Query(0, ge=0),
              ctx: AdminContext = Depends(require_system_admin),
              security: AdminSecurity = Depends(get_security)):
    return {
        "success": True,
        "logs": security.audit_entries(min(limit, 1000), offset),
        "total": len(security.audit_log),
    }
