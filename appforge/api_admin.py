import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .dependencies import get_dashboard, get_lifecycle, get_repository
from .lifecycle import COMPLETED, ORDER_STATUSES, REVENUE_STATUSES, OrderLifecycle
from .models import Order, isoformat, utcnow
from .orders import OrderRepository
from .security import (
    MANAGE_REFUNDS,
    SYSTEM_ADMIN,
    UPDATE_ORDERS,
    VIEW_ANALYTICS,
    VIEW_CUSTOMERS,
    VIEW_ORDERS,
    AdminContext,
    AdminSecurity,
    get_security,
    require_admin,
)
from .state import DashboardState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


# --- Pydantic Schemas ---

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderUpdate(CamelModel):
    order_id: str
    status: Optional[Literal[ORDER_STATUSES]] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    delivery_url: Optional[AnyHttpUrl] = None
    admin_notes: Optional[str] = None


class CustomerAction(CamelModel):
    action: Literal[
        "update_customer_status",
        "add_customer_note",
        "update_customer_tier",
        "add_customer_tag",
        "remove_customer_tag",
        "send_communication",
        "export_customer_data",
    ]
    customer_id: Optional[str] = None
    params: Optional[Dict[str, Any]] = None


class CustomerNote(CamelModel):
    note: str = Field(min_length=1, max_length=1000)
    type: Literal["general", "support", "billing", "technical", "complaint"]
    priority: Literal["low", "medium", "high"]
    is_internal: bool = False
    follow_up_date: Optional[str] = None


class AppAction(CamelModel):
    action: Literal[
        "update_app_status",
        "restart_app",
        "deploy_app",
        "create_backup",
        "run_security_scan",
        "delete_app",
        "scale_app",
    ]
    app_id: Optional[str] = None
    params: Optional[Dict[str, Any]] = None


class RefundRequest(CamelModel):
    order_id: str
    amount: float = Field(gt=0)
    reason: str = Field(min_length=10, max_length=500)
    admin_notes: Optional[str] = None


class FinancialAction(CamelModel):
    action: Literal["process_refund", "create_refund", "export_analytics", "generate_report"]
    refund_id: Optional[str] = None
    refund_action: Optional[str] = None
    admin_notes: Optional[str] = None
    order_id: Optional[str] = None
    amount: Optional[float] = None
    reason: Optional[str] = None
    format: Optional[str] = None
    report_type: Optional[str] = None
    period: Optional[str] = None


# --- Order statistics ---

def _sort_key(value):
    # Orders mix None, numbers and strings; keep each kind in its own band
    if value is None:
        return (0, 0)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value.lower())
    return (3, str(value))


def _month_start(now: datetime, months_back: int = 0) -> datetime:
    """First day of the month `months_back` before `now` (negative looks ahead)."""
    index = now.year * 12 + now.month - 1 - months_back
    return datetime(index // 12, index % 12 + 1, 1)


def order_stats(orders: List[Order], now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()
    month_start = _month_start(now)
    week_ago = now - timedelta(days=7)

    stats: Dict[str, Any] = {"total": len(orders)}
    stats.update({s: 0 for s in ORDER_STATUSES})
    stats.update({"totalRevenue": 0, "avgOrderValue": 0, "completionRate": 0,
                  "monthlyRevenue": 0, "weeklyOrders": 0})

    for order in orders:
        stats[order.status] = stats.get(order.status, 0) + 1
        if order.status in REVENUE_STATUSES:
            stats["totalRevenue"] += order.price
            if order.created_at >= month_start:
                stats["monthlyRevenue"] += order.price
        if order.created_at >= week_ago:
            stats["weeklyOrders"] += 1

    if orders:
        paid_count = sum(stats[s] for s in REVENUE_STATUSES)
        stats["avgOrderValue"] = stats["totalRevenue"] / max(paid_count, 1)
        stats["completionRate"] = stats[COMPLETED] / len(orders) * 100
    return stats


def calculate_analytics(orders: List[Order], now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()
    today = datetime(now.year, now.month, now.day)
    week_ago = now - timedelta(days=7)
    month_start = _month_start(now)
    previous_month_start = _month_start(now, 1)

    paid = [o for o in orders if o.status in REVENUE_STATUSES]
    daily = [o for o in paid if o.created_at >= today]
    weekly = [o for o in paid if o.created_at >= week_ago]
    monthly = [o for o in paid if o.created_at >= month_start]
    previous = [o for o in paid if previous_month_start <= o.created_at < month_start]

    def revenue(items):
        return sum(o.price for o in items)

    def growth(current, before):
        return (current - before) / before * 100 if before > 0 else 0

    # Customers are keyed by email
    by_customer = defaultdict(list)
    for order in orders:
        by_customer[order.customer_email].append(order)
    new_customers = returning_customers = 0
    for customer_orders in by_customer.values():
        this_month = [o for o in customer_orders if o.created_at >= month_start]
        if this_month:
            if len(this_month) == len(customer_orders):
                new_customers += 1
            else:
                returning_customers += 1

    daily_timeline = []
    for i in range(29, -1, -1):
        day_start = today - timedelta(days=i)
        day_end = day_start + timedelta(days=1)
        day_orders = [o for o in paid if day_start <= o.created_at < day_end]
        daily_timeline.append({"date": day_start.strftime("%Y-%m-%d"), "orders": len(day_orders),
                               "revenue": revenue(day_orders)})

    monthly_timeline = []
    for i in range(11, -1, -1):
        start = _month_start(now, i)
        end = _month_start(now, i - 1)
        month_orders = [o for o in paid if start <= o.created_at < end]
        monthly_timeline.append({"month": start.strftime("%Y-%m"), "orders": len(month_orders),
                                 "revenue": revenue(month_orders)})

    frameworks: Dict[str, Dict[str, float]] = {}
    for order in paid:
        entry = frameworks.setdefault(order.framework or "Unknown", {"orders": 0, "revenue": 0})
        entry["orders"] += 1
        entry["revenue"] += order.price
    top_products = sorted(
        ({"framework": name, **entry} for name, entry in frameworks.items()),
        key=lambda p: p["revenue"],
        reverse=True,
    )[:10]

    status_breakdown: Dict[str, int] = {}
    for order in orders:
        status_breakdown[order.status] = status_breakdown.get(order.status, 0) + 1

    total_revenue = revenue(paid)
    customer_count = len(by_customer)
    return {
        "revenue": {
            "total": total_revenue,
            "monthly": revenue(monthly),
            "weekly": revenue(weekly),
            "daily": revenue(daily),
            "previousMonth": revenue(previous),
            "monthlyGrowth": growth(revenue(monthly), revenue(previous)),
        },
        "orders": {
            "total": len(orders),
            "monthly": len(monthly),
            "weekly": len(weekly),
            "daily": len(daily),
            "previousMonth": len(previous),
            "monthlyGrowth": growth(len(monthly), len(previous)),
            "avgOrderValue": total_revenue / len(paid) if paid else 0,
            "completionRate": (status_breakdown.get(COMPLETED, 0) / len(orders) * 100) if orders else 0,
        },
        "customers": {
            "total": customer_count,
            "new": new_customers,
            "returning": returning_customers,
            "retention": returning_customers / customer_count * 100 if customer_count else 0,
        },
        "timeline": {"daily": daily_timeline, "monthly": monthly_timeline},
        "topProducts": top_products,
        "statusBreakdown": status_breakdown,
    }


def revenue_forecast(financial: Dict[str, Any], months: int = 3, now: Optional[datetime] = None) -> List[Dict]:
    now = now or utcnow()
    base = financial["revenue"]["thisMonth"]
    rate = financial["revenue"]["growth"]["monthly"] / 100

    forecast = []
    for i in range(1, months + 1):
        forecast.append({
            "month": _month_start(now, -i).strftime("%Y-%m"),
            "forecast": round(base * (1 + rate) ** i),
            "confidence": max(50, 95 - i * 10),
        })
    return forecast


def _paginate(items: List[Dict], page: int, limit: int) -> List[Dict]:
    start = (max(page, 1) - 1) * limit
    return items[start:start + limit]


# --- Orders ---

@router.get("/orders")
def list_orders(status: Optional[str] = None, search: Optional[str] = None,
                sortBy: str = "createdAt", sortOrder: str = "desc",
                limit: int = Query(50, ge=1), offset: int = Query(0, ge=0),
                ctx: AdminContext = Depends(require_admin(VIEW_ORDERS)),
                security: AdminSecurity = Depends(get_security),
                repository: OrderRepository = Depends(get_repository)):
    limit = min(limit, 100)
    orders = repository.list_all()
    rows = [o.to_dict() for o in orders]

    if status and status != "all":
        rows = [r for r in rows if r["status"] == status]
    if search:
        needle = search.lower()
        rows = [
            r for r in rows
            if needle in r["customerName"].lower()
            or needle in r["customerEmail"].lower()
            or needle in r["appName"].lower()
            or needle in r["id"].lower()
        ]

    rows.sort(key=lambda r: _sort_key(r.get(sortBy)), reverse=sortOrder != "asc")
    page = rows[offset:offset + limit]

    ctx.log(security, "VIEW_ORDERS", f"Viewed orders ({len(rows)} results)", severity="low")
    return {
        "orders": page,
        "stats": order_stats(orders),
        "pagination": {
            "total": len(rows),
            "limit": limit,
            "offset": offset,
            "hasMore": len(rows) > offset + limit,
        },
    }


@router.put("/orders")
def update_order(update: OrderUpdate,
                 ctx: AdminContext = Depends(require_admin(UPDATE_ORDERS)),
                 security: AdminSecurity = Depends(get_security),
                 lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    order, changes = lifecycle.admin_update(
        update.order_id,
        ctx.admin.email,
        status=update.status,
        progress=update.progress,
        delivery_url=str(update.delivery_url) if update.delivery_url else None,
        note=update.admin_notes,
    )
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    if changes:
        ctx.log(security, "UPDATE_ORDER", f"Updated order {order.id}: {', '.join(changes)}")
    return {"success": True, "message": "Order updated successfully", "order": order.to_dict()}


@router.delete("/orders")
def cancel_order(orderId: Optional[str] = None,
                 ctx: AdminContext = Depends(require_admin(UPDATE_ORDERS)),
                 security: AdminSecurity = Depends(get_security),
                 lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    if not orderId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order ID is required")

    # Cancelled rather than deleted so the record stays auditable
    order = lifecycle.cancel(orderId, ctx.admin.email)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    ctx.log(security, "CANCEL_ORDER", f"Cancelled order {orderId}")
    return {"success": True, "message": "Order cancelled successfully", "order": order.to_dict()}


# --- Analytics ---

@router.get("/analytics")
def analytics(ctx: AdminContext = Depends(require_admin(VIEW_ANALYTICS)),
              security: AdminSecurity = Depends(get_security),
              repository: OrderRepository = Depends(get_repository)):
    data = calculate_analytics(repository.list_all())
    audit_logs = security.audit_entries(20, 0)
    ctx.log(security, "VIEW_ANALYTICS", "Viewed analytics dashboard", severity="low")
    return {"analytics": data, "auditLogs": audit_logs, "generatedAt": isoformat(utcnow())}


# --- Customers ---

def customer_stats(customers: List[Dict]) -> Dict[str, Any]:
    total = len(customers)
    scored = [c["satisfactionScore"] for c in customers if c.get("satisfactionScore")]
    avg_order_value = sum(c["avgOrderValue"] for c in customers) / total if total else 0
    return {
        "total": total,
        "active": sum(1 for c in customers if c["status"] == "active"),
        "vip": sum(1 for c in customers if c["status"] == "vip"),
        "inactive": sum(1 for c in customers if c["status"] == "inactive"),
        "suspended": sum(1 for c in customers if c["status"] == "suspended"),
        "totalRevenue": sum(c["totalSpent"] for c in customers),
        "avgOrderValue": round(avg_order_value, 2),
        "avgSatisfaction": round(sum(scored) / len(scored), 1) if scored else 0,
        "tiers": {tier: sum(1 for c in customers if c["tier"] == tier) for tier in ("basic", "premium", "enterprise")},
    }


@router.get("/customers")
def list_customers(customerId: Optional[str] = None, status: Optional[str] = None, tier: Optional[str] = None,
                   search: Optional[str] = None, minSpent: Optional[float] = None, tag: Optional[str] = None,
                   sortBy: str = "updatedAt", sortOrder: str = "desc",
                   page: int = Query(1, ge=1), limit: int = Query(20, ge=1),
                   ctx: AdminContext = Depends(require_admin(VIEW_CUSTOMERS)),
                   dashboard: DashboardState = Depends(get_dashboard)):
    if customerId:
        customer = dashboard.find(dashboard.customers, customerId)
        if customer is None:
            raise HTTPException(status_code=404, detail="Customer not found")
        return {"success": True, "customer": customer}

    customers = list(dashboard.customers)
    if status:
        customers = [c for c in customers if c["status"] == status]
    if tier:
        customers = [c for c in customers if c["tier"] == tier]
    if search:
        needle = search.lower()
        customers = [
            c for c in customers
            if needle in c["name"].lower() or needle in c["email"].lower()
            or needle in (c.get("company") or "").lower()
        ]
    if minSpent:
        customers = [c for c in customers if c["totalSpent"] >= minSpent]
    if tag:
        customers = [c for c in customers if tag in c["tags"]]
    customers.sort(key=lambda c: _sort_key(c.get(sortBy)), reverse=sortOrder == "desc")

    return {
        "success": True,
        "customers": _paginate(customers, page, limit),
        "total": len(customers),
        "stats": customer_stats(dashboard.customers),
        "page": page,
        "limit": limit,
    }


@router.post("/customers")
def customer_action(body: CustomerAction,
                    ctx: AdminContext = Depends(require_admin(VIEW_CUSTOMERS)),
                    security: AdminSecurity = Depends(get_security),
                    dashboard: DashboardState = Depends(get_dashboard)):
    params = body.params or {}
    customer = dashboard.find(dashboard.customers, body.customer_id) if body.customer_id else None

    def require(*keys, message):
        if not body.customer_id or any(not params.get(k) for k in keys):
            raise HTTPException(status_code=400, detail=message)

    def touch():
        customer["updatedAt"] = isoformat(utcnow())

    action = body.action
    if action == "update_customer_status":
        require("status", message="Customer ID and status required")
        if customer:
            customer["status"] = params["status"]
            touch()
        result = {"success": customer is not None}

    elif action == "add_customer_note":
        if not body.customer_id or not params:
            raise HTTPException(status_code=400, detail="Customer ID and note data required")
        note_data = CustomerNote.model_validate(params)
        note = None
        if customer:
            note = {
                "id": f"note-{int(utcnow().timestamp() * 1000)}",
                "adminId": ctx.admin.id,
                "adminName": ctx.admin.name,
                **note_data.model_dump(by_alias=True),
                "timestamp": isoformat(utcnow()),
            }
            customer["notes"].append(note)
            touch()
        result = {"success": note is not None, "note": note}

    elif action == "update_customer_tier":
        require("tier", message="Customer ID and tier required")
        if customer:
            customer["tier"] = params["tier"]
            touch()
        result = {"success": customer is not None}

    elif action == "add_customer_tag":
        require("tag", message="Customer ID and tag required")
        added = customer is not None and params["tag"] not in customer["tags"]
        if added:
            customer["tags"].append(params["tag"])
            touch()
        result = {"success": added}

    elif action == "remove_customer_tag":
        require("tag", message="Customer ID and tag required")
        removed = customer is not None and params["tag"] in customer["tags"]
        if removed:
            customer["tags"].remove(params["tag"])
            touch()
        result = {"success": removed}

    elif action == "send_communication":
        require("message", message="Customer ID and message required")
        logger.info(f"Sending communication to customer {body.customer_id}: {params['message']}")
        result = {"success": True, "message": "Communication sent"}

    else:  # export_customer_data
        if not body.customer_id:
            raise HTTPException(status_code=400, detail="Customer ID required")
        if customer is None:
            raise HTTPException(status_code=404, detail="Customer not found")
        result = {"success": True, "exportUrl": f"/api/admin/customers/export/{body.customer_id}",
                  "customer": customer}

    ctx.log(security, action.upper(), f"Customer {body.customer_id}: {action}")
    return result


# --- Managed apps ---

@router.get("/apps")
def list_apps(appId: Optional[str] = None, status: Optional[str] = None, framework: Optional[str] = None,
              complexity: Optional[str] = None, search: Optional[str] = None,
              page: int = Query(1, ge=1), limit: int = Query(20, ge=1),
              ctx: AdminContext = Depends(require_admin(SYSTEM_ADMIN)),
              dashboard: DashboardState = Depends(get_dashboard)):
    if appId:
        app = dashboard.find(dashboard.apps, appId)
        if app is None:
            raise HTTPException(status_code=404, detail="App not found")
        return {"success": True, "app": app}

    apps = list(dashboard.apps)
    if status:
        apps = [a for a in apps if a["status"] == status]
    if framework:
        apps = [a for a in apps if a["framework"] == framework]
    if complexity:
        apps = [a for a in apps if a["complexity"] == complexity]
    if search:
        needle = search.lower()
        apps = [a for a in apps if needle in a["name"].lower() or needle in a["description"].lower()]

    return {"success": True, "apps": _paginate(apps, page, limit), "total": len(apps), "page": page, "limit": limit}


@router.post("/apps")
def app_action(body: AppAction,
               ctx: AdminContext = Depends(require_admin(SYSTEM_ADMIN)),
               security: AdminSecurity = Depends(get_security),
               dashboard: DashboardState = Depends(get_dashboard)):
    params = body.params or {}
    if not body.app_id:
        raise HTTPException(status_code=400, detail="App ID required")
    app = dashboard.find(dashboard.apps, body.app_id)
    now = isoformat(utcnow())

    action = body.action
    if action == "update_app_status":
        if not params.get("status"):
            raise HTTPException(status_code=400, detail="App ID and status required")
        if app:
            app.update(status=params["status"], updatedAt=now)
        result = {"success": app is not None}

    elif action == "restart_app":
        restarted = app is not None and app.get("deployment") is not None
        if restarted:
            logger.info(f"Restarting app: {app['name']} ({app['id']})")
            app["deployment"]["lastDeployment"] = now
            app["updatedAt"] = now
        result = {"success": restarted}

    elif action == "deploy_app":
        if not params.get("environment"):
            raise HTTPException(status_code=400, detail="App ID and environment required")
        if app:
            deployment = app.get("deployment") or {
                "url": f"https://{app['name'].lower().replace(' ', '-')}.vercel.app",
            }
            deployment.update(status="active", lastDeployment=now, environment=params["environment"])
            app.update(deployment=deployment, status="deployed", updatedAt=now)
        result = {"success": app is not None}

    elif action == "create_backup":
        backup = None
        if app:
            backup_id = f"backup-{int(utcnow().timestamp() * 1000)}"
            backup = {
                "id": backup_id,
                "type": "manual",
                "status": "completed",
                "downloadUrl": f"/api/admin/apps/backup/{backup_id}",
                "expiresAt": isoformat(utcnow() + timedelta(days=30)),
                "createdAt": now,
            }
            app["backups"].append(backup)
        result = {"success": backup is not None, "backup": backup}

    elif action == "run_security_scan":
        vulnerabilities = []
        if app:
            vulnerabilities = [{
                "id": f"vuln-{int(utcnow().timestamp() * 1000)}",
                "severity": "medium",
                "type": "dependency",
                "description": "Package with known security vulnerability",
                "affected": "example-package@1.0.0",
                "solution": "Update to example-package@1.0.1",
                "discoveredAt": now,
            }]
            app["security"] = {**app.get("security", {}), "lastSecurityScan": now,
                               "vulnerabilities": vulnerabilities}
            app["updatedAt"] = now
        result = {"success": True, "vulnerabilities": vulnerabilities}

    elif action == "delete_app":
        if app:
            dashboard.apps.remove(app)
        result = {"success": app is not None}

    else:  # scale_app
        instances = params.get("instances")
        if not instances:
            raise HTTPException(status_code=400, detail="App ID and instances count required")
        if app:
            app.update(instances=instances, updatedAt=now)
        logger.info(f"Scaling app {body.app_id} to {instances} instances")
        result = {"success": True, "message": f"App scaled to {instances} instances"}

    ctx.log(security, action.upper(), f"App {body.app_id}: {action}")
    return result


# --- Financial ---

@router.get("/financial")
def financial(action: str = "analytics", status: Optional[str] = None, includeForecasts: bool = False,
              startDate: Optional[str] = None, endDate: Optional[str] = None,
              page: int = Query(1, ge=1), limit: int = Query(20, ge=1), months: int = Query(3, ge=1, le=24),
              ctx: AdminContext = Depends(require_admin(MANAGE_REFUNDS)),
              dashboard: DashboardState = Depends(get_dashboard)):
    if action == "analytics":
        return {
            "success": True,
            "analytics": dashboard.financial,
            "forecast": revenue_forecast(dashboard.financial) if includeForecasts else None,
        }

    if action == "refunds":
        refunds = list(dashboard.refunds)
        if status:
            refunds = [r for r in refunds if r["status"] == status]
        # ISO-8601 strings compare chronologically
        if startDate:
            refunds = [r for r in refunds if r["requestedAt"] >= startDate]
        if endDate:
            refunds = [r for r in refunds if r["requestedAt"] <= endDate]
        return {"success": True, "refunds": _paginate(refunds, page, limit), "total": len(refunds),
                "page": page, "limit": limit}

    if action == "forecast":
        return {"success": True, "forecast": revenue_forecast(dashboard.financial, months)}

    raise HTTPException(status_code=400, detail="Invalid action")


@router.post("/financial")
def financial_action(body: FinancialAction,
                     ctx: AdminContext = Depends(require_admin(MANAGE_REFUNDS)),
                     security: AdminSecurity = Depends(get_security),
                     dashboard: DashboardState = Depends(get_dashboard),
                     repository: OrderRepository = Depends(get_repository),
                     lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    if body.action == "process_refund":
        refund_id, decision = body.refund_id, body.refund_action
        if not refund_id or not decision:
            raise HTTPException(status_code=400, detail="Refund ID and action required")
        refund = dashboard.find(dashboard.refunds, refund_id)
        if refund is None:
            return {"success": False}

        order_refunded = False
        if decision == "approve":
            refund["status"] = "approved"
            refund["stripeRefundId"] = f"re_{int(utcnow().timestamp() * 1000)}"
            order_refunded = lifecycle.refund(refund["orderId"])
        else:
            refund["status"] = "denied"
        refund["processedBy"] = ctx.admin.id
        refund["processedAt"] = isoformat(utcnow())
        if body.admin_notes:
            refund["adminNotes"] = body.admin_notes

        ctx.log(security, "PROCESS_REFUND", f"Refund {refund_id} {refund['status']}", severity="high")
        return {"success": True, "refund": refund, "orderRefunded": order_refunded}

    if body.action == "create_refund":
        data = RefundRequest.model_validate(body.model_dump(by_alias=True, exclude_none=True))
        order = repository.get(data.order_id)
        refund = {
            "id": f"refund-{len(dashboard.refunds) + 1}",
            "orderId": data.order_id,
            "customerId": f"customer_{order.id}" if order else "customer-unknown",
            "customerEmail": order.customer_email if order else "customer@example.com",
            "amount": data.amount,
            "reason": data.reason,
            "status": "pending",
            "adminNotes": data.admin_notes,
            "requestedAt": isoformat(utcnow()),
        }
        dashboard.refunds.append(refund)
        ctx.log(security, "CREATE_REFUND", f"Refund {refund['id']} requested for {data.order_id}")
        return {"success": True, "refund": refund}

    if body.action == "export_analytics":
        export_format = body.format or "json"
        return {"success": True, "exportUrl": f"/api/admin/analytics/export?format={export_format}",
                "data": dashboard.financial}

    report_type = body.report_type or "monthly"
    period = body.period or utcnow().strftime("%Y-%m")
    report_id = f"report-{int(utcnow().timestamp() * 1000)}"
    logger.info(f"Generating {report_type} report for {period}")
    return {"success": True, "reportId": report_id,
            "downloadUrl": f"/api/admin/analytics/reports/{report_id}", "estimatedTime": "2-3 minutes"}
