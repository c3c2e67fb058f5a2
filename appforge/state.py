# In-memory dashboard data (customers, managed apps, finance, roles).
# Only orders are persisted; everything here resets on restart.
import copy
from typing import Dict, List

MOCK_CUSTOMERS = [
    {
        "id": "customer-1",
        "email": "john.doe@example.com",
        "name": "John Doe",
        "phone": "+1-555-0123",
        "company": "Tech Innovations Inc.",
        "status": "active",
        "tier": "premium",
        "totalOrders": 5,
        "totalSpent": 4997,
        "avgOrderValue": 999.4,
        "lifetimeValue": 4997,
        "completedOrders": 4,
        "cancelledOrders": 1,
        "refundedOrders": 0,
        "satisfactionScore": 4.6,
        "firstOrderDate": "2023-06-15T10:00:00Z",
        "lastOrderDate": "2024-01-15T14:30:00Z",
        "lastContactDate": "2024-01-20T09:15:00Z",
        "preferredContactMethod": "email",
        "notes": [
            {
                "id": "note-1",
                "adminId": "admin-1",
                "adminName": "ECE Admin",
                "note": "Customer requested complex e-commerce solution with payment integration",
                "type": "general",
                "priority": "medium",
                "isInternal": False,
                "timestamp": "2024-01-15T14:35:00Z",
            },
            {
                "id": "note-2",
                "adminId": "admin-1",
                "adminName": "ECE Admin",
                "note": "Follow up on deployment status - customer very responsive",
                "type": "support",
                "priority": "low",
                "isInternal": True,
                "timestamp": "2024-01-16T09:20:00Z",
            },
        ],
        "tags": ["enterprise", "high-value", "tech-savvy"],
        "riskScore": 2,
        "createdAt": "2023-06-15T10:00:00Z",
        "updatedAt": "2024-01-20T09:15:00Z",
    },
    {
        "id": "customer-2",
        "email": "sarah.wilson@startup.io",
        "name": "Sarah Wilson",
        "phone": "+1-555-0456",
        "company": "StartupFlow",
        "status": "active",
        "tier": "basic",
        "totalOrders": 2,
        "totalSpent": 1498,
        "avgOrderValue": 749,
        "lifetimeValue": 1498,
        "completedOrders": 2,
        "cancelledOrders": 0,
        "refundedOrders": 0,
        "satisfactionScore": 4.8,
        "firstOrderDate": "2023-11-20T16:00:00Z",
        "lastOrderDate": "2024-01-10T11:20:00Z",
        "preferredContactMethod": "email",
        "notes": [
            {
                "id": "note-3",
                "adminId": "admin-1",
                "adminName": "ECE Admin",
                "note": "Startup founder, very budget-conscious but professional",
                "type": "general",
                "priority": "low",
                "isInternal": True,
                "timestamp": "2023-11-20T16:05:00Z",
            }
        ],
        "tags": ["startup", "budget-conscious", "quick-decision"],
        "riskScore": 1,
        "createdAt": "2023-11-20T16:00:00Z",
        "updatedAt": "2024-01-10T11:20:00Z",
    },
    {
        "id": "customer-3",
        "email": "michael.chen@enterprise.com",
        "name": "Michael Chen",
        "phone": "+1-555-0789",
        "company": "Enterprise Solutions Corp",
        "status": "vip",
        "tier": "enterprise",
        "totalOrders": 12,
        "totalSpent": 18540,
        "avgOrderValue": 1545,
        "lifetimeValue": 25000,  # projected
        "completedOrders": 11,
        "cancelledOrders": 0,
        "refundedOrders": 1,
        "satisfactionScore": 4.9,
        "firstOrderDate": "2023-03-10T09:00:00Z",
        "lastOrderDate": "2024-01-18T13:45:00Z",
        "lastContactDate": "2024-01-19T10:30:00Z",
        "preferredContactMethod": "phone",
        "notes": [
            {
                "id": "note-4",
                "adminId": "admin-1",
                "adminName": "ECE Admin",
                "note": "VIP customer - always pays on time, requests complex solutions",
                "type": "general",
                "priority": "high",
                "isInternal": False,
                "timestamp": "2023-03-10T09:15:00Z",
            }
        ],
        "tags": ["vip", "enterprise", "bulk-orders", "high-value"],
        "riskScore": 0,
        "createdAt": "2023-03-10T09:00:00Z",
        "updatedAt": "2024-01-19T10:30:00Z",
    },
]

MOCK_APPS = [
    {
        "id": "app-1",
        "orderId": "order-123",
        "customerId": "customer-456",
        "name": "E-commerce Platform",
        "description": "Full-featured online store with payment integration",
        "framework": "nextjs",
        "complexity": "complex",
        "status": "deployed",
        "buildProgress": 100,
        "features": ["Payment Integration", "User Profiles", "Admin Panel", "Real-time Chat"],
        "repository": {
            "url": "https://github.com/customer/ecommerce-platform",
            "branch": "main",
            "lastCommit": "abc123def456",
            "isPrivate": True,
        },
        "deployment": {
            "url": "https://ecommerce-platform.vercel.app",
            "status": "active",
            "lastDeployment": "2024-01-01T10:18:00Z",
            "environment": "production",
        },
        "monitoring": {"uptime": 99.8, "responseTime": 245, "errorRate": 0.01},
        "security": {
            "lastSecurityScan": "2024-01-01T09:00:00Z",
            "vulnerabilities": [
                {
                    "id": "vuln-1",
                    "severity": "low",
                    "type": "dependency",
                    "description": "Outdated package with potential security issue",
                    "affected": "lodash@4.17.20",
                    "solution": "Update to lodash@4.17.21",
                    "discoveredAt": "2024-01-01T09:00:00Z",
                }
            ],
            "sslExpiry": "2024-12-01T00:00:00Z",
        },
        "analytics": {"visits": 15420, "users": 8930, "bounceRate": 32.5, "avgSessionDuration": 425},
        "backups": [
            {
                "id": "backup-1",
                "type": "scheduled",
                "size": 1024 * 1024 * 500,
                "status": "completed",
                "downloadUrl": "/api/admin/apps/backup/backup-1",
                "createdAt": "2024-01-01T02:00:00Z",
            }
        ],
        "instances": 2,
        "createdAt": "2024-01-01T10:00:00Z",
        "updatedAt": "2024-01-01T10:18:00Z",
    },
    {
        "id": "app-2",
        "orderId": "order-124",
        "customerId": "customer-457",
        "name": "Task Management App",
        "description": "Collaborative task management with real-time updates",
        "framework": "react",
        "complexity": "medium",
        "status": "building",
        "buildProgress": 75,
        "features": ["Real-time Chat", "File Upload", "User Management"],
        "monitoring": {"uptime": 0, "responseTime": 0, "errorRate": 0},
        "security": {"lastSecurityScan": None, "vulnerabilities": []},
        "analytics": {"visits": 0, "users": 0, "bounceRate": 0, "avgSessionDuration": 0},
        "backups": [],
        "instances": 1,
        "createdAt": "2024-01-02T14:00:00Z",
        "updatedAt": "2024-01-02T14:01:30Z",
    },
]

FINANCIAL_ANALYTICS = {
    "revenue": {
        "total": 245830,
        "thisMonth": 42150,
        "lastMonth": 38920,
        "thisYear": 245830,
        "lastYear": 187240,
        "growth": {"monthly": 8.3, "yearly": 31.3},
        "forecast": {"nextMonth": 45200, "nextQuarter": 135600},
    },
    "orders": {
        "total": 247,
        "completed": 231,
        "refunded": 8,
        "cancelled": 8,
        "completionRate": 93.5,
        "avgOrderValue": 996,
        "avgProcessingTime": 3.2,  # days
    },
    "customers": {
        "total": 156,
        "new": 23,
        "returning": 45,
        "churnRate": 12.5,
        "lifetimeValue": 1576,
        "acquisitionCost": 125,
    },
    "expenses": {
        "total": 58450,
        "hosting": 12500,
        "thirdPartyServices": 15200,
        "development": 18750,
        "marketing": 8500,
        "support": 3500,
    },
    "profitability": {"grossProfit": 187380, "netProfit": 128930, "margin": 52.4},
    "trends": {
        "monthly": [
            {"month": "2023-07", "revenue": 18450, "orders": 19},
            {"month": "2023-08", "revenue": 21230, "orders": 22},
            {"month": "2023-09", "revenue": 19850, "orders": 20},
            {"month": "2023-10", "revenue": 24680, "orders": 25},
            {"month": "2023-11", "revenue": 28340, "orders": 29},
            {"month": "2023-12", "revenue": 31450, "orders": 32},
            {"month": "2024-01", "revenue": 42150, "orders": 43},
        ],
        "frameworks": [
            {"framework": "nextjs", "orders": 98, "revenue": 97020},
            {"framework": "react", "orders": 67, "revenue": 66730},
            {"framework": "vue", "orders": 45, "revenue": 44550},
            {"framework": "nodejs", "orders": 37, "revenue": 37530},
        ],
        "complexity": [
            {"level": "simple", "orders": 89, "revenue": 44450},
            {"level": "medium", "orders": 92, "revenue": 91540},
            {"level": "complex", "orders": 66, "revenue": 109840},
        ],
    },
}

MOCK_REFUNDS = [
    {
        "id": "refund-1",
        "orderId": "order-123",
        "customerId": "customer-456",
        "customerEmail": "john.doe@example.com",
        "amount": 999,
        "reason": "Project requirements changed significantly after order placement",
        "status": "pending",
        "requestedAt": "2024-01-20T10:30:00Z",
    },
    {
        "id": "refund-2",
        "orderId": "order-124",
        "customerId": "customer-457",
        "customerEmail": "sarah.wilson@startup.io",
        "amount": 1499,
        "reason": "Build failed to meet specified requirements",
        "status": "approved",
        "adminNotes": "Valid complaint - build did not include requested features",
        "processedBy": "admin-1",
        "requestedAt": "2024-01-18T14:15:00Z",
        "processedAt": "2024-01-19T09:30:00Z",
        "stripeRefundId": "re_1234567890",
    },
]


def _permission(id, name, description, category, level, resource, actions):
    return {
        "id": id,
        "name": name,
        "description": description,
        "category": category,
        "level": level,
        "resource": resource,
        "actions": actions,
    }


MOCK_PERMISSIONS = [
    _permission("orders.view", "View Orders", "View all orders and their details",
                "Order Management", 1, "orders", ["read"]),
    _permission("orders.manage", "Manage Orders", "Create, update, and manage order status",
                "Order Management", 5, "orders", ["read", "update", "delete"]),
    _permission("orders.refund", "Process Refunds", "Process refunds and handle payment disputes",
                "Order Management", 7, "orders", ["refund"]),
    _permission("customers.view", "View Customers", "View customer profiles and basic information",
                "Customer Management", 1, "customers", ["read"]),
    _permission("customers.edit", "Edit Customers", "Edit customer profiles and manage customer data",
                "Customer Management", 3, "customers", ["read", "update"]),
    _permission("customers.edit_notes", "Edit Customer Notes", "Add and edit notes on customer profiles",
                "Customer Management", 2, "customers", ["update_notes"]),
    _permission("customers.delete", "Delete Customers", "Delete customer accounts and associated data",
                "Customer Management", 8, "customers", ["delete"]),
    _permission("apps.view", "View Applications", "View application builds and deployment status",
                "Application Management", 1, "apps", ["read"]),
    _permission("apps.manage", "Manage Applications", "Control application builds, deployments, and lifecycle",
                "Application Management", 6, "apps", ["read", "update", "deploy", "stop"]),
    _permission("apps.delete", "Delete Applications", "Delete applications and associated resources",
                "Application Management", 8, "apps", ["delete"]),
    _permission("analytics.view", "View Analytics", "Access analytics dashboards and reports",
                "Analytics & Financial", 3, "analytics", ["read"]),
    _permission("financial.manage", "Manage Finances", "Access financial data, process refunds, manage billing",
                "Analytics & Financial", 7, "financial", ["read", "update", "refund"]),
    _permission("system.view", "View System Health", "View system health metrics and status",
                "System Administration", 3, "system", ["read"]),
    _permission("system.manage", "Manage System", "Manage system settings, health checks, and configurations",
                "System Administration", 8, "system", ["read", "update", "restart"]),
    _permission("security.view", "View Security", "View security logs, audit trails, and access records",
                "Security & Access Control", 5, "security", ["read"]),
    _permission("security.manage", "Manage Security", "Manage user roles, permissions, and security settings",
                "Security & Access Control", 9, "security", ["read", "update", "create", "delete"]),
    _permission("sessions.manage", "Manage Sessions", "View and revoke active admin sessions",
                "Security & Access Control", 7, "sessions", ["read", "revoke"]),
    _permission("communications.send", "Send Communications", "Send emails and notifications to customers",
                "Communication", 4, "communications", ["create", "send"]),
    _permission("communications.manage", "Manage Communications", "Manage email templates and communication settings",
                "Communication", 6, "communications", ["read", "update", "create", "delete"]),
]

MOCK_ROLES = [
    {
        "id": "1",
        "name": "Super Admin",
        "description": "Full system access with all permissions",
        "permissions": ["*"],
        "level": 10,
        "adminCount": 1,
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    },
    {
        "id": "2",
        "name": "Admin",
        "description": "Standard admin access for day-to-day operations",
        "permissions": ["orders.manage", "customers.view", "customers.edit", "analytics.view", "apps.manage"],
        "level": 7,
        "adminCount": 3,
        "createdAt": "2024-01-15T00:00:00Z",
        "updatedAt": "2024-01-15T00:00:00Z",
    },
    {
        "id": "3",
        "name": "Support",
        "description": "Customer support with limited access",
        "permissions": ["orders.view", "customers.view", "customers.edit_notes"],
        "level": 3,
        "adminCount": 2,
        "createdAt": "2024-02-01T00:00:00Z",
        "updatedAt": "2024-02-01T00:00:00Z",
    },
    {
        "id": "4",
        "name": "Finance",
        "description": "Financial operations and analytics access",
        "permissions": ["analytics.view", "financial.manage", "orders.refund"],
        "level": 5,
        "adminCount": 1,
        "createdAt": "2024-02-15T00:00:00Z",
        "updatedAt": "2024-02-15T00:00:00Z",
    },
]


class DashboardState:
    """Mutable copies of the mock collections, one per application instance."""

    def __init__(self):
        self.customers: List[Dict] = copy.deepcopy(MOCK_CUSTOMERS)
        self.apps: List[Dict] = copy.deepcopy(MOCK_APPS)
        self.financial: Dict = copy.deepcopy(FINANCIAL_ANALYTICS)
        self.refunds: List[Dict] = copy.deepcopy(MOCK_REFUNDS)
        self.permissions: List[Dict] = copy.deepcopy(MOCK_PERMISSIONS)
        self.roles: List[Dict] = copy.deepcopy(MOCK_ROLES)

    @staticmethod
    def find(items: List[Dict], item_id: str):
        return next((item for item in items if item["id"] == item_id), None)


def fresh_state() -> DashboardState:
    return DashboardState()
