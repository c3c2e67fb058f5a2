import logging
from datetime import timedelta
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from .dependencies import get_lifecycle, get_payments, get_repository
from .lifecycle import BUILDING, COMPLETED, PAYABLE_STATUSES, OrderLifecycle
from .models import Order, isoformat
from .orders import OrderRepository, generate_order_id
from .payments import PaymentGateway
from .pricing import TIMELINE_HOURS, calculate_order_price, prices_match

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


# --- Pydantic Schemas ---

class OrderRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Customer
    customer_name: str = Field(min_length=1)
    customer_email: EmailStr
    company: Optional[str] = None
    phone: Optional[str] = None
    business_type: str = "startup"
    industry: str = "technology"

    # App
    app_name: str = Field(min_length=1)
    app_description: str = Field(min_length=10)
    framework: str = Field(min_length=1)
    complexity: Literal["simple", "medium", "complex"]
    features: List[str]
    database: str = Field(min_length=1)
    authentication: List[str]

    # Project scope
    project_type: Literal["web-app", "mobile-app", "api", "full-stack", "mvp", "enterprise"] = "web-app"
    target_users: Optional[str] = None
    expected_traffic: Literal["low", "medium", "high", "enterprise"] = "medium"
    platform_requirements: List[str] = []

    # Technical
    third_party_integrations: List[str] = []
    design_preferences: Optional[str] = None
    branding_requirements: Optional[str] = None
    performance_requirements: Optional[str] = None
    pwa_requirements: bool = False
    offline_capabilities: bool = False
    realtime_features: List[str] = []
    analytics_tracking: List[str] = []
    seo_requirements: bool = True
    mobile_first: bool = True
    native_app_required: bool = False
    cross_platform_needed: bool = False
    ai_integration: List[str] = []
    blockchain_features: List[str] = []
    web_rtc_features: List[str] = Field(default=[], alias="webRTCFeatures")

    # Process
    testing_requirements: List[str] = []
    documentation_level: Literal["basic", "comprehensive", "enterprise"] = "comprehensive"
    code_quality_level: Literal["standard", "premium", "enterprise"] = "premium"
    client_collaboration: Literal["minimal", "regular", "intensive"] = "regular"
    feedback_mechanism: List[str] = []
    project_management_tool: str = "slack"

    # Hosting / repository
    hosting_preference: Literal["vercel", "netlify", "aws", "heroku", "custom", "client-managed"] = "vercel"
    domain_required: bool = False
    ssl_required: bool = True
    github_username: Optional[str] = None
    repository_name: Optional[str] = None
    repository_access: Literal["public", "private", "organization"] = "private"

    # Delivery
    timeline: Literal["24h", "3d", "1w", "2w"]
    delivery_method: Literal["github", "zip", "deployed"]
    data_region: Literal["us", "eu", "asia", "global"] = "us"
    compliance_requirements: List[str] = []
    special_requirements: Optional[str] = None
    meeting_preference: Literal["none", "kickoff", "weekly", "milestone-based"] = "kickoff"
    revision_rounds: int = Field(default=2, ge=1, le=10)

    # Pricing
    price: float = Field(gt=0)
    currency: str = "usd"


# Form fields that have their own column; everything else lands in Order.details
ORDER_COLUMNS = (
    "customer_name",
    "customer_email",
    "company",
    "phone",
    "app_name",
    "app_description",
    "framework",
    "complexity",
    "features",
    "database",
    "authentication",
    "timeline",
    "delivery_method",
    "special_requirements",
    "price",
    "currency",
)


def order_fields(payload: OrderRequest) -> dict:
    fields = {name: getattr(payload, name) for name in ORDER_COLUMNS}
    details = payload.model_dump(by_alias=True, exclude=set(ORDER_COLUMNS))
    details.update({"hosting": "cloud", "addons": []})
    fields["details"] = details
    return fields


def estimated_completion(order: Order) -> Optional[str]:
    if order.status == COMPLETED:
        return isoformat(order.completed_at)
    if order.status == BUILDING and order.build_started_at:
        hours = TIMELINE_HOURS.get(order.timeline, 168)
        return isoformat(order.build_started_at + timedelta(hours=hours))
    return None


# --- Endpoints ---

@router.post("/create")
def create_order(payload: OrderRequest,
                 lifecycle: OrderLifecycle = Depends(get_lifecycle),
                 payments: PaymentGateway = Depends(get_payments)):
    # 1. Price parity with the order form
    calculated = calculate_order_price(payload.complexity, payload.timeline, payload.features)
    if not prices_match(payload.price, calculated):
        logger.warning(f"Price mismatch for {payload.customer_email}: submitted {payload.price}, expected {calculated}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Price mismatch. Please refresh and try again.")

    # 2. Hosted checkout
    order_id = generate_order_id()
    try:
        session = payments.create_checkout_session(order_id, payload.model_dump(by_alias=True))
    except Exception:
        logger.exception(f"Checkout session creation failed for order {order_id}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Failed to create order. Please try again.")

    # 3. Store the order awaiting payment
    lifecycle.create(order_fields(payload), checkout_session_id=session.id, order_id=order_id)

    return {
        "success": True,
        "orderId": order_id,
        "checkoutSessionId": session.id,
        "checkoutUrl": getattr(session, "url", None),
        "message": "Order created successfully. Redirecting to payment...",
    }


@router.get("/create")
def get_order(orderId: Optional[str] = None, sessionId: Optional[str] = None,
              repository: OrderRepository = Depends(get_repository),
              lifecycle: OrderLifecycle = Depends(get_lifecycle),
              payments: PaymentGateway = Depends(get_payments)):
    if not orderId and not sessionId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order ID or Session ID is required")

    order = repository.get(orderId) if orderId else repository.find_by_session(sessionId)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    # Checkout polling covers a webhook that has not arrived yet
    if sessionId and order.status in PAYABLE_STATUSES:
        try:
            session = payments.retrieve_checkout_session(sessionId)
            if getattr(session, "payment_status", None) == "paid":
                payment_intent = getattr(session, "payment_intent", None)
                lifecycle.mark_paid(order.id, payment_intent if isinstance(payment_intent, str) else None)
                order = repository.get(order.id)
        except Exception as e:
            logger.error(f"Stripe session check error for {sessionId}: {e}")

    return {"success": True, "order": order.to_dict()}


@router.get("/status")
def get_order_status(orderId: Optional[str] = None, repository: OrderRepository = Depends(get_repository)):
    if not orderId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order ID is required")

    order = repository.get(orderId)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    return {
        "success": True,
        "order": {
            "id": order.id,
            "status": order.status,
            "progress": order.progress or 0,
            "currentBuildStep": order.current_build_step,
            "createdAt": isoformat(order.created_at),
            "updatedAt": isoformat(order.updated_at),
            "paidAt": isoformat(order.paid_at),
            "buildStartedAt": isoformat(order.build_started_at),
            "completedAt": isoformat(order.completed_at),
            "buildLogs": list(order.build_logs or []),
            "buildError": order.build_error,
            "deliveryUrl": order.delivery_url,
            "adminUrl": order.admin_url,
            "appName": order.app_name,
            "framework": order.framework,
            "complexity": order.complexity,
            "timeline": order.timeline,
            "deliveryMethod": order.delivery_method,
            "estimatedCompletion": estimated_completion(order),
        },
    }
