from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    # Naive UTC; SQLite does not keep tzinfo
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds") + "Z"


class Order(Base):
    __tablename__ = 'orders'

    id = Column(String, primary_key=True)

    # Customer
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False, index=True)
    company = Column(String)
    phone = Column(String)

    # App
    app_name = Column(String, nullable=False)
    app_description = Column(Text)
    framework = Column(String)
    complexity = Column(String)  # 'simple', 'medium', 'complex'
    features = Column(JSON, default=list)
    database = Column(String)
    authentication = Column(JSON, default=list)
    timeline = Column(String)  # '24h', '3d', '1w', '2w'
    delivery_method = Column(String)  # 'github', 'zip', 'deployed'
    special_requirements = Column(Text)
    details = Column(JSON, default=dict)  # remaining intake form fields

    # Pricing & payment
    price = Column(Float, nullable=False)
    currency = Column(String, default="usd")
    stripe_session_id = Column(String, index=True)
    stripe_payment_intent_id = Column(String, index=True)

    # Lifecycle
    status = Column(String, nullable=False, default="pending_payment", index=True)
    progress = Column(Integer, default=0)
    current_build_step = Column(String)
    build_id = Column(String)
    build_logs = Column(JSON, default=list)
    build_error = Column(Text)
    delivery_url = Column(String)
    admin_url = Column(String)
    admin_notes = Column(JSON, default=list)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)
    paid_at = Column(DateTime)
    payment_failed_at = Column(DateTime)
    build_started_at = Column(DateTime)
    build_failed_at = Column(DateTime)
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)

    def to_dict(self) -> dict:
        data = dict(self.details or {})
        data.update({
            "id": self.id,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "company": self.company,
            "phone": self.phone,
            "appName": self.app_name,
            "appDescription": self.app_description,
            "framework": self.framework,
            "complexity": self.complexity,
            "features": list(self.features or []),
            "database": self.database,
            "authentication": list(self.authentication or []),
            "timeline": self.timeline,
            "deliveryMethod": self.delivery_method,
            "specialRequirements": self.special_requirements,
            "price": self.price,
            "totalAmount": self.price,
            "currency": self.currency,
            "status": self.status,
            "progress": self.progress or 0,
            "currentBuildStep": self.current_build_step,
            "buildId": self.build_id,
            "buildLogs": list(self.build_logs or []),
            "buildError": self.build_error,
            "deliveryUrl": self.delivery_url,
            "adminUrl": self.admin_url,
            "adminNotes": list(self.admin_notes or []),
            "stripeSessionId": self.stripe_session_id,
            "stripePaymentIntentId": self.stripe_payment_intent_id,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
            "paidAt": isoformat(self.paid_at),
            "paymentFailedAt": isoformat(self.payment_failed_at),
            "buildStartedAt": isoformat(self.build_started_at),
            "buildFailedAt": isoformat(self.build_failed_at),
            "completedAt": isoformat(self.completed_at),
            "cancelledAt": isoformat(self.cancelled_at),
        })
        return data
