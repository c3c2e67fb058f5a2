"""Shared fixtures: in-memory database, fake checkout, inline build runner."""

import hashlib
import hmac
import json
import os
import time
from types import SimpleNamespace

# Must be set before appforge is imported (settings and engine are module-level)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["NEXT_PUBLIC_APP_URL"] = "https://appforge.test"
os.environ["ADMIN_EMAIL"] = "admin@ece-cli.com"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BUILD_STEP_MIN_DELAY"] = "0"
os.environ["BUILD_STEP_MAX_DELAY"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from appforge.builds import BuildSimulator
from appforge.config import get_settings
from appforge.database import SessionLocal, engine
from appforge.lifecycle import OrderLifecycle
from appforge.main import create_app
from appforge.models import Base
from appforge.orders import OrderRepository
from appforge.payments import PaymentGateway

WEBHOOK_SECRET = "whsec_test_secret"
ADMIN_EMAIL = "admin@ece-cli.com"
ADMIN_PASSWORD = "admin123"


class FakeGateway(PaymentGateway):
    """Checkout sessions without network; webhook verification is the real one."""

    def __init__(self, settings):
        super().__init__(settings)
        self.sessions = {}
        self.fail_checkout = False
        self.fail_retrieve = False

    def create_checkout_session(self, order_id, order):
        if self.fail_checkout:
            raise RuntimeError("Stripe is unavailable")
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.sessions[session_id] = SimpleNamespace(
            id=session_id,
            url=f"https://checkout.stripe.com/c/pay/{session_id}",
            payment_status="unpaid",
            payment_intent=None,
            metadata={"orderId": order_id},
            order=order,
        )
        return self.sessions[session_id]

    def retrieve_checkout_session(self, session_id):
        if self.fail_retrieve:
            raise RuntimeError("Stripe is unavailable")
        return self.sessions[session_id]

    def complete(self, session_id, payment_intent="pi_test_123"):
        self.sessions[session_id].payment_status = "paid"
        self.sessions[session_id].payment_intent = payment_intent


class DeferredRunner:
    """Stands in for the build thread: queued loops run only when asked."""

    def __init__(self):
        self.pending = []

    def __call__(self, target, *args):
        self.pending.append((target, args))

    def run_all(self):
        while self.pending:
            target, args = self.pending.pop(0)
            target(*args)


def inline_spawn(target, *args):
    target(*args)


def stripe_signature(payload, secret=WEBHOOK_SECRET, timestamp=None):
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def checkout_completed_event(order_id, payment_intent="pi_test_123", session_id="cs_test_1"):
    return {
        "id": "evt_checkout_completed",
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_status": "paid",
                "payment_intent": payment_intent,
                "metadata": {"orderId": order_id} if order_id else {},
            }
        },
    }


def payment_failed_event(payment_intent, order_id=None):
    return {
        "id": "evt_payment_failed",
        "object": "event",
        "type": "payment_intent.payment_failed",
        "data": {
            "object": {
                "id": payment_intent,
                "object": "payment_intent",
                "metadata": {"orderId": order_id} if order_id else {},
            }
        },
    }


def order_payload(**overrides):
    payload = {
        "customerName": "Jordan Lee",
        "customerEmail": "jordan@example.com",
        "appName": "Task Tracker",
        "appDescription": "A simple task tracker for small teams",
        "framework": "nextjs",
        "complexity": "simple",
        "features": [],
        "database": "postgresql",
        "authentication": ["email"],
        "timeline": "1w",
        "deliveryMethod": "github",
        "price": 299,
    }
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def repository():
    return OrderRepository(SessionLocal)


@pytest.fixture
def simulator(repository, settings):
    return BuildSimulator(repository, settings, spawn=inline_spawn, sleep=lambda _: None)


@pytest.fixture
def lifecycle(repository, simulator):
    return OrderLifecycle(repository, simulator)


@pytest.fixture
def gateway(settings):
    return FakeGateway(settings)


@pytest.fixture
def runner():
    return DeferredRunner()


@pytest.fixture
def app(settings, gateway, runner):
    return create_app(settings=settings, payments=gateway, spawn=runner)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def admin_client(client):
    response = client.post("/api/admin/auth", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


def post_webhook(client, event, secret=WEBHOOK_SECRET):
    payload = json.dumps(event)
    return client.post(
        "/api/orders/webhook",
        content=payload,
        headers={"Stripe-Signature": stripe_signature(payload, secret), "Content-Type": "application/json"},
    )
