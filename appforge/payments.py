import json
import logging
from typing import Any, Dict

import stripe

from .config import Settings

logger = logging.getLogger(__name__)


class WebhookSignatureError(Exception):
    pass


class PaymentGateway:
    """Hosted checkout and webhook verification through Stripe."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.webhook_secret = settings.stripe_webhook_secret
        stripe.api_key = settings.stripe_secret_key

    def create_checkout_session(self, order_id: str, order: Dict[str, Any]):
        app_url = self.settings.app_url
        features = order.get("features") or []
        session = stripe.checkout.Session.create(
            payment_method_types=["card"],
            line_items=[
                {
                    "price_data": {
                        "currency": order.get("currency", "usd"),
                        "product_data": {
                            "name": f"Custom App Development: {order['appName']}",
                            "description": (
                                f"{order['complexity']} complexity app with {len(features)} features, "
                                f"delivered via {order['deliveryMethod']} in {order['timeline']}"
                            ),
                        },
                        "unit_amount": int(round(order["price"] * 100)),  # Stripe expects cents
                    },
                    "quantity": 1,
                }
            ],
            mode="payment",
            customer_email=order.get("customerEmail"),
            success_url=f"{app_url}/order/success?session_id={{CHECKOUT_SESSION_ID}}&order_id={order_id}",
            cancel_url=f"{app_url}/order?cancelled=true",
            metadata={
                "orderId": order_id,
                "customerEmail": order.get("customerEmail"),
                "appName": order.get("appName"),
            },
            # Lets payment_intent.* events be matched back to the order
            payment_intent_data={"metadata": {"orderId": order_id}},
        )
        logger.info(f"Checkout session {session.id} opened for order {order_id}")
        return session

    def retrieve_checkout_session(self, session_id: str):
        return stripe.checkout.Session.retrieve(session_id)

    def construct_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """Verify the Stripe-Signature header and decode the event."""
        if not signature:
            raise WebhookSignatureError("Missing Stripe signature")
        try:
            body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        except UnicodeDecodeError as e:
            raise WebhookSignatureError(f"Invalid payload: {e}") from e
        try:
            stripe.WebhookSignature.verify_header(
                body, signature, self.webhook_secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
            )
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(str(e)) from e
        try:
            event = json.loads(body)
        except ValueError as e:
            raise WebhookSignatureError(f"Invalid payload: {e}") from e
        if not isinstance(event, dict):
            raise WebhookSignatureError("Invalid payload: expected a JSON object")
        return event
