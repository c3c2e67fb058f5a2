import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from .dependencies import get_lifecycle, get_payments
from .lifecycle import OrderLifecycle
from .payments import PaymentGateway, WebhookSignatureError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["webhooks"])


def handle_event(event: dict, lifecycle: OrderLifecycle) -> None:
    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}
    metadata = obj.get("metadata") or {}

    if event_type == "checkout.session.completed":
        order_id = metadata.get("orderId")
        if not order_id:
            logger.error(f"Order not found for session: {obj.get('id')}")
            return
        payment_intent = obj.get("payment_intent")
        lifecycle.mark_paid(order_id, payment_intent if isinstance(payment_intent, str) else None)

    elif event_type == "payment_intent.payment_failed":
        lifecycle.mark_payment_failed(obj.get("id"), order_id=metadata.get("orderId"))

    else:
        logger.info(f"Unhandled event type: {event_type}")


@router.post("/webhook")
async def stripe_webhook(request: Request,
                         lifecycle: OrderLifecycle = Depends(get_lifecycle),
                         payments: PaymentGateway = Depends(get_payments)):
    body = await request.body()
    signature = request.headers.get("stripe-signature")
    if not signature:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing Stripe signature")

    try:
        event = payments.construct_event(body, signature)
    except WebhookSignatureError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")

    logger.info(f"Stripe event {event.get('id')} received: {event.get('type')}")
    try:
        await run_in_threadpool(handle_event, event, lifecycle)
    except Exception:
        logger.exception(f"Webhook processing failed for event {event.get('id')}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook processing failed")

    return {"received": True}
