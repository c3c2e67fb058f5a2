"""
Order lifecycle: the status state machine and the service every entry point
(order API, payment webhook, checkout polling, admin dashboard, build
simulator) goes through to change an order.

    pending_payment -> paid -> building -> completed
          |              |         |
    payment_failed   cancelled  build_failed
                     refunded
"""
import logging
from typing import Any, Dict, List, Optional

from .models import Order, utcnow
from .orders import OrderRepository, generate_order_id

logger = logging.getLogger(__name__)

PENDING_PAYMENT = "pending_payment"
PAID = "paid"
BUILDING = "building"
COMPLETED = "completed"
PAYMENT_FAILED = "payment_failed"
BUILD_FAILED = "build_failed"
REFUNDED = "refunded"
CANCELLED = "cancelled"

ORDER_STATUSES = (
    PENDING_PAYMENT,
    PAID,
    BUILDING,
    COMPLETED,
    PAYMENT_FAILED,
    BUILD_FAILED,
    REFUNDED,
    CANCELLED,
)

ALLOWED_TRANSITIONS = {
    PENDING_PAYMENT: {PAID, PAYMENT_FAILED, CANCELLED},
    PAID: {BUILDING, CANCELLED, REFUNDED},
    BUILDING: {COMPLETED, BUILD_FAILED},
    # A declined card can be retried inside the same checkout session
    PAYMENT_FAILED: {PAID, PENDING_PAYMENT, CANCELLED},
    BUILD_FAILED: {BUILDING, REFUNDED, CANCELLED},
    COMPLETED: set(),
    CANCELLED: set(),
    REFUNDED: set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

# Statuses a captured payment can still move to paid
PAYABLE_STATUSES = (PENDING_PAYMENT, PAYMENT_FAILED)

# Revenue counts orders the customer has paid for and we have not given back
REVENUE_STATUSES = (PAID, BUILDING, COMPLETED)

_STATUS_TIMESTAMPS = {
    PAID: "paid_at",
    PAYMENT_FAILED: "payment_failed_at",
    BUILDING: "build_started_at",
    BUILD_FAILED: "build_failed_at",
    COMPLETED: "completed_at",
    CANCELLED: "cancelled_at",
    REFUNDED: "cancelled_at",
}


class InvalidTransition(Exception):
    def __init__(self, order_id: str, current: str, target: str):
        self.order_id = order_id
        self.current = current
        self.target = target
        super().__init__(f"Order {order_id} cannot move from {current} to {target}")


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def transition(order: Order, target: str, **fields: Any) -> Order:
    """Move `order` to `target`, stamping the matching timestamp.

    Extra keyword arguments are set as attributes on the order in the same
    step. Raises InvalidTransition when the state machine forbids the move.
    """
    if not can_transition(order.status, target):
        raise InvalidTransition(order.id, order.status, target)

    now = utcnow()
    previous = order.status
    order.status = target
    stamp = _STATUS_TIMESTAMPS.get(target)
    if stamp:
        setattr(order, stamp, now)
    for name, value in fields.items():
        setattr(order, name, value)
    order.updated_at = now

    logger.info(f"Order {order.id}: {previous} -> {target}")
    return order


class OrderLifecycle:
    def __init__(self, repository: OrderRepository, simulator=None):
        self.repository = repository
        self.simulator = simulator

    # -------------------- intake --------------------

    def create(self, fields: Dict[str, Any], checkout_session_id: Optional[str] = None,
               order_id: Optional[str] = None) -> Order:
        order = Order(
            id=order_id or generate_order_id(),
            status=PENDING_PAYMENT,
            progress=0,
            build_logs=[],
            admin_notes=[],
            stripe_session_id=checkout_session_id,
            created_at=utcnow(),
            updated_at=utcnow(),
            **fields,
        )
        self.repository.add(order)
        logger.info(f"Order {order.id} created for {order.customer_email} ({order.price} {order.currency})")
        return order

    # -------------------- payment --------------------

    def mark_paid(self, order_id: str, payment_intent_id: Optional[str] = None) -> bool:
        """Record a captured payment and kick off the build.

        Safe to call any number of times: only an order still awaiting payment
        (or whose earlier attempt was declined) moves. Unknown ids and orders
        already paid (or further along) are a no-op and return False, so
        duplicate webhook deliveries and checkout polling never restart a build.
        """
        moved = []

        def _pay(order: Order):
            if order.status not in PAYABLE_STATUSES:
                return
            fields = {}
            if payment_intent_id:
                fields["stripe_payment_intent_id"] = payment_intent_id
            transition(order, PAID, **fields)
            moved.append(order.id)

        order = self.repository.update(order_id, _pay)
        if order is None:
            logger.warning(f"Payment confirmed for unknown order {order_id}, ignoring")
            return False
        if not moved:
            logger.info(f"Order {order_id} already {order.status}, payment confirmation ignored")
            return False

        logger.info(f"Payment successful for order {order_id}")
        if self.simulator is not None:
            # Fire-and-forget; build errors end in build_failed, never here
            try:
                self.simulator.start(order_id)
            except Exception:
                logger.exception(f"Could not start build for order {order_id}")
        return True

    def mark_payment_failed(self, payment_intent_id: Optional[str], order_id: Optional[str] = None) -> bool:
        order = None
        if payment_intent_id:
            order = self.repository.find_by_payment_intent(payment_intent_id)
        if order is None and order_id:
            order = self.repository.get(order_id)
        if order is None:
            logger.warning(f"Payment failure for unknown payment intent {payment_intent_id}, ignoring")
            return False

        moved = []

        def _fail(o: Order):
            if o.status != PENDING_PAYMENT:
                return
            transition(o, PAYMENT_FAILED, stripe_payment_intent_id=payment_intent_id or o.stripe_payment_intent_id)
            moved.append(o.id)

        self.repository.update(order.id, _fail)
        if moved:
            logger.info(f"Payment failed for order {order.id}")
        return bool(moved)

    # -------------------- admin --------------------

    def admin_update(self, order_id: str, admin: str, status: Optional[str] = None,
                     progress: Optional[int] = None, delivery_url: Optional[str] = None,
                     note: Optional[str] = None):
        """Apply an admin edit. Returns (order, changes) or (None, []) if missing."""
        changes: List[str] = []

        def _edit(order: Order):
            if status and status != order.status:
                previous = order.status
                extra = {}
                if status == BUILDING and not order.build_started_at:
                    extra["progress"] = 0
                elif status == BUILDING:
                    # Keep the original start time on a rebuild
                    extra["build_started_at"] = order.build_started_at
                if status == COMPLETED:
                    extra["progress"] = 100
                transition(order, status, **extra)
                changes.append(f"Status: {previous} → {status}")

            if progress is not None and progress != (order.progress or 0):
                changes.append(f"Progress: {order.progress or 0}% → {progress}%")
                order.progress = progress

            if delivery_url and delivery_url != order.delivery_url:
                changes.append("Delivery URL updated")
                order.delivery_url = delivery_url

            if note:
                order.admin_notes = list(order.admin_notes or []) + [{
                    "note": note,
                    "timestamp": utcnow().isoformat() + "Z",
                    "admin": admin,
                }]
                changes.append("Added admin note")

            if changes:
                order.updated_at = utcnow()

        order = self.repository.update(order_id, _edit)
        if order is not None and changes:
            logger.info(f"Order {order_id} updated by {admin}: {', '.join(changes)}")
        return order, changes

    def cancel(self, order_id: str, admin: str) -> Optional[Order]:
        order = self.repository.update(order_id, lambda o: transition(o, CANCELLED))
        if order is not None:
            logger.info(f"Order {order_id} cancelled by {admin}")
        return order

    def refund(self, order_id: str) -> bool:
        """Mark an order refunded if the state machine allows it.

        Returns True only when this call moved the order.
        """
        moved = []

        def _refund(order: Order):
            if can_transition(order.status, REFUNDED):
                transition(order, REFUNDED)
                moved.append(order.id)

        self.repository.update(order_id, _refund)
        return bool(moved)
