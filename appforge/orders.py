import secrets
import threading
import time
from typing import Callable, List, Optional

from sqlalchemy.orm import sessionmaker

from .models import Order


def generate_order_id() -> str:
    return f"order_{int(time.time() * 1000)}_{secrets.token_hex(6)}"


class OrderRepository:
    """Order storage over a SQLAlchemy session factory.

    Every public method opens its own short session; returned orders are
    detached snapshots (the session factory must use expire_on_commit=False).
    `update` is the only read-modify-write path and runs under `lock`.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self.lock = threading.RLock()

    def add(self, order: Order) -> Order:
        with self.session_factory() as db:
            db.add(order)
            db.commit()
            return order

    def get(self, order_id: str) -> Optional[Order]:
        if not order_id:
            return None
        with self.session_factory() as db:
            return db.get(Order, order_id)

    def find_by_session(self, session_id: str) -> Optional[Order]:
        with self.session_factory() as db:
            return db.query(Order).filter(Order.stripe_session_id == session_id).first()

    def find_by_payment_intent(self, payment_intent_id: str) -> Optional[Order]:
        with self.session_factory() as db:
            return db.query(Order).filter(Order.stripe_payment_intent_id == payment_intent_id).first()

    def list_all(self) -> List[Order]:
        with self.session_factory() as db:
            return db.query(Order).order_by(Order.created_at).all()

    def count(self) -> int:
        with self.session_factory() as db:
            return db.query(Order).count()

    def update(self, order_id: str, mutate: Callable[[Order], None]) -> Optional[Order]:
        """Load, mutate and commit one order atomically. Returns None if missing."""
        with self.lock:
            with self.session_factory() as db:
                order = db.get(Order, order_id)
                if order is None:
                    return None
                try:
                    mutate(order)
                    db.commit()
                except Exception:
                    db.rollback()
                    raise
                return order
