import logging
from datetime import timedelta

import faker

from appforge.builds import BUILD_COMPLETED_LOG, BUILD_INITIATED_LOG, BUILD_STAGES, delivery_urls
from appforge.config import get_settings
from appforge.database import SessionLocal, init_db
from appforge.models import Order, utcnow
from appforge.orders import generate_order_id
from appforge.pricing import calculate_order_price, round_half_up

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_ORDERS = [
    # (app, framework, complexity, timeline, features, delivery, status, days ago)
    ("Bright Booking", "nextjs", "simple", "1w", [], "github", "completed", 20),
    ("Ledgerly Portal", "react", "medium", "3d", ["Payment Integration", "Advanced Analytics"], "deployed",
     "completed", 9),
    ("Field Notes", "vue", "simple", "2w", ["SEO Optimization"], "zip", "building", 1),
    ("Harbor HQ", "nextjs", "complex", "1w", ["Mobile App"], "deployed", "pending_payment", 0),
    ("Cartwheel Shop", "nextjs", "medium", "1w", ["Custom Branding"], "github", "cancelled", 14),
]


def _demo_order(row, fake, settings) -> Order:
    app_name, framework, complexity, timeline, features, delivery, status, days_ago = row
    created = utcnow() - timedelta(days=days_ago, hours=2)
    order = Order(
        id=generate_order_id(),
        customer_name=fake.name(),
        customer_email=fake.company_email(),
        company=fake.company(),
        phone=fake.phone_number(),
        app_name=app_name,
        app_description=fake.sentence(nb_words=12),
        framework=framework,
        complexity=complexity,
        features=features,
        database="postgresql",
        authentication=["email"],
        timeline=timeline,
        delivery_method=delivery,
        details={},
        price=calculate_order_price(complexity, timeline, features),
        currency="usd",
        status=status,
        progress=0,
        build_logs=[],
        admin_notes=[],
        created_at=created,
        updated_at=created,
    )

    if status in ("building", "completed"):
        order.paid_at = created + timedelta(minutes=3)
        order.build_started_at = order.paid_at
        order.build_id = f"build_{int(order.paid_at.timestamp() * 1000)}"
        done = len(BUILD_STAGES) if status == "completed" else len(BUILD_STAGES) // 2
        order.build_logs = [BUILD_INITIATED_LOG] + [f"✓ {stage}" for stage in BUILD_STAGES[:done]]
        order.current_build_step = BUILD_STAGES[done - 1]
        order.progress = round_half_up((done - 1) / len(BUILD_STAGES) * 100)

    if status == "completed":
        order.progress = 100
        order.completed_at = order.build_started_at + timedelta(minutes=1)
        order.build_logs = order.build_logs + [BUILD_COMPLETED_LOG]
        order.delivery_url, order.admin_url = delivery_urls(order, settings.app_url, settings.github_org)
    elif status == "cancelled":
        order.cancelled_at = created + timedelta(days=1)

    return order


def seed_orders(session_factory=SessionLocal) -> int:
    # Ensure tables exist
    init_db(session_factory.kw["bind"])

    db = session_factory()

    try:
        # Check if orders exist
        if db.query(Order).first():
            logger.info("Orders table already seeded.")
            return 0

        fake = faker.Faker()
        settings = get_settings()
        orders = [_demo_order(row, fake, settings) for row in DEMO_ORDERS]

        db.add_all(orders)
        db.commit()
        logger.info(f"Successfully seeded {len(orders)} demo orders.")
        return len(orders)

    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        db.rollback()
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    seed_orders()
