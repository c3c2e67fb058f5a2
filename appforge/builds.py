"""
Build planning and the simulated build pipeline.

Nothing here produces software. A paid order is moved to `building`, a build
plan is requested, and a background loop walks the order through
BUILD_STAGES on a randomized timer before publishing a delivery URL.
"""
import logging
import math
import random
import re
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import Settings
from .lifecycle import BUILD_FAILED, BUILDING, COMPLETED, PAID, can_transition, transition
from .models import Order, utcnow
from .orders import OrderRepository
from .pricing import round_half_up

logger = logging.getLogger(__name__)

BUILD_STAGES = [
    "Analyzing requirements...",
    "Setting up project structure...",
    "Installing dependencies...",
    "Generating components...",
    "Configuring database...",
    "Setting up authentication...",
    "Running tests...",
    "Building for production...",
    "Preparing deployment...",
    "Finalizing delivery...",
]

BUILD_INITIATED_LOG = "✓ Build process initiated"
BUILD_COMPLETED_LOG = "🎉 Build completed successfully!"


class BuildRequestError(ValueError):
    pass


# --- Build planning ---

def generate_build_steps(config: Dict[str, Any]) -> List[str]:
    steps = [
        "Analyzing project requirements",
        "Initializing project structure",
        "Installing dependencies",
    ]

    framework = config.get("framework")
    if framework == "nextjs":
        steps += ["Setting up Next.js configuration", "Configuring TypeScript"]
    elif framework == "react":
        steps += ["Setting up React application", "Configuring Vite bundler"]
    elif framework == "vue":
        steps += ["Setting up Vue.js application", "Configuring Vue CLI"]

    if config.get("database"):
        steps += [f"Setting up {config['database']} database", "Creating database schema"]

    if config.get("authentication"):
        steps.append("Configuring authentication providers")

    features = config.get("features") or []
    if features:
        steps.append("Implementing application features")
        if "Real-time Chat" in features:
            steps.append("Setting up WebSocket connections")
        if "Payment Integration" in features:
            steps.append("Configuring payment gateway")
        if "File Upload" in features:
            steps.append("Setting up file storage")

    if config.get("cicd"):
        steps += ["Setting up CI/CD pipeline", "Configuring automated testing"]
    if config.get("testing"):
        steps += ["Writing unit tests", "Setting up integration tests"]
    if config.get("monitoring"):
        steps.append("Setting up monitoring and alerts")
    if config.get("dockerMode"):
        steps += ["Creating Docker configuration", "Building container images"]

    steps += [
        "Running security scans",
        "Optimizing for production",
        "Building application",
        "Running final tests",
        "Deploying to production",
    ]
    return steps


def estimate_build_time(complexity: str, feature_count: int, cicd: bool = False, testing: bool = False) -> str:
    minutes = 2.0 * {"simple": 1, "medium": 1.5, "complex": 2.5}.get(complexity, 1)
    minutes += feature_count * 0.5
    if cicd:
        minutes += 1
    if testing:
        minutes += 1

    total = math.ceil(minutes)
    if total < 60:
        return f"{total} minutes"
    return f"{total // 60}h {total % 60}m"


def plan_build(request: Dict[str, Any]) -> Dict[str, Any]:
    """Accept a build request and return its plan.

    Raises BuildRequestError when name, description or userId is missing.
    """
    if not request.get("name") or not request.get("description") or not request.get("userId"):
        raise BuildRequestError("App name, description, and user ID are required")

    configuration = {
        "framework": request.get("framework") or "nextjs",
        "features": request.get("features") or [],
        "complexity": request.get("complexity") or "medium",
        "database": request.get("database") or "postgresql",
        "authentication": request.get("authentication") or ["email"],
        "deployment": request.get("deployment") or "vercel",
        "cicd": request.get("cicd") is not False,
        "monitoring": request.get("monitoring") is not False,
        "testing": request.get("testing") is not False,
        "dockerMode": bool(request.get("dockerMode")),
    }
    steps = generate_build_steps(configuration)
    build_id = f"build_{int(time.time() * 1000)}"

    return {
        "app": {
            "id": build_id,
            "name": request["name"],
            "description": request["description"],
            "status": "building",
            "progress": 0,
            "createdAt": utcnow().isoformat() + "Z",
            "userId": request["userId"],
            "orderId": request.get("orderId"),
            "configuration": configuration,
            "buildEnvironment": {
                "nodeVersion": "18.x",
                "packageManager": "npm",
                "buildTool": "next" if configuration["framework"] == "nextjs" else "vite",
                "containerized": configuration["dockerMode"],
            },
        },
        "buildSteps": steps,
        "estimatedTime": estimate_build_time(
            configuration["complexity"],
            len(configuration["features"]),
            configuration["cicd"],
            configuration["testing"],
        ),
        "buildConfiguration": {
            "totalSteps": len(steps),
            "parallel": configuration["cicd"],
            "containerized": configuration["dockerMode"],
            "productionReady": True,
            "securityScanning": True,
            "performanceOptimized": True,
        },
    }


def build_request_for(order: Order) -> Dict[str, Any]:
    return {
        "name": order.app_name,
        "description": order.app_description,
        "framework": order.framework,
        "features": list(order.features or []),
        "complexity": order.complexity,
        "database": order.database,
        "authentication": list(order.authentication or []),
        "userId": f"customer_{order.id}",
        "orderId": order.id,
        "isCustomOrder": True,
        "deliveryMethod": order.delivery_method,
        "timeline": order.timeline,
        "specialRequirements": order.special_requirements,
    }


# --- Delivery ---

def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.lower())


def delivery_urls(order: Order, app_url: str, github_org: str) -> Tuple[Optional[str], Optional[str]]:
    """Return (delivery_url, admin_url) for the order's delivery method."""
    method = order.delivery_method
    if method == "github":
        return f"https://github.com/{github_org}/{slugify(order.app_name)}", None
    if method == "zip":
        return f"{app_url}/api/orders/download?orderId={order.id}", None
    if method == "deployed":
        url = f"https://{slugify(order.app_name)}-{order.id[-8:]}.vercel.app"
        return url, f"{url}/admin"
    return None, None


# --- Simulation ---

def _spawn_thread(target: Callable, *args) -> None:
    threading.Thread(target=target, args=args, name=f"build-{args[0] if args else ''}", daemon=True).start()


class BuildSimulator:
    """Drives `paid` orders through a fake build.

    `spawn` runs the stage loop (a daemon thread by default); `sleep` and
    `rng` exist so the timing can be controlled.
    """

    def __init__(self, repository: OrderRepository, settings: Settings,
                 planner: Callable[[Dict[str, Any]], Dict[str, Any]] = plan_build,
                 spawn: Optional[Callable] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 rng: Optional[random.Random] = None):
        self.repository = repository
        self.settings = settings
        self.planner = planner
        self.spawn = spawn or _spawn_thread
        self.sleep = sleep
        self.rng = rng or random.Random()

    def start(self, order_id: str) -> bool:
        """Move a paid order to building and launch the stage loop.

        Returns False when the order is missing or not `paid`.
        """
        started = []

        def _begin(order: Order):
            if order.status != PAID:
                return
            transition(order, BUILDING, progress=0, current_build_step=None, build_error=None)
            started.append(order.id)

        order = self.repository.update(order_id, _begin)
        if order is None or not started:
            return False

        logger.info(f"Starting build for order {order_id}: {order.app_name}")

        try:
            plan = self.planner(build_request_for(order))
        except Exception as e:
            logger.error(f"Error triggering app build for order {order_id}: {e}")
            self.fail(order_id, str(e) or "Unknown build error")
            return False

        build_id = plan.get("app", {}).get("id") or f"build_{int(time.time() * 1000)}"

        def _initiated(o: Order):
            o.build_id = build_id
            o.build_logs = [BUILD_INITIATED_LOG]
            o.updated_at = utcnow()

        self.repository.update(order_id, _initiated)
        self.spawn(self.run, order_id)
        return True

    def run(self, order_id: str) -> None:
        for index in range(len(BUILD_STAGES)):
            self.sleep(self._delay())
            try:
                order = self.advance(order_id, index)
            except Exception as e:
                logger.exception(f"Build stage {index} failed for order {order_id}")
                self.fail(order_id, str(e) or "Unknown build error")
                return
            if order is None or order.status != BUILDING:
                return

    def advance(self, order_id: str, index: int) -> Optional[Order]:
        """Apply build stage `index`; the last stage completes the order."""
        stage = BUILD_STAGES[index]
        total = len(BUILD_STAGES)

        def _stage(order: Order):
            if order.status != BUILDING:
                return
            logs = list(order.build_logs or [])
            logs.append(f"✓ {stage}")
            order.current_build_step = stage
            order.progress = round_half_up(index / total * 100)
            order.updated_at = utcnow()

            if index == total - 1:
                logs.append(BUILD_COMPLETED_LOG)
                delivery_url, admin_url = delivery_urls(order, self.settings.app_url, self.settings.github_org)
                transition(order, COMPLETED, progress=100, delivery_url=delivery_url, admin_url=admin_url)
            order.build_logs = logs

        order = self.repository.update(order_id, _stage)
        if order is not None and order.status in (BUILDING, COMPLETED):
            logger.info(f"Order {order_id} build {order.progress}%: {stage}")
        return order

    def fail(self, order_id: str, error: str) -> None:
        def _fail(order: Order):
            if can_transition(order.status, BUILD_FAILED):
                transition(order, BUILD_FAILED, build_error=error)

        self.repository.update(order_id, _fail)

    def _delay(self) -> float:
        low = self.settings.build_step_min_delay
        high = max(low, self.settings.build_step_max_delay)
        return self.rng.uniform(low, high)
