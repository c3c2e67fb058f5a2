import logging
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import api_admin, api_auth, api_build, api_orders, api_security, api_webhooks
from .builds import BuildSimulator
from .config import Settings, configure_logging, get_settings
from .database import init_db, make_session_factory
from .errors import install_error_handlers
from .lifecycle import OrderLifecycle
from .models import isoformat, utcnow
from .orders import OrderRepository
from .payments import PaymentGateway
from .security import AdminSecurity
from .state import fresh_state

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, payments: Optional[PaymentGateway] = None,
               spawn: Optional[Callable] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    session_factory = make_session_factory(settings.database_url)
    init_db(session_factory.kw["bind"])

    app = FastAPI(title="AppForge Orders")

    # Services live on app.state so each app instance (and test) gets its own
    repository = OrderRepository(session_factory)
    simulator = BuildSimulator(repository, settings, spawn=spawn)
    app.state.settings = settings
    app.state.repository = repository
    app.state.simulator = simulator
    app.state.lifecycle = OrderLifecycle(repository, simulator)
    app.state.payments = payments or PaymentGateway(settings)
    app.state.security = AdminSecurity(settings)
    app.state.dashboard = fresh_state()

    app.include_router(api_orders.router)
    app.include_router(api_webhooks.router)
    app.include_router(api_build.router)
    app.include_router(api_auth.router)
    app.include_router(api_admin.router)
    app.include_router(api_security.router)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    @app.get("/api/health")
    def health():
        return {
            "status": "healthy",
            "timestamp": isoformat(utcnow()),
            "orders": repository.count(),
        }

    logger.info(f"AppForge API ready (database: {settings.database_url.split('://')[0]})")
    return app


app = create_app()
