import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

env_path = Path(__file__).parent / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseModel):
    database_url: str = "sqlite:///./appforge.db"
    app_url: str = "http://localhost:8000"

    # Stripe
    stripe_secret_key: str = "sk_test_placeholder"
    stripe_webhook_secret: str = "whsec_placeholder"

    # Admin dashboard
    admin_email: str = "admin@ece-cli.com"
    admin_password: str = "admin123"
    secret_key: str = "APPFORGE_DEV_SECRET"  # Ideally from env

    # Build simulation (seconds between stages)
    build_step_min_delay: float = 3.0
    build_step_max_delay: float = 5.0
    github_org: str = "ece-cli-generated"

    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]


@lru_cache
def get_settings() -> Settings:
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./appforge.db"),
        app_url=os.getenv("NEXT_PUBLIC_APP_URL", os.getenv("APP_URL", "http://localhost:8000")).rstrip("/"),
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY", "sk_test_placeholder"),
        stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET", "whsec_placeholder"),
        admin_email=os.getenv("ADMIN_EMAIL", "admin@ece-cli.com"),
        admin_password=os.getenv("ADMIN_PASSWORD", "admin123"),
        secret_key=os.getenv("SECRET_KEY", "APPFORGE_DEV_SECRET"),
        build_step_min_delay=float(os.getenv("BUILD_STEP_MIN_DELAY", "3.0")),
        build_step_max_delay=float(os.getenv("BUILD_STEP_MAX_DELAY", "5.0")),
        github_org=os.getenv("GITHUB_ORG", "ece-cli-generated"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
