from pydantic_settings import BaseSettings
from typing import Optional, List


def _parse_allowed_origins(v: str) -> List[str]:
    """Parse comma-separated origins string; strip whitespace; keep non-empty."""
    if not v or not v.strip():
        return []
    return [o.strip() for o in v.split(",") if o.strip()]


_DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


class Settings(BaseSettings):
    # Stripe (required)
    STRIPE_SECRET_KEY: str
    STRIPE_WEBHOOK_SECRET: str  # Webhook signing secret (whsec_...)

    # Database (required)
    DATABASE_URL: str
    DATABASE_SERVICE_KEY: str  # Service credential; used as password when DATABASE_URL has none

    # Signature timestamps older than this are rejected as replays
    WEBHOOK_TOLERANCE_SECONDS: int = 300

    # Price ids per plan, used when opening a checkout session
    STRIPE_PRICE_MONTHLY: Optional[str] = None
    STRIPE_PRICE_YEARLY: Optional[str] = None

    # Frontend base URL for checkout redirects
    FRONTEND_URL: str = "http://localhost:5173"

    # CORS: comma-separated extra origins for production
    ALLOWED_ORIGINS_EXTRA: str = ""

    LOG_LEVEL: str = "INFO"

    def get_allowed_origins(self) -> List[str]:
        """Return CORS allowed origins: default localhost + ALLOWED_ORIGINS_EXTRA."""
        return _DEFAULT_CORS_ORIGINS + _parse_allowed_origins(self.ALLOWED_ORIGINS_EXTRA)

    def price_for_plan(self, plan: str) -> Optional[str]:
        return {
            "monthly": self.STRIPE_PRICE_MONTHLY,
            "yearly": self.STRIPE_PRICE_YEARLY,
        }.get(plan)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Raises pydantic.ValidationError at import when a required option is missing,
# so a misconfigured deployment never starts serving webhooks.
settings = Settings()
