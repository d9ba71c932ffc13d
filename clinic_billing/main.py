import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinic_billing.api import checkout, webhooks
from clinic_billing.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Clinic Billing API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Unhandled errors become a JSON 500; CORS headers are kept for browser callers."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")

    response = JSONResponse(status_code=500, content={"detail": "Internal server error"})

    origin = request.headers.get("origin")
    if origin and origin in settings.get_allowed_origins():
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"

    return response


# Stripe posts to /webhooks/stripe; the settings page posts to /api/create-checkout-session
app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(checkout.router, prefix="/api", tags=["checkout"])


@app.get("/")
async def root():
    return {"message": "Clinic Billing API", "version": "1.0.0"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
