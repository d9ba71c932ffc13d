#!/usr/bin/env python3
"""
Check that the billing service's environment is complete.

Settings() fails on a missing required option, so importing the config is
the check; the rest prints what was resolved with secrets masked.
"""
import os
import sys

# Add parent directory to path to import clinic_billing modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pydantic import ValidationError


def _mask(value):
    return '***' + value[-4:] if value else '(not set)'


def main() -> int:
    try:
        from clinic_billing.core.config import settings
    except ValidationError as e:
        print("❌ Configuration is incomplete:")
        for err in e.errors():
            print(f"  {'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
        return 1

    print("=" * 60)
    print("Environment Variables Check")
    print("=" * 60)
    print(f"  STRIPE_SECRET_KEY: {_mask(settings.STRIPE_SECRET_KEY)}")
    print(f"  STRIPE_WEBHOOK_SECRET: {_mask(settings.STRIPE_WEBHOOK_SECRET)}")
    print(f"  DATABASE_URL: {settings.DATABASE_URL.split('@')[-1]}")
    print(f"  DATABASE_SERVICE_KEY: {_mask(settings.DATABASE_SERVICE_KEY)}")
    print(f"  WEBHOOK_TOLERANCE_SECONDS: {settings.WEBHOOK_TOLERANCE_SECONDS}")
    print(f"  STRIPE_PRICE_MONTHLY: {settings.STRIPE_PRICE_MONTHLY or '(not set)'}")
    print(f"  STRIPE_PRICE_YEARLY: {settings.STRIPE_PRICE_YEARLY or '(not set)'}")
    print(f"  FRONTEND_URL: {settings.FRONTEND_URL}")

    if not settings.STRIPE_WEBHOOK_SECRET.startswith("whsec_"):
        print("⚠️  STRIPE_WEBHOOK_SECRET does not look like a signing secret (expected whsec_...)")
    if not (settings.STRIPE_PRICE_MONTHLY and settings.STRIPE_PRICE_YEARLY):
        print("⚠️  Checkout is unavailable for plans without a price id")

    print("✅ Configuration loaded")
    return 0


if __name__ == "__main__":
    sys.exit(main())
