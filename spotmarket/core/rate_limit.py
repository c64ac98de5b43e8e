"""
rate_limit.py — Global rate limiter instance.

Uses slowapi (a Starlette-compatible wrapper around the `limits` library).
Requests are keyed by client IP address.

Limited routes:
  GET  /api/places/search          — 60/minute (each call may hit Google)
  POST /api/create-payment-intent  — 20/minute (each call hits Stripe)

Usage in routes:
    @router.get("/some-proxy")
    @limiter.limit("20/minute")
    async def my_endpoint(request: Request, ...):
        ...
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

PLACES_SEARCH_LIMIT = "60/minute"
PAYMENT_INTENT_LIMIT = "20/minute"
