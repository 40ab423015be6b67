"""
backend/cleanconnect/core/limiter.py

SlowAPI limiter for the mutating endpoints (bookings, updates, reviews,
messages). Clients behind the ingress proxy are keyed by the first
X-Forwarded-For hop.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(key_func=client_key)
