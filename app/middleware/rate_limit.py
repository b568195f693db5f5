"""
Request rate limiting.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings


# Rate limiter applied to every route through SlowAPIMiddleware
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_requests}/minute"],
)

RATE_LIMITED_RESPONSE = {
    429: {
        "description": "Rate limit exceeded",
    }
}
