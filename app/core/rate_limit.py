from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config.settings import settings

# Shared by the app factory (default limits) and auth routes (stricter per-route limits)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    enabled=settings.rate_limit_enabled,
)
