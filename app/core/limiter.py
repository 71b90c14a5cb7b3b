from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled,
)

ANALYZE_RATE_LIMIT = f"{settings.rate_limit_per_minute}/minute"
