"""
app/core/limiter.py

Rate Limiter Configuration

SlowAPI limiter keyed on the remote address. Can be switched off through
RATE_LIMIT_ENABLED (the test suite does this).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# ---------------------------------------------------
# Rate Limiter Initialization
# ---------------------------------------------------
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
