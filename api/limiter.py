"""
api/limiter.py -- The one slowapi Limiter for TaskGate.

api/main.py mounts it (SlowAPIMiddleware reads app.state.limiter) and
api/routes/v1/auth.py decorates register and login with it. Both must use
this instance: limits are counted in its memory:// storage, keyed by client IP.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
