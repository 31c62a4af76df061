"""
Shared request rate limiter

Route decorators bind to this single Limiter at import time, so its state is
process-wide: `enabled` and the counters apply to every app built in the
process. create_app sets `enabled` from the settings of the app it builds;
the last app built wins. Use set_rate_limiting to change it afterwards.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)


def set_rate_limiting(enabled: bool) -> bool:
    """Switch limiting on or off for the whole process, returning the previous value"""
    previous = limiter.enabled
    limiter.enabled = enabled
    return previous
