"""
Rate limiter shared by the auth endpoints: keyed by client IP.
"""

from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
