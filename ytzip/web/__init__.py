"""
HTTP Layer.

This package contains the aiohttp application that exposes archive jobs and
format lookups over HTTP, and the rate limiter guarding it.
"""

from .app import create_app, run_server
from .rate_limiter import FixedWindowRateLimiter

__all__ = ["FixedWindowRateLimiter", "create_app", "run_server"]
