"""
Rate limiting package for the Gateway.

Holds the fixed window limiter that enforces a per-identity request
budget on routes fronting cost-bearing upstream APIs.
"""

from .fixed_window import FixedWindowRateLimiter, RateLimitDecision, RateWindow, get_client_id

__all__ = ["FixedWindowRateLimiter", "RateLimitDecision", "RateWindow", "get_client_id"]
