"""
Domain utilities for the Gateway Service.

Request models, payload normalization and the per-route handlers that
tie the rate limiter, caches and upstream adapters together.
"""

from .keyword_ideas import KeywordIdeasHandler
from .top_results import TopResultsHandler

__all__ = [
    "KeywordIdeasHandler",
    "TopResultsHandler",
]
