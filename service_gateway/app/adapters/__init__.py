"""
Adapters package for the Gateway Service.

Contains HTTP client wrappers for the third-party APIs the gateway fronts
(Google OAuth, Google Ads keyword planner, Google Custom Search). These
adapters encapsulate:

- Base URLs and request shapes
- The deadline-bounded executor every upstream call goes through
- Error handling that maps to shared errors

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .upstream_executor import UpstreamExecutor
from .google_ads_auth import AccessToken, GoogleAdsCredentialBroker
from .google_ads_client import KeywordPlannerClient
from .custom_search_client import CustomSearchClient

__all__ = [
    "UpstreamExecutor",
    "AccessToken",
    "GoogleAdsCredentialBroker",
    "KeywordPlannerClient",
    "CustomSearchClient",
]
