"""
Normalization of upstream payloads into the gateway response contract.

Top-level shape problems fail the request with ``ShapeError``. Problems with
a single record never do: each record is normalized inside its own boundary
and a malformed one is replaced by a placeholder, so the output always has
one entry per upstream record.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar
from urllib.parse import quote_plus, urlencode, urlsplit

from shared.errors import RecordError, ShapeError
from shared.logging import get_logger


logger = get_logger("gateway.transformers")

REDACTED = "REDACTED"

UNKNOWN_KEYWORD_IDEA: Dict[str, Any] = {
    "keyword": "Unknown",
    "avgMonthlySearches": 0,
    "competitionIndex": 0,
}

EMPTY_SEARCH_RESULT: Dict[str, str] = {
    "title": "",
    "link": "",
    "displayLink": "",
}

_LEADING_INTEGER = re.compile(r"^\s*([+-]?\d+)")

T = TypeVar("T")


@dataclass
class KeywordIdeasPage:
    results: List[Dict[str, Any]]
    next_page_token: Optional[str] = None
    recovered: int = 0


@dataclass
class SearchResultsPage:
    results: List[Dict[str, str]]
    recovered: int = 0


def parse_int(value: Any) -> int:
    """Parse a metric the way the upstream encodes it (int64 as string).

    ``None`` means the field was omitted and reads as 0. Strings use their
    leading integer (``"12.7"`` is 12). Anything else raises ``RecordError``.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise RecordError(f"Unexpected boolean metric {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise RecordError(f"Non-finite metric {value!r}")
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INTEGER.match(value)
        if match:
            return int(match.group(1))
        raise RecordError(f"Unparsable metric {value!r}")
    raise RecordError(f"Unexpected metric type {type(value).__name__}")


def map_records(
    records: Sequence[Any],
    normalize: Callable[[Any], T],
    fallback: Callable[[], T],
    *,
    source: str,
) -> List[T]:
    """Normalize each record independently, substituting ``fallback()`` on failure."""
    output: List[T] = []
    for index, record in enumerate(records):
        try:
            output.append(normalize(record))
        except (RecordError, TypeError, ValueError, AttributeError, KeyError) as exc:
            logger.warning(
                "Replacing malformed upstream record",
                source=source,
                index=index,
                error=str(exc),
            )
            output.append(fallback())
    return output


def _normalize_keyword_idea(item: Any) -> Dict[str, Any]:
    if not isinstance(item, dict):
        raise RecordError(f"Keyword idea is {type(item).__name__}, not an object")

    metrics = item.get("keywordIdeaMetrics")
    if not isinstance(metrics, dict):
        raise RecordError("Keyword idea has no keywordIdeaMetrics object")

    text = item.get("text")
    keyword = text if isinstance(text, str) and text else "Unknown"

    return {
        "keyword": keyword,
        "avgMonthlySearches": parse_int(metrics.get("avgMonthlySearches")),
        "competitionIndex": parse_int(metrics.get("competitionIndex")),
    }


def normalize_keyword_ideas(payload: Any) -> KeywordIdeasPage:
    """Reshape a ``generateKeywordIdeas`` response.

    Results are sorted by descending monthly searches; ties keep upstream order.
    """
    if not isinstance(payload, dict):
        raise ShapeError(
            "Invalid response from Google Ads API",
            details="Response is not a valid object",
        )

    records = payload.get("results")
    if not isinstance(records, list):
        raise ShapeError(
            "Invalid response from Google Ads API",
            details=f"Expected results to be an array, got {_type_name(records)}",
        )

    recovered = 0

    def fallback() -> Dict[str, Any]:
        nonlocal recovered
        recovered += 1
        return dict(UNKNOWN_KEYWORD_IDEA)

    results = map_records(records, _normalize_keyword_idea, fallback, source="google_ads")
    results.sort(key=lambda idea: idea["avgMonthlySearches"], reverse=True)

    next_page_token = payload.get("nextPageToken") or None
    if next_page_token is not None and not isinstance(next_page_token, str):
        next_page_token = str(next_page_token)

    return KeywordIdeasPage(results=results, next_page_token=next_page_token, recovered=recovered)


def _host_of(link: str) -> str:
    try:
        return urlsplit(link).hostname or ""
    except ValueError:
        return ""


def _normalize_search_item(item: Any) -> Dict[str, str]:
    if not isinstance(item, dict):
        raise RecordError(f"Search item is {type(item).__name__}, not an object")

    title = item.get("title") or ""
    link = item.get("link") or ""
    display_link = item.get("displayLink") or _host_of(str(link))
    return {
        "title": str(title),
        "link": str(link),
        "displayLink": str(display_link),
    }


def normalize_search_results(payload: Any) -> SearchResultsPage:
    """Reshape a Custom Search response. A missing ``items`` list means no results."""
    if not isinstance(payload, dict):
        raise ShapeError(
            "Invalid response from Google Custom Search API",
            details="Response is not a valid object",
        )

    items = payload.get("items")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise ShapeError(
            "Invalid response from Google Custom Search API",
            details=f"Expected items to be an array, got {_type_name(items)}",
        )

    recovered = 0

    def fallback() -> Dict[str, str]:
        nonlocal recovered
        recovered += 1
        return dict(EMPTY_SEARCH_RESULT)

    results = map_records(items, _normalize_search_item, fallback, source="google_cse")
    return SearchResultsPage(results=results, recovered=recovered)


def redact_secrets(text: str, secrets: Iterable[Optional[str]]) -> str:
    """Replace every occurrence of each secret, raw or URL-encoded, with ``REDACTED``."""
    for secret in secrets:
        if not secret:
            continue
        for form in {secret, quote_plus(secret)}:
            text = text.replace(form, REDACTED)
    return text


def build_params_used(
    q: str,
    params: Dict[str, str],
    secrets: Iterable[Optional[str]] = (),
) -> str:
    """Rebuild the Custom Search query string with credentials redacted."""
    query = [
        ("q", q),
        ("num", "10"),
        ("start", "1"),
        ("key", REDACTED),
        ("cx", REDACTED),
    ]
    if params.get("lr"):
        query.append(("lr", params["lr"]))
    if params.get("cr"):
        query.append(("cr", params["cr"]))
    return redact_secrets(urlencode(query), secrets)


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """Log-safe fragment of a secret: ``***`` plus its last ``visible`` characters."""
    if not value:
        return "missing"
    if len(value) <= visible * 2:
        return "***"
    return "***" + value[-visible:]


def _type_name(value: Any) -> str:
    if value is None:
        return "undefined"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__
