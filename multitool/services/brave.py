"""
Brave Search web and local search client.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from multitool.core.config import BraveConfig
from multitool.core.errors import ServiceNotConfigured
from multitool.services.http import HttpClient
from multitool.services.ratelimit import RateLimiter

logger = logging.getLogger("MultiTool.services.brave")

MAX_RESULTS_PER_REQUEST = 20


class BraveSearchClient:
    def __init__(
        self,
        config: BraveConfig,
        limiter: Optional[RateLimiter] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
    ):
        self.config = config
        self.limiter = limiter or RateLimiter.from_config(config)
        self.http = HttpClient(
            "Brave",
            session=session,
            timeout=timeout,
            headers={
                "Accept": "application/json",
                "Accept-Encoding": "gzip",
                "X-Subscription-Token": config.api_key,
            },
        )

    def _require_key(self) -> None:
        if not self.config.api_key:
            raise ServiceNotConfigured("BRAVE_API_KEY environment variable is not set")

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}{path}"

    def _web_results(self, params: Dict[str, Any], deadline: Optional[float]) -> Dict[str, Any]:
        return self.http.request_json("GET", self._url("/web/search"), params=params, deadline=deadline)

    def web_search(self, query: str, count: int = 10, offset: int = 0, deadline: Optional[float] = None) -> str:
        self._require_key()
        self.limiter.check_and_consume()
        data = self._web_results(
            {"q": query, "count": min(count, MAX_RESULTS_PER_REQUEST), "offset": offset},
            deadline,
        )
        results = (data.get("web") or {}).get("results") or []
        return "\n\n".join(
            f"Title: {r.get('title') or ''}\n"
            f"Description: {r.get('description') or ''}\n"
            f"URL: {r.get('url') or ''}"
            for r in results
        )

    def local_search(self, query: str, count: int = 5, deadline: Optional[float] = None) -> str:
        """
        Search for places. When Brave returns no location ids the query is
        retried as a plain web search.
        """
        self._require_key()
        self.limiter.check_and_consume()
        data = self._web_results(
            {
                "q": query,
                "search_lang": "en",
                "result_filter": "locations",
                "count": min(count, MAX_RESULTS_PER_REQUEST),
            },
            deadline,
        )
        location_ids = [
            r["id"] for r in ((data.get("locations") or {}).get("results") or []) if r.get("id")
        ]

        if not location_ids:
            logger.info("No local results for %r; falling back to web search", query)
            self.limiter.pace()
            return self.web_search(query, count, deadline=deadline)

        self.limiter.pace()
        pois = self._lookup("/local/pois", location_ids, deadline)
        self.limiter.pace()
        descriptions = self._lookup("/local/descriptions", location_ids, deadline)
        return format_local_results(pois, descriptions)

    def _lookup(self, path: str, ids: List[str], deadline: Optional[float]) -> Dict[str, Any]:
        self.limiter.consume_monthly()
        return self.http.request_json(
            "GET",
            self._url(path),
            params=[("ids", location_id) for location_id in ids],
            deadline=deadline,
        )


def format_local_results(pois: Dict[str, Any], descriptions: Dict[str, Any]) -> str:
    described = (descriptions or {}).get("descriptions") or {}
    blocks = []
    for poi in (pois or {}).get("results") or []:
        address = poi.get("address") or {}
        address_text = ", ".join(
            part
            for part in (
                address.get("streetAddress") or "",
                address.get("addressLocality") or "",
                address.get("addressRegion") or "",
                address.get("postalCode") or "",
            )
            if part
        ) or "N/A"
        rating = poi.get("rating") or {}
        rating_value = rating.get("ratingValue")
        hours = ", ".join(poi.get("openingHours") or []) or "N/A"
        blocks.append(
            f"Name: {poi.get('name')}\n"
            f"Address: {address_text}\n"
            f"Phone: {poi.get('phone') or 'N/A'}\n"
            f"Rating: {rating_value if rating_value is not None else 'N/A'} "
            f"({rating.get('ratingCount') or 0} reviews)\n"
            f"Price Range: {poi.get('priceRange') or 'N/A'}\n"
            f"Hours: {hours}\n"
            f"Description: {described.get(poi.get('id')) or 'No description available'}\n"
        )
    return "\n---\n".join(blocks) or "No local results found"
