"""
Shared ``requests`` plumbing for the remote adapters.

Deadlines are absolute ``time.monotonic()`` values. Each request timeout is
clamped to the time left before the deadline so a tool call never blocks
past its budget.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional

import requests

from multitool.core.errors import OperationTimedOut, RemoteServiceError

logger = logging.getLogger("MultiTool.services.http")

DEFAULT_TIMEOUT_SEC = 15.0


def remaining_seconds(deadline: Optional[float]) -> Optional[float]:
    if deadline is None:
        return None
    return deadline - time.monotonic()


def effective_timeout(timeout: float, deadline: Optional[float], target: str) -> float:
    remaining = remaining_seconds(deadline)
    if remaining is None:
        return timeout
    if remaining <= 0:
        raise OperationTimedOut(f"Deadline exceeded before request to {target}")
    return min(timeout, max(0.001, remaining))


class HttpClient:
    """
    Thin wrapper around a ``requests.Session`` for one remote service.

    Transport failures become RemoteServiceError, timeouts become
    OperationTimedOut and HTTP statuses >= 400 become RemoteServiceError with
    the response body attached.
    """

    def __init__(
        self,
        service: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.service = service
        self.timeout = timeout
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._headers = dict(headers or {})

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def request(
        self,
        method: str,
        url: str,
        *,
        deadline: Optional[float] = None,
        params: Any = None,
        json_body: Any = None,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        merged_headers = dict(self._headers)
        if headers:
            merged_headers.update(headers)

        timeout = effective_timeout(self.timeout, deadline, url)
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                data=data,
                headers=merged_headers,
                timeout=timeout,
            )
        except requests.Timeout as exc:
            raise OperationTimedOut(f"{self.service} request timed out after {timeout:.1f}s") from exc
        except requests.RequestException as exc:
            logger.warning("%s request failed: %s %s: %s", self.service, method, url, exc)
            raise RemoteServiceError(
                f"Unable to reach {self.service}: {exc}", service=self.service
            ) from exc

        if response.status_code >= 400:
            body = response.text
            raise RemoteServiceError(
                f"{self.service} API error: {response.status_code} {response.reason or ''}".rstrip()
                + (f"\n{body}" if body else ""),
                service=self.service,
                status_code=response.status_code,
                payload=body,
            )
        return response

    def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        response = self.request(method, url, **kwargs)
        try:
            return response.json()
        except (ValueError, json.JSONDecodeError) as exc:
            raise RemoteServiceError(
                f"{self.service} returned a non-JSON response",
                service=self.service,
                status_code=response.status_code,
                payload=response.text,
            ) from exc
