"""Thin wrappers around the upstream HTTP APIs."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

import requests

from .config import UPSTREAM_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """Raised when an upstream call fails or returns something unusable."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        url: Optional[str] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.url = url
        self.body = body


def get(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    session: Optional[requests.Session] = None,
    timeout: float = UPSTREAM_TIMEOUT,
) -> requests.Response:
    """GET a URL with our headers. Network failures become UpstreamError."""
    sess = session or requests.Session()
    headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    try:
        return sess.get(url, params=params, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise UpstreamError(f"request to {url} failed: {e}", url=url) from e


def fetch_json(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    session: Optional[requests.Session] = None,
    timeout: float = UPSTREAM_TIMEOUT,
) -> Any:
    """Fetch JSON from URL. Non-2xx statuses and bad bodies raise UpstreamError."""
    response = get(url, params=params, session=session, timeout=timeout)
    if not response.ok:
        raise UpstreamError(
            f"{url} returned {response.status_code}",
            status=response.status_code,
            url=response.url or url,
            body=response.text,
        )
    try:
        return response.json()
    except ValueError as e:
        raise UpstreamError(f"{url} returned malformed JSON", status=response.status_code, url=url) from e


def sanitize_value(value: Any) -> Optional[float]:
    """Coerce an upstream number, dropping anything non-finite or non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return num


def first_value(values: Any) -> Optional[float]:
    """First element of an upstream hourly array, or None."""
    if not isinstance(values, list) or not values:
        return None
    return sanitize_value(values[0])
