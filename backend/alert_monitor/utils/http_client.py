"""
HTTP CLIENT WRAPPER

This is the ONLY allowed entry point for outbound HTTP requests in the backend.
All outbound requests go through here so that timeouts, scheme checks and
audit logging are applied in one place.

DO NOT:
- Use requests.get/post directly
- Use urllib.request directly
- Import requests/urllib outside this file

DO:
- Import this module: from alert_monitor.utils.http_client import http_get
- Always pass an explicit timeout for calls on the polling path
"""
import logging
import time
import uuid
from typing import Dict, Optional
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)

# Re-exported so callers can catch network errors without importing requests
RequestException = requests.exceptions.RequestException
Timeout = requests.exceptions.Timeout


class OutboundURLError(ValueError):
    """Raised for URLs that are not plain http(s) endpoints."""


def validate_outbound_url(url: str) -> str:
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise OutboundURLError(f"Refusing outbound request to non-http(s) URL: {url!r}")
    return url


def http_get(
    url: str,
    timeout: float = 10.0,
    headers: Optional[Dict[str, str]] = None,
    calling_module: str = "unknown",
    allow_redirects: bool = False,
    **kwargs
) -> requests.Response:
    """
    Synchronous HTTP GET request with URL validation and audit logging.

    Args:
        url: The URL to request
        timeout: Request timeout in seconds
        headers: Optional HTTP headers
        calling_module: Name of the calling module (for logging)
        allow_redirects: Whether to follow redirects (default: False)
        **kwargs: Additional arguments passed to requests.get()

    Returns:
        requests.Response object

    Raises:
        OutboundURLError: If the URL is not http(s)
        requests.exceptions.RequestException: On network errors and timeouts
    """
    validated_url = validate_outbound_url(url)

    # Correlation ID ties the request log line to the response log line
    correlation_id = str(uuid.uuid4())[:8]
    request_headers = headers or {}

    t0 = time.perf_counter()
    try:
        response = requests.get(
            validated_url,
            timeout=timeout,
            headers=request_headers,
            allow_redirects=allow_redirects,
            **kwargs
        )
    except requests.exceptions.RequestException as e:
        logger.warning(
            f"[HTTP_CLIENT] GET request failed: {url} (called from {calling_module}, "
            f"correlation_id={correlation_id}): {e}"
        )
        raise

    elapsed_ms = (time.perf_counter() - t0) * 1000
    logger.debug(
        f"[HTTP_CLIENT] GET {validated_url} -> {response.status_code} in {elapsed_ms:.0f}ms "
        f"(called from {calling_module}, correlation_id={correlation_id})"
    )
    return response
