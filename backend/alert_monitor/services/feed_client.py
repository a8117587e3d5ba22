"""
Upstream alert feed client.

fetch() returns the decoded JSON payload or a FeedFailure value. It never
raises: the scheduler decides whether a failure is worth logging, and the next
tick is the retry.
"""
from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from alert_monitor.core.config import Settings
from alert_monitor.utils.http_client import (
    OutboundURLError,
    RequestException,
    Timeout,
    http_get,
)

logger = logging.getLogger(__name__)


@dataclass
class FeedFailure:
    """Why a fetch produced no payload."""

    reason: str  # "timeout" | "network" | "status" | "decode" | "config"
    message: str
    status_code: Optional[int] = None


FeedResult = Union[Any, FeedFailure]


def is_failure(result: FeedResult) -> bool:
    return isinstance(result, FeedFailure)


def _decode_body(body: bytes) -> Any:
    # Some feeds prefix a UTF-8 BOM, and answer "no alerts" with an empty body
    text = body.decode("utf-8-sig").strip()
    if not text:
        return []
    return json.loads(text)


class FeedClient:
    """Fetches the raw upstream payload; performs no interpretation."""

    def __init__(self, settings: Settings):
        self.url = settings.FEED_URL
        self.sample_path = settings.FEED_SAMPLE_PATH
        self.timeout = settings.FEED_TIMEOUT_SECONDS
        self.headers = {
            "User-Agent": settings.FEED_USER_AGENT,
            "X-Requested-With": "XMLHttpRequest",
            "Accept": "application/json, text/plain, */*",
        }
        if settings.FEED_REFERER:
            self.headers["Referer"] = settings.FEED_REFERER

    @property
    def source(self) -> str:
        return f"file:{self.sample_path}" if self.sample_path else self.url

    def fetch(self) -> FeedResult:
        if self.sample_path:
            return self._fetch_sample()
        return self._fetch_http()[0]

    def probe(self) -> Dict[str, Any]:
        """Connectivity details for the test-connection endpoint."""
        t0 = time.perf_counter()
        if self.sample_path:
            result, status_code = self._fetch_sample(), None
        else:
            result, status_code = self._fetch_http()
        elapsed_ms = round((time.perf_counter() - t0) * 1000, 1)
        if is_failure(result):
            return {
                "ok": False,
                "source": self.source,
                "status_code": result.status_code,
                "elapsed_ms": elapsed_ms,
                "error": f"{result.reason}: {result.message}",
            }
        return {
            "ok": True,
            "source": self.source,
            "status_code": status_code,
            "elapsed_ms": elapsed_ms,
            "error": None,
        }

    def _fetch_http(self):
        try:
            response = http_get(
                self.url,
                timeout=self.timeout,
                headers=self.headers,
                calling_module="feed_client",
            )
        except Timeout as e:
            return FeedFailure("timeout", f"no response within {self.timeout}s: {e}"), None
        except (RequestException, OutboundURLError) as e:
            return FeedFailure("network", str(e)), None

        if not 200 <= response.status_code < 300:
            return FeedFailure(
                "status",
                f"upstream answered HTTP {response.status_code}",
                status_code=response.status_code,
            ), response.status_code

        try:
            return _decode_body(response.content), response.status_code
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            return FeedFailure(
                "decode", f"body is not JSON: {e}", status_code=response.status_code
            ), response.status_code

    def _fetch_sample(self) -> FeedResult:
        if not os.path.exists(self.sample_path):
            return FeedFailure("config", f"sample file not found: {self.sample_path}")
        try:
            with open(self.sample_path, "rb") as f:
                return _decode_body(f.read())
        except OSError as e:
            return FeedFailure("config", f"cannot read sample file: {e}")
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            return FeedFailure("decode", f"sample file is not JSON: {e}")
