"""HTTP client with retries for the record store."""

from __future__ import annotations

import json
import os
import time
from typing import Any, Dict, Mapping, Optional

import requests

from .utils import logger, merge_dicts

DEFAULT_HEADERS = {
    "User-Agent": os.getenv("KINFOLD_USER_AGENT", "kinfold/0.1"),
}

RETRY_STATUSES = {429, 500, 502, 503, 504}


class HTTPError(RuntimeError):
    pass


class HTTPClient:
    def __init__(
        self,
        session: requests.Session | None = None,
        max_retries: int = 3,
        backoff: float = 0.5,
        timeout: int = 30,
    ) -> None:
        self.session = session or requests.Session()
        self.max_retries = max_retries
        self.backoff = backoff
        self.timeout = timeout

    def request(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        json_body: Optional[Any] = None,
    ) -> requests.Response:
        headers = merge_dicts(DEFAULT_HEADERS, dict(headers or {}))
        for attempt in range(self.max_retries):
            try:
                resp = self.session.request(
                    method,
                    url,
                    params=params,
                    headers=headers,
                    json=json_body,
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                sleep_for = self.backoff * (2**attempt)
                logger.warning("HTTP %s failed (%s), retrying in %.2fs", url, exc, sleep_for)
                time.sleep(sleep_for)
                continue
            if resp.status_code in (200, 304):
                return resp
            if resp.status_code in RETRY_STATUSES:
                sleep_for = self.backoff * (2**attempt)
                logger.warning("HTTP %s returned %s, retrying in %.2fs", url, resp.status_code, sleep_for)
                time.sleep(sleep_for)
                continue
            raise HTTPError(f"Request failed with status {resp.status_code}: {resp.text[:200]}")
        raise HTTPError(f"Exceeded retries for {url}")

    def get_json(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        resp = self.request("GET", url, params=params, headers=headers)
        try:
            return resp.json()
        except json.JSONDecodeError as exc:
            raise HTTPError(f"Invalid JSON response from {url}") from exc


__all__ = ["HTTPClient", "HTTPError", "DEFAULT_HEADERS"]
