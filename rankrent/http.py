from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any

import requests

from rankrent.state import LocalStorage, auth_token, current_user_id

logger = logging.getLogger("rankrent.http")

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}
IDEMPOTENT_METHODS = {"GET", "PUT", "DELETE"}


class ApiError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class ApiClient:
    base_url: str
    storage: LocalStorage
    timeout_seconds: int = 10
    max_retries: int = 3
    backoff_seconds: tuple[int, int, int] = (2, 4, 8)

    def url_for(self, path: str) -> str:
        normalized = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url.rstrip('/')}{normalized}"

    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        token = auth_token(self.storage)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        user_id = current_user_id(self.storage)
        if user_id is not None:
            headers["X-User-ID"] = str(user_id)
        return headers

    def get_json(self, path: str) -> Any:
        return self._decode(self._request("GET", path))

    def post_json(self, path: str, body: dict[str, Any]) -> Any:
        return self._decode(self._request("POST", path, json=body))

    def put_json(self, path: str, body: dict[str, Any]) -> Any:
        return self._decode(self._request("PUT", path, json=body))

    def delete(self, path: str) -> None:
        self._request("DELETE", path)

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if response.status_code == 204 or not response.text.strip():
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(f"Invalid JSON from {response.url}: {exc}", response.status_code) from exc

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = self.url_for(path)
        attempts = self.max_retries if method in IDEMPOTENT_METHODS else 1
        last_error = ApiError(f"Request failed: {method} {url}")

        for attempt in range(attempts):
            try:
                resp = requests.request(method, url, headers=self.headers(), timeout=self.timeout_seconds, **kwargs)
            except requests.RequestException as exc:
                last_error = ApiError(f"Request failed: {method} {url} ({exc})")
            else:
                if 200 <= resp.status_code < 300:
                    return resp
                last_error = ApiError(f"API Error: {resp.status_code} {resp.reason or ''}".rstrip(), resp.status_code)
                self._log_error_body(resp)
                if resp.status_code not in RETRYABLE_STATUSES:
                    break

            if attempt >= attempts - 1:
                break
            delay = self.backoff_seconds[min(attempt, len(self.backoff_seconds) - 1)]
            logger.info("retrying %s %s in %ss: %s", method, url, delay, last_error)
            time.sleep(delay)

        raise last_error

    @staticmethod
    def _log_error_body(resp: requests.Response) -> None:
        try:
            body = resp.json()
        except ValueError:
            body = resp.text[:200]
        logger.warning("API error response %s: %s", resp.status_code, json.dumps(body) if isinstance(body, (dict, list)) else body)


def unwrap_data(payload: Any) -> Any:
    """Return the `data` member of a `{"data": ...}` envelope, or the payload itself."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload
