"""
Minimal REST client for the Heimdall API.
"""

import json
import logging
from typing import Any

import requests

from common.rpc import with_scheme


class RestError(Exception):
    """
    Raised when a REST request fails.

    `status` is None for transport failures. `code`/`message` are filled from a
    structured `{"error": {"code", "message"}}` body when the server sent one.
    """

    def __init__(
        self,
        url: str,
        message: str,
        status: int | None = None,
        code: int | None = None,
    ):
        self.url = url
        self.status = status
        self.code = code
        self.message = message
        super().__init__(f"GET {url} failed (status={status}, code={code}): {message}")


class RestClient:
    """
    GET-only JSON client.

    Usage:
        rest = RestClient("localhost:1317")
        span = rest.get("/bor/spans/0")
    """

    def __init__(self, base_url: str, name: str | None = None, timeout: int = 10):
        self.base_url = with_scheme(base_url).rstrip("/")
        self.name = name or base_url
        self.timeout = timeout
        self.logger = logging.getLogger(f"rest.{self.name}")

    def get(self, path: str) -> Any:
        """
        Fetch `path` and decode its JSON body.

        A body carrying an `error` object raises `RestError` with its code and
        message, whatever the HTTP status was.

        Raises:
            RestError: On transport failure, error envelope, non-2xx status or bad JSON
        """
        url = f"{self.base_url}{path}"
        self.logger.debug(f"GET {url}")

        try:
            resp = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise RestError(url, str(e)) from e

        try:
            body = resp.json()
        except json.JSONDecodeError as e:
            if not resp.ok:
                raise RestError(url, resp.text.strip(), status=resp.status_code) from e
            raise RestError(url, f"invalid JSON: {e}", status=resp.status_code) from e

        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]
            if error.get("message"):
                raise RestError(
                    url, error["message"], status=resp.status_code, code=error.get("code")
                )

        # Cosmos gateway errors come as a flat {"code", "message"} object.
        if not resp.ok:
            message = body.get("message") if isinstance(body, dict) else None
            code = body.get("code") if isinstance(body, dict) else None
            raise RestError(url, message or resp.text.strip(), status=resp.status_code, code=code)

        return body
