"""
Simple JSON-RPC client.
"""

import json
import logging
from typing import Any

import requests


def with_scheme(url: str) -> str:
    """Prepend `http://` to bare `host:port` endpoints."""
    if url.startswith(("http://", "https://")):
        return url
    return f"http://{url}"


class RpcError(Exception):
    """Raised when an RPC call fails or returns an error envelope."""

    def __init__(self, error: dict):
        self.code = error.get("code")
        self.message = error.get("message")
        self.data = error.get("data")
        super().__init__(f"RPC Error {self.code}: {self.message}")


class JsonRpcClient:
    """
    JSON-RPC 2.0 client over HTTP POST.

    Supports attribute-style method calls:
        rpc.eth_getBlockByNumber("latest", False)
        rpc.bor_getAuthor("0x8e")

    Transport failures and non-2xx statuses surface as `RpcError` with code -1,
    so callers deal with a single error type.
    """

    def __init__(self, url: str, name: str | None = None, timeout: int = 10):
        self.url = with_scheme(url)
        self.name = name or url
        self.timeout = timeout
        self.id_counter = 0
        self.logger = logging.getLogger(f"rpc.{self.name}")

    def __getattr__(self, method: str):
        """
        Allow method calls as attributes.
        rpc.bor_getAuthor("0x1") -> calls "bor_getAuthor" method
        """
        if method.startswith("_"):
            raise AttributeError(method)

        def rpc_call(*params):
            return self._call(method, params)

        return rpc_call

    def _call(self, method: str, params: tuple) -> Any:
        self.id_counter += 1

        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params),
            "id": self.id_counter,
        }

        self.logger.debug(f"RPC call: {method}({params})")

        try:
            resp = requests.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.warning(f"RPC request failed: {e}")
            raise RpcError({"code": -1, "message": f"{method} request failed: {e}"}) from e

        if not resp.ok:
            self.logger.warning(f"RPC {method} returned HTTP {resp.status_code}")
            raise RpcError(
                {
                    "code": -1,
                    "message": f"unexpected status {resp.status_code}: {resp.text.strip()}",
                }
            )

        try:
            result = resp.json()
        except json.JSONDecodeError as e:
            self.logger.warning(f"Invalid JSON response: {resp.text}")
            raise RpcError({"code": -1, "message": f"Invalid JSON: {e}"}) from e

        if not isinstance(result, dict):
            self.logger.warning(f"Unexpected RPC response: {resp.text}")
            raise RpcError({"code": -1, "message": f"unexpected response: {resp.text}"})

        error = result.get("error")
        if error and error.get("message"):
            self.logger.warning(f"RPC error: {error}")
            raise RpcError(error)

        return result.get("result")

    def call(self, method: str, *params) -> Any:
        """
        Explicit call method (alternative to attribute style).

        Usage:
            rpc.call("eth_getBlockByNumber", "latest", False)
        """
        return self._call(method, params)
