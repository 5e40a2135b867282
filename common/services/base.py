"""
Service wrappers for endpoints of an externally managed devnet.

The devnet is started outside the test runner, so these services have no
process of their own: start/stop only flip a flag, and status is judged by
calling the endpoint.
"""

import logging
from typing import Any

import flexitest

from common.wait import wait_until


class RemoteService(flexitest.Service):
    """
    flexitest service pointing at an already running endpoint.

    Subclasses implement create_client() and _health_check().

    Usage:
        class MyService(RemoteService):
            def create_client(self):
                return JsonRpcClient(self.props["url"])

            def _health_check(self, client):
                client.eth_blockNumber()

        svc = MyService({"url": "http://localhost:8545"}, name="bor")
        svc.start()
        svc.wait_for_ready(timeout=10)
    """

    def __init__(self, props: dict[str, Any], name: str):
        super().__init__(props)
        self._name = name
        self._started = False
        self._logger = logging.getLogger(f"service.{self._name}")

    def start(self):
        self._logger.info(f"Using external endpoint {self.props.get('url')}")
        self._started = True

    def stop(self):
        self._started = False

    def is_started(self) -> bool:
        return self._started

    def create_client(self):
        raise NotImplementedError("Subclass must implement create_client()")

    def _health_check(self, client: Any) -> None:
        raise NotImplementedError("Subclass must implement _health_check()")

    def check_status(self) -> bool:
        if not self._started:
            return False
        try:
            self._health_check(self.create_client())
            return True
        except Exception as e:
            self._logger.debug(f"health check failed: {e}")
            return False

    def wait_for_ready(self, timeout: int = 30, interval: float = 0.5) -> None:
        """
        Raises:
            AssertionError: If the endpoint doesn't respond within timeout
        """
        wait_until(
            self.check_status,
            error_with=f"Service '{self._name}' not ready",
            timeout=timeout,
            step=interval,
        )
