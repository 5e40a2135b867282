"""
Heimdall consensus-layer REST service.
"""

from typing import TypedDict

from common.config.constants import SPAN_PATH
from common.rest import RestClient
from common.services.base import RemoteService
from common.spans import SpanRegistry


class HeimdallProps(TypedDict):
    url: str
    timeout: int


class HeimdallService(RemoteService):
    props: HeimdallProps

    def __init__(self, props: HeimdallProps, name: str = "heimdall"):
        super().__init__(dict(props), name)

    def create_client(self) -> RestClient:
        return RestClient(self.props["url"], name=self._name, timeout=self.props["timeout"])

    def _health_check(self, client):
        client.get(SPAN_PATH.format(index=0))

    def create_span_registry(self) -> SpanRegistry:
        return SpanRegistry(self.create_client())
