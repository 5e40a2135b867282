"""
Bor execution-layer service.
"""

from typing import TypedDict

from common.chain import ChainPoller
from common.rpc import JsonRpcClient
from common.services.base import RemoteService
from common.wait import RetryPolicy


class BorProps(TypedDict):
    url: str
    timeout: int


class BorService(RemoteService):
    props: BorProps

    def __init__(self, props: BorProps, name: str = "bor"):
        super().__init__(dict(props), name)

    def create_client(self) -> JsonRpcClient:
        return JsonRpcClient(self.props["url"], name=self._name, timeout=self.props["timeout"])

    def _health_check(self, client):
        client.eth_blockNumber()

    def create_poller(self, poll_policy: RetryPolicy | None = None) -> ChainPoller:
        return ChainPoller(self.create_client(), poll_policy)
