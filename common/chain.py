"""
Bor chain poller: current height, block authors and height waits.
"""

import logging

from common.rpc import RpcError
from common.wait import RetryPolicy, poll_until

logger = logging.getLogger(__name__)


class ChainPoller:
    """
    Reads chain state from Bor JSON-RPC.

    Errors are never retried here; retry policy belongs to the caller.
    """

    def __init__(self, rpc, poll_policy: RetryPolicy | None = None):
        self.rpc = rpc
        self.poll_policy = poll_policy or RetryPolicy(interval=1.0)

    def current_height(self) -> int:
        """
        Raises:
            RpcError: If the call fails or the header has no hex `number`
        """
        block = self.rpc.eth_getBlockByNumber("latest", False)
        number = block.get("number") if isinstance(block, dict) else None
        if not isinstance(number, str) or not number.lower().startswith("0x"):
            raise RpcError({"code": -1, "message": f"missing hex number in response: {block!r}"})
        try:
            return int(number, 16)
        except ValueError as e:
            raise RpcError({"code": -1, "message": f"bad block number {number!r}"}) from e

    def author_of(self, height: int) -> str:
        """
        Raises:
            RpcError: If the call fails or returns no author
        """
        author = self.rpc.bor_getAuthor(hex(height))
        if not author:
            raise RpcError({"code": -1, "message": f"empty author for block {height}"})
        return author

    def wait_for_height(self, target: int, policy: RetryPolicy | None = None) -> int:
        """
        Block until the chain reaches `target`, returning the observed height.

        Polls forever under the default policy. Any `RpcError` aborts the wait.

        Raises:
            RpcError: If a height query fails
            RetryExhaustedError: If a bounded policy runs out first
        """
        policy = policy or self.poll_policy
        logger.debug(f"Waiting for block {target}")
        height = poll_until(
            self.current_height,
            lambda h: h >= target,
            policy,
            error_with=f"Chain did not reach block {target}",
        )
        logger.info(f"Reached block {height} (target {target})")
        return height
