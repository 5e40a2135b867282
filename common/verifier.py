"""
End-to-end producer planned downtime verification.

The protocol runs strictly in order:

    1. wait for a minimum chain height
    2. resolve the target producer's address
    3. estimate the block range of a future downtime window
    4. locate the span covering the estimated start
    5. submit the downtime for that span's producer
    6. reconcile the authoritative range from Heimdall
    7-10. assert block authors before, at the start, at the end and after the window

Any failure aborts the run; there is no partial success.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from web3 import Web3

from common.config import DowntimeTestConfig
from common.downtime import BlockRange, DowntimeReconciler, DowntimeWindow
from common.errors import RetryExhaustedError, VerificationError
from common.spans import Span
from common.wait import retry_until

logger = logging.getLogger(__name__)


def _normalize_address(address: str) -> str:
    lowered = address.lower()
    prefixed = lowered if lowered.startswith("0x") else f"0x{lowered}"
    if Web3.is_address(prefixed):
        return Web3.to_checksum_address(prefixed)
    return lowered


def same_address(a: str, b: str) -> bool:
    """Case-insensitive address comparison that tolerates a missing 0x prefix."""
    return _normalize_address(a) == _normalize_address(b)


@dataclass
class Checkpoint:
    name: str
    height: int
    expected_author: str
    actual_author: str
    excluded_author: str | None = None


@dataclass
class DowntimeReport:
    target_validator_id: int
    target_address: str
    span: Span
    window: DowntimeWindow
    checkpoints: list[Checkpoint] = field(default_factory=list)

    @property
    def authoritative(self) -> BlockRange:
        if self.window.authoritative is None:
            raise VerificationError("downtime window has no authoritative block range yet")
        return self.window.authoritative


class PlannedDowntimeVerifier:
    """
    Drives the downtime scenario against a live chain.

    Args:
        poller: `ChainPoller` over Bor RPC
        registry: `SpanRegistry` over Heimdall REST, owned by this verifier
        admin: `ValidatorAdmin` for validator commands
        rest: Heimdall `RestClient` for planned downtime lookups
        cfg: Scenario parameters
        sleep: Sleep used by every retry loop
        clock: Returns the current unix time in seconds
    """

    def __init__(
        self,
        poller,
        registry,
        admin,
        rest,
        cfg: DowntimeTestConfig,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.poller = poller
        self.registry = registry
        self.admin = admin
        self.cfg = cfg
        self.clock = clock
        self.height_policy = cfg.height_poll_policy(sleep)
        self.span_policy = cfg.span_retry_policy(sleep)
        self.reconciler = DowntimeReconciler(
            admin, rest, poller, cfg.reconcile_retry_policy(sleep)
        )

    def run(self) -> DowntimeReport:
        self.wait_for_min_height()

        target_id = self.cfg.target_validator_id
        target_address = self.admin.producer_address(target_id)
        logger.info(f"Producer address of validator {target_id}: {target_address}")

        window = DowntimeWindow.starting_in(
            int(self.clock()),
            self.cfg.downtime_start_offset_secs,
            self.cfg.downtime_duration_secs,
        )
        estimated = self.reconciler.estimate(window, target_address, target_id)
        logger.info(f"Estimated downtime range: Start: {estimated.start}, End: {estimated.end}")

        span = self.locate_span(estimated.start)
        logger.info(
            f"Producer for start block {estimated.start}: "
            f"ValID={span.producer_val_id}, Address={span.producer_address}"
        )

        self.reconciler.submit(window, span.producer_val_id, span.producer_address)
        logger.info("Successfully set producer planned downtime")

        auth = self.reconciler.reconcile(window, span.producer_val_id)
        logger.info(f"Producer downtime blocks from Heimdall: Start: {auth.start}, End: {auth.end}")

        report = DowntimeReport(target_id, target_address, span, window)
        downed = span.producer_address

        self.poller.wait_for_height(auth.start, self.height_policy)
        logger.info(f"Downtime started at block {auth.start}")
        self.registry.refresh()
        report.checkpoints.append(self.check_author("block before downtime", auth.start - 1))
        report.checkpoints.append(
            self.check_author("first downtime block", auth.start, excluded=downed)
        )

        self.poller.wait_for_height(auth.end, self.height_policy)
        logger.info(f"Downtime ended at block {auth.end}")
        self.registry.refresh()
        report.checkpoints.append(
            self.check_author("last downtime block", auth.end, excluded=downed)
        )

        self.poller.wait_for_height(auth.end + 1, self.height_policy)
        self.registry.refresh()
        report.checkpoints.append(self.check_author("block after downtime", auth.end + 1))

        logger.info("Producer planned downtime test completed successfully")
        return report

    def wait_for_min_height(self) -> int:
        height = self.poller.wait_for_height(self.cfg.min_start_block, self.height_policy)
        logger.info(f"Reached min start block {self.cfg.min_start_block}")
        return height

    def locate_span(self, height: int) -> Span:
        """
        Refresh spans until one covers `height`.

        Raises:
            VerificationError: If no covering span shows up in time
        """

        def attempt() -> Span | None:
            self.registry.refresh()
            return self.registry.resolve_expected_producer(height)

        def on_retry(n: int):
            logger.info(f"Span for start block {height} not found yet, retrying ({n})...")

        try:
            return retry_until(attempt, self.span_policy, on_retry=on_retry)
        except RetryExhaustedError as e:
            raise VerificationError(f"No span found covering start block {height}: {e}") from e

    def check_author(self, name: str, height: int, excluded: str | None = None) -> Checkpoint:
        """
        Assert that block `height` was authored by the expected producer, and
        not by `excluded` when given.

        Raises:
            VerificationError: On mismatch or when no span covers `height`
            RpcError: If the author can't be read
        """
        actual = self.poller.author_of(height)
        try:
            expected = self.registry.expected_author(height)
        except VerificationError as e:
            raise VerificationError(f"[{name}] {e}") from e

        if not same_address(actual, expected):
            raise VerificationError(
                f"[{name}] Block {height} author mismatch: got {actual}, expected {expected}"
            )
        if excluded is not None and same_address(actual, excluded):
            raise VerificationError(
                f"[{name}] Block {height} author should not be the downtime producer {excluded}"
            )

        logger.info(f"[{name}] Block {height} authored by {actual} as expected")
        return Checkpoint(name, height, expected, actual, excluded)
