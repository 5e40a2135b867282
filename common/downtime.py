"""
Planned downtime window: estimate, submit and reconcile against Heimdall.

The estimate is derived from average block time and only serves to pick the
span to target. Assertions use the authoritative range Heimdall records once
the submission is processed.
"""

import logging
from dataclasses import dataclass

from common.admin import parse_calculated_range
from common.config.constants import DOWNTIME_NOT_FOUND_MSG, PLANNED_DOWNTIME_PATH
from common.errors import (
    AdminCommandError,
    EstimationError,
    ReconcileError,
    RetryExhaustedError,
    SubmissionError,
)
from common.rest import RestError
from common.wait import RetryPolicy, retry_until

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockRange:
    start: int
    end: int

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"block range start {self.start} > end {self.end}")


@dataclass
class DowntimeWindow:
    start_timestamp: int
    end_timestamp: int
    estimated: BlockRange | None = None
    authoritative: BlockRange | None = None

    @classmethod
    def starting_in(cls, now: int, offset_secs: int, duration_secs: int) -> "DowntimeWindow":
        start = now + offset_secs
        return cls(start_timestamp=start, end_timestamp=start + duration_secs)


def is_not_found(err: RestError) -> bool:
    return DOWNTIME_NOT_FOUND_MSG in (err.message or "")


class DowntimeReconciler:
    def __init__(self, admin, rest, poller, policy: RetryPolicy):
        self.admin = admin
        self.rest = rest
        self.poller = poller
        self.policy = policy

    def estimate(
        self, window: DowntimeWindow, producer_address: str, validator_id: int
    ) -> BlockRange:
        """
        Ask the validator for the block range matching the window, without submitting.

        Raises:
            EstimationError: If the command fails or its output lacks the range
        """
        try:
            output = self.admin.calc_downtime(
                validator_id, producer_address, window.start_timestamp, window.end_timestamp
            )
        except AdminCommandError as e:
            raise EstimationError(f"failed to estimate downtime range: {e}") from e

        start, end = parse_calculated_range(output)
        try:
            window.estimated = BlockRange(start, end)
        except ValueError as e:
            raise EstimationError(f"estimated range is inverted: {e}") from e
        return window.estimated

    def submit(self, window: DowntimeWindow, producer_val_id: int, producer_address: str) -> str:
        """
        Raises:
            SubmissionError: If the command exits non-zero
        """
        try:
            output = self.admin.set_downtime(
                producer_val_id, producer_address, window.start_timestamp, window.end_timestamp
            )
        except AdminCommandError as e:
            raise SubmissionError(
                f"failed to set planned downtime for producer {producer_val_id}: {e}"
            ) from e
        logger.debug(f"Downtime submission output:\n{output}")
        return output

    def fetch_authoritative(self, producer_val_id: int) -> BlockRange | None:
        """
        Read the downtime range Heimdall recorded for a producer.

        Returns None while Heimdall has not indexed the submission yet.

        Raises:
            ReconcileError: On any other failure
        """
        path = PLANNED_DOWNTIME_PATH.format(producer_id=producer_val_id)
        try:
            body = self.rest.get(path)
        except RestError as e:
            if is_not_found(e):
                return None
            raise ReconcileError(f"failed to get producer downtime blocks: {e}") from e

        raw = body.get("downtime_range") if isinstance(body, dict) else None
        if not isinstance(raw, dict) or not raw.get("start_block") or not raw.get("end_block"):
            raise ReconcileError(f"missing downtime_range in response: {body!r}")

        try:
            return BlockRange(int(raw["start_block"]), int(raw["end_block"]))
        except (TypeError, ValueError) as e:
            raise ReconcileError(f"invalid downtime_range {raw!r}: {e}") from e

    def reconcile(self, window: DowntimeWindow, producer_val_id: int) -> BlockRange:
        """
        Poll until Heimdall publishes a downtime range that is still ahead of the chain.

        A range starting below the current height is a stale record from an
        earlier downtime and is retried, not accepted.

        Raises:
            ReconcileError: On a non-retryable lookup failure, or when attempts run out
            RpcError: If the current height can't be read
        """
        last_seen: BlockRange | None = None

        def attempt() -> BlockRange | None:
            nonlocal last_seen
            found = self.fetch_authoritative(producer_val_id)
            last_seen = found
            if found is None:
                logger.info("Downtime blocks not yet available, retrying...")
                return None

            height = self.poller.current_height()
            if found.start < height:
                logger.info(
                    f"Downtime range {found.start}-{found.end} starts behind "
                    f"current block {height}, treating as stale"
                )
                return None
            return found

        try:
            window.authoritative = retry_until(
                attempt,
                self.policy,
                error_with=f"No current planned downtime for producer {producer_val_id}",
            )
        except RetryExhaustedError as e:
            raise ReconcileError(f"{e}; last seen range: {last_seen}") from e

        return window.authoritative
