"""
Error taxonomy for the downtime verification engine.

RPC failures use `common.rpc.RpcError`. Checkpoint failures are
`AssertionError`s so flexitest reports them as test failures.
"""


class DowntimeTestError(Exception):
    """Base for errors raised while driving the downtime scenario."""


class FetchError(DowntimeTestError):
    """Heimdall span registry unreachable or returned a malformed payload."""


class AdminCommandError(DowntimeTestError):
    """An administrative command exited non-zero."""

    def __init__(self, cmd: str, returncode: int, output: str):
        self.cmd = cmd
        self.returncode = returncode
        self.output = output
        super().__init__(f"command failed (exit {returncode}):\n  cmd: {cmd}\n  output: {output}")


class ProducerKeyError(DowntimeTestError):
    """The validator key output held no usable producer address."""


class EstimationError(DowntimeTestError):
    """The calc-only downtime command failed or its output could not be parsed."""


class SubmissionError(DowntimeTestError):
    """The downtime submission command failed."""


class ReconcileError(DowntimeTestError):
    """Authoritative downtime range lookup failed for a reason other than not-yet-indexed."""


class VerificationError(AssertionError):
    """A checkpoint or precondition of the downtime protocol did not hold."""


class RetryExhaustedError(AssertionError):
    """A bounded retry loop ran out of attempts."""
