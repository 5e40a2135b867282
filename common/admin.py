"""
Administrative command adapter for Heimdall validators.

Builds the producer-downtime commands and turns their free-text output into
typed values. Transport is whatever `exec_template` says; by default it goes
through `kurtosis service exec`.
"""

import json
import logging
import re
import subprocess

from common.config import AdminConfig
from common.config.constants import CALC_ONLY_FLAG
from common.errors import AdminCommandError, EstimationError, ProducerKeyError

logger = logging.getLogger(__name__)

_CALC_START_RE = re.compile(r"Calculated start block:\s*(\d+)", re.IGNORECASE | re.MULTILINE)
_CALC_END_RE = re.compile(r"Calculated end block:\s*(\d+)", re.IGNORECASE | re.MULTILINE)


def parse_calculated_range(output: str) -> tuple[int, int]:
    """
    Extract the estimated block range from calc-only output.

    Expected output looks like:
        Average block time calculated: 1 seconds
        Calculated start block: 14156
        Calculated end block: 14216

    Raises:
        EstimationError: If either field is missing
    """
    start = _CALC_START_RE.search(output)
    end = _CALC_END_RE.search(output)
    if start is None or end is None:
        raise EstimationError(f"failed to parse downtime range from output:\n{output}")
    return int(start.group(1)), int(end.group(1))


def parse_priv_validator_address(output: str) -> str:
    """
    Pull `address` out of `priv_validator_key.json` printed by a command.

    Anything before the first `{` is ignored.

    Raises:
        ProducerKeyError: If no JSON object with a non-empty address is found
    """
    start = output.find("{")
    if start == -1:
        raise ProducerKeyError(f"no JSON found in output: {output}")

    try:
        key, _ = json.JSONDecoder().raw_decode(output[start:])
    except json.JSONDecodeError as e:
        raise ProducerKeyError(f"failed to parse JSON: {e}; raw: {output[start:]}") from e

    address = key.get("address") if isinstance(key, dict) else None
    if not address:
        raise ProducerKeyError(f"address field empty in JSON: {output[start:]}")
    return address


def timeout_output(err: subprocess.TimeoutExpired) -> str:
    """Partial output of a timed-out command; may arrive as bytes even in text mode."""
    out = err.output
    if isinstance(out, bytes):
        out = out.decode(errors="replace")
    return (out or "").strip()


def downtime_command(cfg: AdminConfig, address: str, start: int, end: int, calc_only: bool) -> str:
    cmd = cfg.downtime_cmd.format(address=address, start=start, end=end)
    if calc_only:
        cmd = f"{cmd} {CALC_ONLY_FLAG}"
    return cmd


class ValidatorAdmin:
    """
    Runs administrative commands against validator N.

    `runner` takes the full shell command and returns a CompletedProcess;
    `ValidatorAdminService.run_shell` is the live one.
    """

    def __init__(self, cfg: AdminConfig, enclave: str, runner):
        self.cfg = cfg
        self.enclave = enclave
        self.runner = runner

    def _wrap(self, validator_id: int, command: str) -> str:
        return self.cfg.exec_template.format(
            enclave=self.enclave, validator_id=validator_id, command=command
        )

    def run(self, validator_id: int, command: str) -> str:
        """
        Run `command` on validator `validator_id`, returning its trimmed output.

        Raises:
            AdminCommandError: If the command exits non-zero or times out
        """
        full_cmd = self._wrap(validator_id, command)
        logger.info(f"Running on validator {validator_id}: {full_cmd}")
        try:
            result: subprocess.CompletedProcess = self.runner(full_cmd)
        except subprocess.TimeoutExpired as e:
            partial = timeout_output(e)
            raise AdminCommandError(
                full_cmd, -1, f"timed out after {e.timeout} seconds: {partial}"
            ) from e
        output = (result.stdout or "").strip()
        if result.returncode != 0:
            raise AdminCommandError(full_cmd, result.returncode, output)
        return output

    def producer_address(self, validator_id: int) -> str:
        """
        Raises:
            AdminCommandError: If the key can't be read
            ProducerKeyError: If the output holds no usable address
        """
        output = self.run(validator_id, self.cfg.producer_key_cmd)
        return parse_priv_validator_address(output)

    def calc_downtime(self, validator_id: int, address: str, start: int, end: int) -> str:
        return self.run(validator_id, downtime_command(self.cfg, address, start, end, True))

    def set_downtime(self, validator_id: int, address: str, start: int, end: int) -> str:
        return self.run(validator_id, downtime_command(self.cfg, address, start, end, False))
