"""
Administrative access to the devnet's validators.
"""

import logging
import subprocess

import flexitest

from common.admin import ValidatorAdmin, timeout_output
from common.config import AdminConfig


class ValidatorAdminService(flexitest.Service):
    """
    Runs one-shot shell commands; not long-lived, no start()/stop() lifecycle.
    """

    def __init__(self, cfg: AdminConfig, enclave: str, stdout: str | None = None):
        super().__init__({"enclave": enclave, "exec_template": cfg.exec_template})
        self.cfg = cfg
        self.enclave = enclave
        self.stdout = stdout
        self._logger = logging.getLogger("service.validator")

    def _log_output(self, cmd: str, output: str) -> None:
        if self.stdout is not None:
            with open(self.stdout, "a") as f:
                f.write(f"(process started as: {cmd})\n{output}\n")

    def run_shell(self, cmd: str) -> subprocess.CompletedProcess:
        """
        Run `cmd` through the configured shell with stderr merged into stdout.

        The output is also appended to the service log file when one is set.

        Raises:
            subprocess.TimeoutExpired: If `command_timeout` elapses; logged first
        """
        try:
            result = subprocess.run(
                [self.cfg.shell, "-c", cmd],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.cfg.command_timeout,
            )
        except subprocess.TimeoutExpired as e:
            self._log_output(cmd, f"{timeout_output(e)}\n(timed out after {e.timeout} seconds)")
            self._logger.warning(f"command timed out after {e.timeout} seconds: {cmd}")
            raise

        self._log_output(cmd, result.stdout)
        self._logger.debug(f"exit {result.returncode}: {result.stdout.strip()}")
        return result

    def create_admin(self) -> ValidatorAdmin:
        return ValidatorAdmin(self.cfg, self.enclave, self.run_shell)

    # Nothing to start or stop.
    def start(self):
        pass

    def stop(self):
        pass

    def is_started(self) -> bool:
        return True

    def check_status(self) -> bool:
        return True
