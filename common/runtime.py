"""
Custom test runtime with test name tracking for logging.
"""

import logging

import flexitest

from common.test_logging import (
    TestNameFilter,
    attach_test_log_file,
    detach_test_log_file,
    set_current_test,
)


class TestRuntimeWithLogging(flexitest.TestRuntime):
    """
    TestRuntime that tags logs with the running test and writes them to
    `<datadir>/logs/<test_name>.log`.
    """

    def __init__(self, envs, datadir_root: str, factories):
        super().__init__(envs, datadir_root, factories)
        self.datadir_root = datadir_root
        for handler in logging.getLogger().handlers:
            handler.addFilter(TestNameFilter())

    def _exec_test(self, test_name: str, env):
        """Wraps test execution with test name tracking and a per-test log file."""
        set_current_test(test_name)
        handler = attach_test_log_file(self.datadir_root, test_name)
        try:
            return super()._exec_test(test_name, env)
        finally:
            detach_test_log_file(handler)
            set_current_test(None)
