#!/usr/bin/env python3
"""
Functional test runner for producer planned downtime.

Attaches to an already running Bor/Heimdall devnet. Endpoints and scenario
parameters come from `$DOWNTIME_TEST_CONFIG` (TOML) and the environment.

Usage:
    ./entry.py                                      # Run all tests
    ./entry.py -t test_producer_planned_downtime    # Run specific test
    ./entry.py -c devnet.toml                       # Use a config file
"""

import argparse
import logging
import os
import sys

import flexitest

from common.config import load_config
from common.runtime import TestRuntimeWithLogging
from common.test_logging import LOG_FORMAT
from envconfigs.devnet import DevnetEnvConfig
from factories.devnet import DevnetFactory

TEST_DIR: str = "tests"
DD_ROOT: str = "_dd"


def setup_logging() -> None:
    """Configure root logger."""
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format=LOG_FORMAT,
    )


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="entry.py",
        description="Run planned downtime functional tests",
    )
    parser.add_argument(
        "-t",
        "--tests",
        nargs="*",
        help="Run specific test(s)",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="TOML config file (defaults to $DOWNTIME_TEST_CONFIG)",
    )
    return parser.parse_args(argv[1:])


def filter_tests(parsed_args: argparse.Namespace, modules: dict[str, str]) -> dict[str, str]:
    """
    Filters test modules against test names supplied from the command line.
    """
    arg_tests = frozenset(
        os.path.split(t)[1].removesuffix(".py") for t in parsed_args.tests or []
    )
    if not arg_tests:
        return modules
    return {test: path for test, path in modules.items() if test in arg_tests}


def main(argv: list[str]) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging()

    if args.config:
        os.environ["DOWNTIME_TEST_CONFIG"] = args.config
    cfg = load_config()

    factories: dict[str, flexitest.Factory] = {
        "devnet": DevnetFactory(cfg.devnet),
    }

    global_envs: dict[str, flexitest.EnvConfig] = {
        "devnet": DevnetEnvConfig(),
    }

    root_dir = os.path.dirname(os.path.abspath(__file__))
    datadir = flexitest.create_datadir_in_workspace(os.path.join(root_dir, DD_ROOT))
    runtime = TestRuntimeWithLogging(global_envs, datadir, factories)

    test_dir = os.path.join(root_dir, TEST_DIR)
    modules = filter_tests(args, flexitest.runtime.scan_dir_for_modules(test_dir))
    if not modules:
        print(f"No tests matched {args.tests}")
        return 1

    tests = flexitest.runtime.load_candidate_modules(modules)

    runtime.prepare_registered_tests()
    results = runtime.run_tests(tests)

    runtime.save_json_file("results.json", results)
    flexitest.dump_results(results)

    # Exit with error if any test failed
    flexitest.fail_on_error(results)

    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
