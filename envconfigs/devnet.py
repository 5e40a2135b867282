"""Devnet environment configuration."""

from typing import cast

import flexitest

from common.config import ServiceType
from factories.devnet import DevnetFactory


class DevnetEnvConfig(flexitest.EnvConfig):
    """
    Devnet environment: attaches to a running Bor/Heimdall devnet.
    """

    def __init__(self, ready_timeout: int = 30):
        self.ready_timeout = ready_timeout

    def init(self, ectx: flexitest.EnvContext) -> flexitest.LiveEnv:
        factory = cast(DevnetFactory, ectx.get_factory("devnet"))

        bor = factory.create_bor()
        bor.start()
        bor.wait_for_ready(timeout=self.ready_timeout)

        heimdall = factory.create_heimdall()
        heimdall.start()
        heimdall.wait_for_ready(timeout=self.ready_timeout)

        validator = factory.create_validator_admin()

        services = {
            ServiceType.Bor: bor,
            ServiceType.Heimdall: heimdall,
            ServiceType.Validator: validator,
        }

        return flexitest.LiveEnv(services)
