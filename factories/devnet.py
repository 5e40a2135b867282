"""
Devnet service factory.
Wraps the endpoints of an externally started Bor/Heimdall devnet.
"""

import os

import flexitest

from common.config import DevnetConfig, ServiceType
from common.services import BorService, HeimdallService, ValidatorAdminService


class DevnetFactory(flexitest.Factory):
    """
    Factory for devnet services. Allocates no ports: every endpoint already exists.
    """

    def __init__(self, cfg: DevnetConfig):
        super().__init__([])
        self.cfg = cfg

    def create_bor(self) -> BorService:
        return BorService({"url": self.cfg.bor_rpc_url, "timeout": self.cfg.http_timeout})

    def create_heimdall(self) -> HeimdallService:
        return HeimdallService(
            {"url": self.cfg.heimdall_rest_url, "timeout": self.cfg.http_timeout}
        )

    @flexitest.with_ectx("ctx")
    def create_validator_admin(self, **kwargs) -> ValidatorAdminService:
        """
        Create the admin command runner, logging to its own service dir.
        """
        # Ensured by `with_ectx` decorator.
        ctx: flexitest.EnvContext = kwargs["ctx"]

        if not self.cfg.enclave and "{enclave}" in self.cfg.admin.exec_template:
            raise ValueError("environment variable ENCLAVE_NAME is not set")

        datadir = ctx.make_service_dir(str(ServiceType.Validator))
        logfile = os.path.join(datadir, "service.log")
        return ValidatorAdminService(self.cfg.admin, self.cfg.enclave, stdout=logfile)
