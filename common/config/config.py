"""
Configuration dataclasses for the devnet and the downtime scenario.
"""

import os
from dataclasses import asdict, dataclass, field, fields

import toml

from common.wait import RetryPolicy

CONFIG_PATH_ENV = "DOWNTIME_TEST_CONFIG"


@dataclass
class AdminConfig:
    # `{enclave}`, `{validator_id}` and `{command}` are substituted.
    exec_template: str = field(
        default=(
            "kurtosis service exec {enclave} "
            'l2-cl-{validator_id}-heimdall-v2-bor-validator -- "{command}"'
        )
    )
    producer_key_cmd: str = field(default="cat /etc/heimdall/config/priv_validator_key.json")
    # `{address}`, `{start}` and `{end}` are substituted.
    downtime_cmd: str = field(
        default=(
            "heimdalld tx bor producer-downtime --producer-address {address} "
            "--start-timestamp-utc {start} --end-timestamp-utc {end} --home /etc/heimdall"
        )
    )
    shell: str = field(default="bash")
    command_timeout: float | None = field(default=None)


@dataclass
class DevnetConfig:
    bor_rpc_url: str = field(default="http://localhost:8545")
    heimdall_rest_url: str = field(default="http://localhost:1317")
    enclave: str = field(default="")
    http_timeout: int = field(default=10)
    admin: AdminConfig = field(default_factory=AdminConfig)


@dataclass
class DowntimeTestConfig:
    min_start_block: int = field(default=128)
    downtime_start_offset_secs: int = field(default=180)
    downtime_duration_secs: int = field(default=180)
    target_validator_id: int = field(default=1)
    height_poll_interval: float = field(default=1.0)
    span_retry_interval: float = field(default=10.0)
    span_retry_attempts: int = field(default=256)
    reconcile_retry_interval: float = field(default=1.0)
    reconcile_retry_attempts: int = field(default=5)

    def __post_init__(self):
        if self.downtime_duration_secs <= 0:
            raise ValueError(
                f"downtime_duration_secs must be positive, got {self.downtime_duration_secs}"
            )
        if self.span_retry_attempts < 1 or self.reconcile_retry_attempts < 1:
            raise ValueError("retry attempt counts must be at least 1")

    def height_poll_policy(self, sleep=None) -> RetryPolicy:
        """Unbounded; relies on the chain advancing."""
        return RetryPolicy.build(self.height_poll_interval, None, sleep)

    def span_retry_policy(self, sleep=None) -> RetryPolicy:
        return RetryPolicy.build(self.span_retry_interval, self.span_retry_attempts, sleep)

    def reconcile_retry_policy(self, sleep=None) -> RetryPolicy:
        return RetryPolicy.build(
            self.reconcile_retry_interval, self.reconcile_retry_attempts, sleep
        )


@dataclass
class Config:
    devnet: DevnetConfig = field(default_factory=DevnetConfig)
    downtime: DowntimeTestConfig = field(default_factory=DowntimeTestConfig)

    def as_toml_string(self) -> str:
        d = asdict(self)
        d["devnet"]["admin"] = {
            k: v for k, v in d["devnet"]["admin"].items() if v is not None
        }
        return toml.dumps(d)


def _pick(cls, section: dict) -> dict:
    """Keeps only keys that are fields of `cls`, rejecting unknown ones."""
    known = {f.name for f in fields(cls)}
    unknown = set(section) - known
    if unknown:
        raise ValueError(f"unknown {cls.__name__} keys: {sorted(unknown)}")
    return dict(section)


def config_from_dict(d: dict) -> Config:
    devnet_section = dict(d.get("devnet", {}))
    admin = AdminConfig(**_pick(AdminConfig, devnet_section.pop("admin", {})))
    devnet = DevnetConfig(admin=admin, **_pick(DevnetConfig, devnet_section))
    downtime = DowntimeTestConfig(**_pick(DowntimeTestConfig, d.get("downtime", {})))
    return Config(devnet=devnet, downtime=downtime)


def load_config(path: str | None = None, environ: dict | None = None) -> Config:
    """
    Load the test config from a TOML file, then apply environment overrides.

    Args:
        path: TOML file path; falls back to `$DOWNTIME_TEST_CONFIG`, then defaults
        environ: Environment mapping, `os.environ` if not given

    Environment overrides:
        BOR_RPC_URL, HEIMDALL_REST_URL, ENCLAVE_NAME
    """
    env = os.environ if environ is None else environ
    path = path or env.get(CONFIG_PATH_ENV)

    if path:
        with open(path) as f:
            cfg = config_from_dict(toml.load(f))
    else:
        cfg = Config()

    if env.get("BOR_RPC_URL"):
        cfg.devnet.bor_rpc_url = env["BOR_RPC_URL"]
    if env.get("HEIMDALL_REST_URL"):
        cfg.devnet.heimdall_rest_url = env["HEIMDALL_REST_URL"]
    if env.get("ENCLAVE_NAME"):
        cfg.devnet.enclave = env["ENCLAVE_NAME"]

    return cfg
