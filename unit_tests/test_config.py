import pytest
import toml

from common.config import Config, DowntimeTestConfig, config_from_dict, load_config


def test_defaults():
    cfg = load_config(environ={})

    assert cfg.downtime.min_start_block == 128
    assert cfg.downtime.downtime_start_offset_secs == 180
    assert cfg.downtime.downtime_duration_secs == 180
    assert cfg.downtime.target_validator_id == 1
    assert cfg.downtime.span_retry_attempts == 256
    assert cfg.downtime.reconcile_retry_attempts == 5
    assert "{validator_id}" in cfg.devnet.admin.exec_template


def test_load_from_toml_with_env_overrides(tmp_path):
    path = tmp_path / "devnet.toml"
    path.write_text(
        toml.dumps(
            {
                "devnet": {
                    "bor_rpc_url": "http://bor:8545",
                    "admin": {"shell": "sh"},
                },
                "downtime": {"min_start_block": 64, "reconcile_retry_attempts": 10},
            }
        )
    )

    env = {"DOWNTIME_TEST_CONFIG": str(path), "HEIMDALL_REST_URL": "heimdall:1317"}
    cfg = load_config(environ=env)

    assert cfg.devnet.bor_rpc_url == "http://bor:8545"
    assert cfg.devnet.heimdall_rest_url == "heimdall:1317"
    assert cfg.devnet.admin.shell == "sh"
    assert cfg.downtime.min_start_block == 64
    assert cfg.downtime.reconcile_retry_attempts == 10


def test_env_overrides_enclave():
    cfg = load_config(environ={"ENCLAVE_NAME": "pos", "BOR_RPC_URL": "127.0.0.1:1"})
    assert cfg.devnet.enclave == "pos"
    assert cfg.devnet.bor_rpc_url == "127.0.0.1:1"


def test_round_trips_through_toml():
    cfg = Config()
    assert config_from_dict(toml.loads(cfg.as_toml_string())) == cfg


def test_unknown_keys_rejected():
    with pytest.raises(ValueError, match="unknown DowntimeTestConfig keys"):
        config_from_dict({"downtime": {"min_start_blok": 1}})


@pytest.mark.parametrize(
    "kwargs",
    [{"downtime_duration_secs": 0}, {"span_retry_attempts": 0}, {"reconcile_retry_attempts": 0}],
)
def test_invalid_scenario_values(kwargs):
    with pytest.raises(ValueError):
        DowntimeTestConfig(**kwargs)


def test_retry_policies(no_sleep):
    cfg = DowntimeTestConfig(span_retry_interval=2.0, span_retry_attempts=7)

    assert cfg.height_poll_policy().max_attempts is None
    span = cfg.span_retry_policy(no_sleep)
    assert (span.interval, span.max_attempts) == (2.0, 7)
    assert span.sleep is no_sleep
