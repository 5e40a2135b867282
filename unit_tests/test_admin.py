import subprocess

import pytest

from common.admin import (
    ValidatorAdmin,
    downtime_command,
    parse_calculated_range,
    parse_priv_validator_address,
)
from common.config import AdminConfig
from common.errors import AdminCommandError, EstimationError, ProducerKeyError
from common.services.validator import ValidatorAdminService
from fakes import TARGET_KEY_ADDRESS, FakeValidators


def test_parse_calculated_range():
    output = (
        "The command was successfully executed and returned '0'.\n"
        "Average block time calculated: 1 seconds\n"
        "Calculated start block: 14156\n"
        "Calculated end block: 14216\n"
    )
    assert parse_calculated_range(output) == (14156, 14216)


def test_parse_calculated_range_ignores_case_and_spacing():
    output = "calculated START block:140\nCALCULATED end block:    160"
    assert parse_calculated_range(output) == (140, 160)


@pytest.mark.parametrize(
    "output",
    [
        "",
        "Calculated start block: 140",
        "Calculated end block: 160",
        "Calculated start block: soon\nCalculated end block: 160",
    ],
)
def test_parse_calculated_range_missing_field(output):
    with pytest.raises(EstimationError, match="failed to parse downtime range"):
        parse_calculated_range(output)


def test_parse_priv_validator_address_skips_leading_noise():
    output = '0\n{\n  "address": "ABCD",\n  "pub_key": {"type": "secp256k1"}\n}\ntrailing'
    assert parse_priv_validator_address(output) == "ABCD"


@pytest.mark.parametrize("output", ["no json here", '{"address": ""}', "{broken"])
def test_parse_priv_validator_address_errors(output):
    with pytest.raises(ProducerKeyError):
        parse_priv_validator_address(output)


def test_downtime_command_templates():
    cfg = AdminConfig(downtime_cmd="downtime {address} {start} {end}")
    assert downtime_command(cfg, "0xaa", 1, 2, calc_only=False) == "downtime 0xaa 1 2"
    assert downtime_command(cfg, "0xaa", 1, 2, calc_only=True) == "downtime 0xaa 1 2 --calc-only"


def test_run_wraps_command_for_validator():
    runner = FakeValidators()
    cfg = AdminConfig(exec_template="exec {enclave} val-{validator_id} -- '{command}'")
    admin = ValidatorAdmin(cfg, "my-enclave", runner)

    assert admin.producer_address(3) == TARGET_KEY_ADDRESS
    assert runner.commands == [
        "exec my-enclave val-3 -- 'cat /etc/heimdall/config/priv_validator_key.json'"
    ]


def test_run_raises_on_nonzero_exit():
    runner = FakeValidators()
    runner.submit_returncode = 1
    admin = ValidatorAdmin(AdminConfig(), "e", runner)

    with pytest.raises(AdminCommandError, match="exit 1") as exc:
        admin.set_downtime(2, "0xaa", 100, 200)
    assert exc.value.output == "Error: tx rejected"
    assert "--calc-only" not in exc.value.cmd


def test_calc_downtime_uses_calc_only_flag():
    runner = FakeValidators(calc_range=(5, 9))
    admin = ValidatorAdmin(AdminConfig(), "e", runner)

    output = admin.calc_downtime(1, "0xaa", 100, 200)

    assert parse_calculated_range(output) == (5, 9)
    assert runner.commands[0].endswith('--home /etc/heimdall --calc-only"')
    assert "--start-timestamp-utc 100 --end-timestamp-utc 200" in runner.commands[0]


def test_run_timeout_becomes_command_error():
    def hung(cmd):
        raise subprocess.TimeoutExpired(cmd, 0.1, output=b"waiting for tx")

    admin = ValidatorAdmin(AdminConfig(), "e", hung)

    with pytest.raises(AdminCommandError, match="timed out after 0.1 seconds") as exc:
        admin.set_downtime(2, "0xaa", 100, 200)
    assert exc.value.returncode == -1
    assert "waiting for tx" in exc.value.output


def test_service_times_out_slow_command(tmp_path):
    log = tmp_path / "validator.log"
    cfg = AdminConfig(
        shell="sh", exec_template="{command}", downtime_cmd="sleep 2", command_timeout=0.1
    )
    admin = ValidatorAdminService(cfg, "e", stdout=str(log)).create_admin()

    with pytest.raises(AdminCommandError) as exc:
        admin.set_downtime(2, "0xaa", 100, 200)
    assert exc.value.returncode == -1
    assert "(process started as: sleep 2)" in log.read_text()
    assert "timed out after 0.1 seconds" in log.read_text()
