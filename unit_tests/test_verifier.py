import pytest

from common.admin import ValidatorAdmin
from common.chain import ChainPoller
from common.config import AdminConfig, DowntimeTestConfig
from common.errors import ReconcileError, SubmissionError, VerificationError
from common.downtime import BlockRange, DowntimeWindow
from common.spans import Span, SpanRegistry
from common.verifier import DowntimeReport, PlannedDowntimeVerifier, same_address
from fakes import (
    A1,
    A2,
    A3,
    TARGET_KEY_ADDRESS,
    FakeRest,
    FakeRpc,
    FakeValidators,
    downtime_payload,
    not_found,
    span_payload,
)

NOW = 1_700_000_000
DOWNTIME_PATH = "/bor/producers/planned-downtime/2"


class Devnet:
    """
    Simulated devnet for the scenario:
    spans (0..99 -> V1/A1) and (100..199 -> V2/A2); a downtime estimated at
    140-160 that Heimdall records as 142-158, during which V3/A3 produces.
    """

    def __init__(self):
        self.rest = FakeRest()
        self.rest.set_spans(
            [
                span_payload(0, 0, 99, (1, A1)),
                span_payload(1, 100, 199, (2, A2)),
            ]
        )
        pending = [not_found(2)] * 3
        self.rest.routes[DOWNTIME_PATH] = pending + [downtime_payload(142, 158)]

        self.produced = {}
        self.rpc = FakeRpc(height=130, step=1, authors=self.author)
        self.validators = FakeValidators(calc_range=(140, 160))
        self.validators.on_submit = self.enact_downtime
        self.submitted: list[str] = []

    def author(self, height):
        if height in self.produced:
            return self.produced[height]
        if height < 100:
            return A1
        return A2

    def enact_downtime(self, cmd):
        self.submitted.append(cmd)
        # Heimdall publishes a fallback span for the window and one resuming rotation.
        self.rest.routes["/bor/spans/2"] = span_payload(2, 142, 158, (3, A3))
        self.rest.routes["/bor/spans/3"] = span_payload(3, 159, 255, (2, A2))
        for h in range(142, 159):
            self.produced[h] = A3


def make_verifier(devnet, no_sleep, **overrides):
    cfg = DowntimeTestConfig(span_retry_attempts=3, **overrides)
    admin = ValidatorAdmin(AdminConfig(), "enclave", devnet.validators)
    return PlannedDowntimeVerifier(
        ChainPoller(devnet.rpc),
        SpanRegistry(devnet.rest),
        admin,
        devnet.rest,
        cfg,
        sleep=no_sleep,
        clock=lambda: NOW,
    )


def test_planned_downtime_scenario(no_sleep):
    devnet = Devnet()
    report = make_verifier(devnet, no_sleep).run()

    assert report.target_address == TARGET_KEY_ADDRESS
    assert report.window.start_timestamp == NOW + 180
    assert report.window.end_timestamp == NOW + 360
    assert (report.window.estimated.start, report.window.estimated.end) == (140, 160)
    assert (report.authoritative.start, report.authoritative.end) == (142, 158)

    # Submitted against the span's producer, not the nominal target.
    assert report.span.producer_val_id == 2
    assert len(devnet.submitted) == 1
    assert "l2-cl-2-heimdall-v2-bor-validator" in devnet.submitted[0]
    assert f"--producer-address {A2}" in devnet.submitted[0]

    checks = [(c.height, c.actual_author) for c in report.checkpoints]
    assert checks == [(141, A2), (142, A3), (158, A3), (159, A2)]
    assert [c.excluded_author for c in report.checkpoints] == [None, A2, A2, None]


def test_estimate_runs_on_target_validator(no_sleep):
    devnet = Devnet()
    make_verifier(devnet, no_sleep).run()

    calc = [c for c in devnet.validators.commands if "--calc-only" in c]
    assert len(calc) == 1
    assert "l2-cl-1-heimdall-v2-bor-validator" in calc[0]
    assert f"--producer-address {TARGET_KEY_ADDRESS}" in calc[0]


def test_waits_for_min_start_block(no_sleep):
    devnet = Devnet()
    devnet.rpc.height = 100
    make_verifier(devnet, no_sleep, min_start_block=128).run()

    # 100..128 before anything else happens.
    assert devnet.validators.commands[0].endswith('priv_validator_key.json"')
    assert devnet.rpc.height_calls >= 29


def test_span_published_late_is_retried(sleeps, no_sleep):
    devnet = Devnet()
    del devnet.rest.routes["/bor/spans/1"]
    calls = {"n": 0}
    original_get = devnet.rest.get

    def get(path):
        if path == "/bor/spans/1":
            calls["n"] += 1
            if calls["n"] >= 2:
                devnet.rest.routes[path] = span_payload(1, 100, 199, (2, A2))
        return original_get(path)

    devnet.rest.get = get
    report = make_verifier(devnet, no_sleep, span_retry_interval=10.0).run()

    assert report.span.producer_val_id == 2
    assert 10.0 in sleeps


def test_no_covering_span_fails(no_sleep):
    devnet = Devnet()
    devnet.validators.calc_range = (500, 520)

    with pytest.raises(VerificationError, match="No span found covering start block 500"):
        make_verifier(devnet, no_sleep).run()
    assert devnet.submitted == []


def test_downtime_not_enacted_fails_first_window_block(no_sleep):
    devnet = Devnet()
    devnet.validators.on_submit = devnet.submitted.append

    with pytest.raises(VerificationError, match="should not be the downtime producer"):
        make_verifier(devnet, no_sleep).run()


def test_wrong_author_before_window_fails(no_sleep):
    devnet = Devnet()
    devnet.produced[141] = A1

    with pytest.raises(VerificationError, match="Block 141 author mismatch: got .*, expected"):
        make_verifier(devnet, no_sleep).run()


def test_rotation_not_resumed_fails(no_sleep):
    devnet = Devnet()
    original = devnet.enact_downtime

    def enact(cmd):
        original(cmd)
        devnet.produced[159] = A3

    devnet.validators.on_submit = enact

    with pytest.raises(VerificationError, match=r"\[block after downtime\] Block 159"):
        make_verifier(devnet, no_sleep).run()


def test_submission_failure_aborts(no_sleep):
    devnet = Devnet()
    devnet.validators.submit_returncode = 1

    with pytest.raises(SubmissionError):
        make_verifier(devnet, no_sleep).run()


def test_downtime_never_indexed_aborts(no_sleep):
    devnet = Devnet()
    devnet.rest.routes[DOWNTIME_PATH] = not_found(2)

    with pytest.raises(ReconcileError):
        make_verifier(devnet, no_sleep, reconcile_retry_attempts=5).run()
    assert devnet.rest.calls.count(DOWNTIME_PATH) == 5


@pytest.mark.parametrize(
    "a, b, same",
    [
        ("0x" + "ab" * 20, "0x" + "AB" * 20, True),
        ("AB" * 20, "0x" + "ab" * 20, True),
        ("0x" + "ab" * 20, "0x" + "ac" * 20, False),
        ("validator-1", "VALIDATOR-1", True),
    ],
)
def test_same_address(a, b, same):
    assert same_address(a, b) is same


def test_report_authoritative_requires_reconciled_window():
    window = DowntimeWindow(1, 2)
    report = DowntimeReport(1, TARGET_KEY_ADDRESS, Span("1", 100, 199, 2, A2), window)

    with pytest.raises(VerificationError, match="no authoritative block range"):
        report.authoritative

    window.authoritative = BlockRange(142, 158)
    assert report.authoritative == BlockRange(142, 158)
