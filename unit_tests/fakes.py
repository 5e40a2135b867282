"""
Fakes for the Heimdall REST API, Bor RPC and validator admin commands.
"""

import json
import subprocess

from common.config.constants import DOWNTIME_NOT_FOUND_MSG
from common.rest import RestError
from common.rpc import RpcError

A1 = "0x" + "11" * 20
A2 = "0x" + "22" * 20
A3 = "0x" + "33" * 20

# Uppercase without 0x, as found in priv_validator_key.json.
TARGET_KEY_ADDRESS = "AB" * 20


def span_payload(span_id, start, end, *producers):
    """`producers` are (val_id, signer) pairs."""
    return {
        "span": {
            "id": str(span_id),
            "start_block": str(start),
            "end_block": str(end),
            "selected_producers": [{"val_id": str(v), "signer": s} for v, s in producers],
        }
    }


def not_found(producer_id: int) -> RestError:
    return RestError(
        f"http://heimdall/bor/producers/planned-downtime/{producer_id}",
        f"{DOWNTIME_NOT_FOUND_MSG} {producer_id}",
        status=404,
        code=5,
    )


def downtime_payload(start, end):
    return {"downtime_range": {"start_block": str(start), "end_block": str(end)}}


class FakeRest:
    """
    Routes GET paths to canned responses.

    A route value may be a payload, an exception to raise, or a list consumed
    in order (the last element repeats). Unknown paths fail with 404.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls: list[str] = []

    def set_spans(self, payloads):
        self.routes = {k: v for k, v in self.routes.items() if not k.startswith("/bor/spans/")}
        for i, payload in enumerate(payloads):
            self.routes[f"/bor/spans/{i}"] = payload

    def get(self, path):
        self.calls.append(path)
        if path not in self.routes:
            raise RestError(f"http://heimdall{path}", "not found", status=404)

        value = self.routes[path]
        if isinstance(value, list):
            value = value.pop(0) if len(value) > 1 else value[0]
        if isinstance(value, Exception):
            raise value
        return value


class FakeRpc:
    """Bor RPC whose height advances by `step` on every height query."""

    def __init__(self, height=0, step=1, authors=None):
        self.height = height
        self.step = step
        self.authors = authors or {}
        self.height_calls = 0
        self.fail_height_at: int | None = None

    def eth_getBlockByNumber(self, tag, full):
        assert tag == "latest" and full is False
        self.height_calls += 1
        if self.fail_height_at is not None and self.height_calls >= self.fail_height_at:
            raise RpcError({"code": -32000, "message": "node is down"})
        current = self.height
        self.height += self.step
        return {"number": hex(current), "hash": "0x00"}

    def bor_getAuthor(self, block_hex):
        height = int(block_hex, 16)
        if callable(self.authors):
            return self.authors(height)
        return self.authors.get(height)


class FakeValidators:
    """
    Stands in for the shell runner behind `ValidatorAdmin`.

    Answers the key, calc-only and submission commands; `on_submit` runs when
    a real downtime is submitted.
    """

    def __init__(self, calc_range=(140, 160), key_address=TARGET_KEY_ADDRESS):
        self.calc_range = calc_range
        self.key_address = key_address
        self.commands: list[str] = []
        self.submit_returncode = 0
        self.on_submit = None

    def __call__(self, cmd: str) -> subprocess.CompletedProcess:
        self.commands.append(cmd)
        if "priv_validator_key.json" in cmd:
            key = {"address": self.key_address, "pub_key": {"type": "secp256k1"}}
            out = "0\n" + json.dumps(key, indent=2)
            return subprocess.CompletedProcess(cmd, 0, stdout=out)
        if "--calc-only" in cmd:
            start, end = self.calc_range
            out = (
                "The command was successfully executed and returned '0'.\n"
                "Average block time calculated: 1 seconds\n"
                f"Calculated start block: {start}\n"
                f"Calculated end block: {end}\n"
            )
            return subprocess.CompletedProcess(cmd, 0, stdout=out)
        if "producer-downtime" in cmd:
            if self.submit_returncode != 0:
                return subprocess.CompletedProcess(
                    cmd, self.submit_returncode, stdout="Error: tx rejected"
                )
            if self.on_submit is not None:
                self.on_submit(cmd)
            return subprocess.CompletedProcess(cmd, 0, stdout="txhash: ABCD")
        return subprocess.CompletedProcess(cmd, 127, stdout=f"unknown command: {cmd}")
