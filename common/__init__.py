"""
Core library for the planned downtime functional test.
Provides the span registry, chain poller, downtime reconciler and verifier.
"""

from .chain import ChainPoller
from .config import Config, DowntimeTestConfig, load_config
from .downtime import BlockRange, DowntimeReconciler, DowntimeWindow
from .rpc import JsonRpcClient, RpcError
from .spans import Span, SpanRegistry
from .verifier import PlannedDowntimeVerifier
from .wait import RetryPolicy, wait_until

__all__ = [
    "BlockRange",
    "ChainPoller",
    "Config",
    "DowntimeReconciler",
    "DowntimeTestConfig",
    "DowntimeWindow",
    "JsonRpcClient",
    "PlannedDowntimeVerifier",
    "RetryPolicy",
    "RpcError",
    "Span",
    "SpanRegistry",
    "load_config",
    "wait_until",
]
