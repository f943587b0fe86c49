"""Live probing of declared agent interfaces."""

from cardcheck.probe.checkers import (
    CheckerRegistry,
    CheckOutcome,
    GrpcChecker,
    HttpJsonChecker,
    JsonRpcChecker,
    TransportChecker,
    create_default_registry,
)
from cardcheck.probe.live import LiveTester, build_request
from cardcheck.probe.probe import TransportProbe, probe_targets

__all__ = [
    "CheckOutcome",
    "CheckerRegistry",
    "GrpcChecker",
    "HttpJsonChecker",
    "JsonRpcChecker",
    "LiveTester",
    "TransportChecker",
    "TransportProbe",
    "build_request",
    "create_default_registry",
    "probe_targets",
]
