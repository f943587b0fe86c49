"""Per-call options for card validation and live probing."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from cardcheck.models.constants import DEFAULT_TEST_MESSAGE, DEFAULT_TIMEOUT_SECONDS
from cardcheck.models.enums import ValidationStrictness


class ProbeOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS, gt=0, description="Timeout of each probe request"
    )
    send_test_message: bool = Field(
        default=True, description="Send a message/send to the primary endpoint"
    )
    test_message: str = Field(
        default=DEFAULT_TEST_MESSAGE, min_length=1, description="Text of the live test message"
    )


class ValidationOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    strictness: ValidationStrictness = Field(
        default=ValidationStrictness.PROGRESSIVE,
        description="strict escalates version mismatches and requires https URLs",
    )
    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        le=300,
        description="Timeout of each network operation, in seconds",
    )
    skip_signature_verification: bool = Field(
        default=False, description="Do not fetch key sets or verify signatures"
    )
    test_live: bool = Field(default=False, description="Probe declared endpoints over the network")
    schema_only: bool = Field(
        default=False, description="Static validation only; overrides test_live"
    )
    send_test_message: bool = Field(
        default=True, description="During live testing, exchange a message/send with the agent"
    )
    test_message: str = Field(default=DEFAULT_TEST_MESSAGE, min_length=1)

    @property
    def live_testing_enabled(self) -> bool:
        return self.test_live and not self.schema_only

    @property
    def strict(self) -> bool:
        return self.strictness is ValidationStrictness.STRICT

    def probe_options(self) -> ProbeOptions:
        return ProbeOptions(
            timeout_seconds=self.timeout_seconds,
            send_test_message=self.send_test_message,
            test_message=self.test_message,
        )
