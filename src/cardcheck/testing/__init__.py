"""cardcheck testing utilities for easier test authoring.

This package provides pytest fixtures, a mock HTTP agent and custom
assertions to reduce boilerplate when testing card validation.

Modules:
    fixtures: Pytest fixtures (agent_card, mock_server, mock_http, signing_key,
              validator) and card builders (build_agent_card, sign_agent_card).
    mocks: MockAgentServer, an httpx.MockTransport-backed fake agent and
           key set host.
    assertions: Custom assertions (assert_valid_result, assert_has_error,
                assert_has_warning).

Example:
    >>> from cardcheck.testing import MockAgentServer, assert_has_error
    >>> from cardcheck.testing.fixtures import build_agent_card
"""

from cardcheck.testing.assertions import (
    assert_has_error,
    assert_has_warning,
    assert_valid_result,
)
from cardcheck.testing.mocks import MockAgentServer

__all__ = [
    "MockAgentServer",
    "assert_has_error",
    "assert_has_warning",
    "assert_valid_result",
]
