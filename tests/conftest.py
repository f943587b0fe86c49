"""Shared pytest configuration for cardcheck tests.

Fixtures come from ``cardcheck.testing.fixtures`` so that downstream users
get the same helpers the project tests with.
"""

# Load cardcheck.testing fixtures (agent_card, mock_server, mock_http, signing_key, validator)
pytest_plugins = ["cardcheck.testing.fixtures"]
