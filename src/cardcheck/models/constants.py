"""Constants for cardcheck.

This module defines the A2A facts the validators and the scorer share, so
that both sides of the engine agree on limits and known values.
"""

# Version of the validator itself, reported in versionInfo
VALIDATOR_VERSION = "0.3.0"

# Released A2A protocol versions, oldest first
KNOWN_PROTOCOL_VERSIONS = ("0.1.0", "0.2.0", "0.3.0")
LATEST_PROTOCOL_VERSION = KNOWN_PROTOCOL_VERSIONS[-1]

# Length limits (characters), shared by SchemaValidator and the compliance scorer
MAX_NAME_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000
# Only the compliance scorer checks URL length
MAX_URL_LENGTH = 2048

# Fields that must be present for a card to be schema-valid
SCHEMA_REQUIRED_FIELDS = (
    "name",
    "description",
    "url",
    "provider",
    "version",
    "protocolVersion",
    "preferredTransport",
    "capabilities",
    "defaultInputModes",
    "defaultOutputModes",
    "skills",
)

# Fields counted by the compliance "core fields" category (60 points)
COMPLIANCE_REQUIRED_FIELDS = (
    "protocolVersion",
    "name",
    "description",
    "url",
    "version",
    "capabilities",
    "defaultInputModes",
    "defaultOutputModes",
    "skills",
)

OPTIONAL_URL_FIELDS = (
    "iconUrl",
    "documentationUrl",
    "termsOfServiceUrl",
    "privacyPolicyUrl",
)

SEMVER_PATTERN = (
    r"^([0-9]+)\.([0-9]+)\.([0-9]+)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?\Z"
)

MIME_TYPE_PATTERN = r"^[a-z]+/[a-z0-9+\-.]+\Z"

FEATURE_MIN_VERSIONS: dict[str, tuple[str, str]] = {
    "capabilities.streaming": ("0.3.0", "Streaming capability"),
    "capabilities.pushNotifications": ("0.3.0", "Push notifications capability"),
    "additionalInterfaces": ("0.3.0", "additionalInterfaces field"),
    "signatures": ("0.3.0", "Agent card signatures"),
}
"""Capability path -> (minimum protocol version, human description)."""

# JWS algorithms accepted for agent card signatures
SUPPORTED_SIGNATURE_ALGORITHMS = frozenset(
    {
        "RS256",
        "RS384",
        "RS512",
        "ES256",
        "ES384",
        "ES512",
        "PS256",
        "PS384",
        "PS512",
        "EdDSA",
    }
)

# Signatures issued longer ago than this are not "recent" for trust scoring
SIGNATURE_RECENCY_SECONDS = 90 * 24 * 3600

# Security scheme types that count as strong authentication
STRONG_AUTH_SCHEME_TYPES = frozenset({"oauth2", "openidconnect", "mutualtls"})

# Well-known discovery paths
WELLKNOWN_AGENT_CARD_PATH = "/.well-known/agent-card.json"
LEGACY_AGENT_CARD_PATH = "/.well-known/agent.json"

# Live testing defaults
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_TEST_MESSAGE = "Hello, are you available?"
FAST_RESPONSE_MS = 3000.0
ACCEPTABLE_RESPONSE_MS = 10000.0
