"""Typed A2A agent card models.

The validators work on the raw JSON mapping so that broken cards can be
described finding by finding. These models exist for callers that build
cards in code (fixtures, registries, signing tools); ``to_card_dict`` turns
them into the mapping the validators consume.
"""

from typing import Any

from pydantic import ConfigDict, Field

from cardcheck.models.base import CardCheckBaseModel
from cardcheck.models.enums import TransportProtocol


class _CardModel(CardCheckBaseModel):
    # Agent cards are extensible; unknown members are preserved, not rejected.
    model_config = ConfigDict(extra="allow")


class AgentProvider(_CardModel):
    organization: str
    url: str


class AgentCapabilities(_CardModel):
    streaming: bool | None = None
    push_notifications: bool | None = None
    state_transition_history: bool | None = None


class AgentInterface(_CardModel):
    url: str
    transport: TransportProtocol


class AgentSkill(_CardModel):
    """A unit of work the agent advertises."""

    id: str
    name: str
    description: str
    tags: list[str] = Field(default_factory=list)
    examples: list[str] | None = None
    input_modes: list[str] | None = None
    output_modes: list[str] | None = None


class AgentCardSignature(_CardModel):
    """Detached JWS over the card's canonical form.

    ``protected`` is the base64url JSON header (alg, kid, jku); ``signature``
    is the base64url signature value. The payload segment is omitted.
    """

    protected: str
    signature: str
    header: dict[str, Any] | None = None


class AgentCard(_CardModel):
    """A2A agent card.

    Example:
        >>> card = AgentCard(
        ...     protocol_version="0.3.0",
        ...     name="Echo",
        ...     description="Echoes input",
        ...     url="https://echo.example.com/a2a",
        ...     preferred_transport=TransportProtocol.JSONRPC,
        ...     provider=AgentProvider(organization="Example", url="https://example.com"),
        ...     version="1.0.0",
        ...     capabilities=AgentCapabilities(streaming=False),
        ...     default_input_modes=["text/plain"],
        ...     default_output_modes=["text/plain"],
        ...     skills=[AgentSkill(id="echo", name="Echo", description="Echo", tags=["demo"])],
        ... )
        >>> card.to_card_dict()["preferredTransport"]
        'JSONRPC'
    """

    protocol_version: str
    name: str
    description: str
    url: str
    preferred_transport: TransportProtocol = TransportProtocol.JSONRPC
    additional_interfaces: list[AgentInterface] | None = None
    provider: AgentProvider
    icon_url: str | None = None
    version: str
    documentation_url: str | None = None
    terms_of_service_url: str | None = None
    privacy_policy_url: str | None = None
    capabilities: AgentCapabilities = Field(default_factory=AgentCapabilities)
    security_schemes: dict[str, dict[str, Any]] | None = None
    security: list[dict[str, list[str]]] | None = None
    default_input_modes: list[str]
    default_output_modes: list[str]
    skills: list[AgentSkill]
    supports_authenticated_extended_card: bool | None = None
    signatures: list[AgentCardSignature] | None = None

    def to_card_dict(self) -> dict[str, Any]:
        """Return the card as a JSON mapping (camelCase keys, unset optionals dropped)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
