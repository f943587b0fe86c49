"""Agent card discovery: local files and A2A well-known URLs."""

from cardcheck.discovery.wellknown import (
    CardFetcher,
    DiscoveredCard,
    is_url_source,
    load_card_file,
    resolve_card,
    wellknown_url,
)

__all__ = [
    "CardFetcher",
    "DiscoveredCard",
    "is_url_source",
    "load_card_file",
    "resolve_card",
    "wellknown_url",
]
