"""URL checks shared by the schema validator, the scorer and the key fetcher.

The SSRF guard only inspects the host as written in the card: IP literals in
private, loopback, link-local, reserved or unspecified ranges and the
``localhost`` names are rejected. Shorthand, decimal, hex and octal IPv4
forms (``127.1``, ``2130706433``, ``0x7f000001``) are read the way the
resolver reads them. No DNS resolution takes place, so the check is
deterministic and never performs I/O.
"""

import ipaddress
import socket
from urllib.parse import urlsplit

_LOCAL_HOSTNAMES = frozenset(
    {"localhost", "localhost.localdomain", "ip6-localhost", "ip6-loopback"}
)


def _numeric_ipv4(host: str) -> str | None:
    """Dotted-quad form of a numeric IPv4 host, or None for names and IPv6."""
    if ":" in host:
        return None
    try:
        return socket.inet_ntoa(socket.inet_aton(host))
    except OSError:
        return None


def _is_ip_blocked(addr: str) -> bool:
    """True if addr is a private, loopback, link-local, reserved or unspecified IP literal."""
    try:
        ip = ipaddress.ip_address(_numeric_ipv4(addr) or addr)
    except ValueError:
        return False

    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_unspecified
    )


def get_hostname(url: str) -> str | None:
    """Return the lower-cased hostname of url, or None if it has none or is unparseable."""
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return None
    return hostname.lower() if hostname else None


def is_valid_url(value: object) -> bool:
    """Return True for an absolute http(s) URL with a host.

    Example:
        >>> is_valid_url("https://agent.example.com/a2a")
        True
        >>> is_valid_url("agent.example.com")
        False
    """
    if not isinstance(value, str) or not value:
        return False
    try:
        parts = urlsplit(value)
        # Accessing .port validates it
        _ = parts.port
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.hostname)


def is_https_url(value: object) -> bool:
    return is_valid_url(value) and urlsplit(str(value)).scheme == "https"


def is_http_url(value: object) -> bool:
    """True for a valid plain-http URL."""
    return is_valid_url(value) and urlsplit(str(value)).scheme == "http"


def is_ssrf_risk(url: str) -> bool:
    """Return True if the URL's host points at a local or internal address.

    Example:
        >>> is_ssrf_risk("http://127.0.0.1:8080/")
        True
        >>> is_ssrf_risk("https://agent.example.com/")
        False
    """
    hostname = get_hostname(url)
    if hostname is None:
        return False
    if hostname in _LOCAL_HOSTNAMES or hostname.endswith(".localhost"):
        return True
    return _is_ip_blocked(hostname.strip("[]"))
