"""Tests for URL checks and semver helpers."""

import pytest

from cardcheck.utils.semver import is_semver, parse_version, version_lt
from cardcheck.utils.urls import (
    get_hostname,
    is_http_url,
    is_https_url,
    is_ssrf_risk,
    is_valid_url,
)


class TestIsValidUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://agent.example.com/a2a",
            "http://agent.example.com",
            "https://agent.example.com:8443/a2a?x=1",
        ],
    )
    def test_valid(self, url: str) -> None:
        assert is_valid_url(url)

    @pytest.mark.parametrize(
        "value",
        [
            "agent.example.com",
            "ftp://agent.example.com/",
            "https://",
            "https://agent.example.com:99999/",
            "",
            None,
            42,
        ],
    )
    def test_invalid(self, value: object) -> None:
        assert not is_valid_url(value)

    def test_scheme_helpers(self) -> None:
        assert is_https_url("https://agent.example.com")
        assert not is_https_url("http://agent.example.com")
        assert is_http_url("http://agent.example.com")
        assert not is_http_url("https://agent.example.com")
        assert not is_http_url("not a url")


def test_get_hostname_lowercases() -> None:
    assert get_hostname("https://Agent.Example.COM/a2a") == "agent.example.com"
    assert get_hostname("not a url") is None


class TestSsrfRisk:
    @pytest.mark.parametrize(
        "url",
        [
            "http://127.0.0.1:8080/",
            "https://10.0.0.5/a2a",
            "https://192.168.1.1/",
            "https://169.254.169.254/latest/meta-data",
            "https://0.0.0.0/",
            "https://[::1]/a2a",
            "https://[::ffff:127.0.0.1]/a2a",
            "https://localhost/a2a",
            "https://api.localhost/a2a",
            "https://127.1/",
            "https://2130706433/",
            "https://0x7f000001/",
            "https://0177.0.0.1/",
            "https://10.1/a2a",
        ],
    )
    def test_internal_hosts(self, url: str) -> None:
        assert is_ssrf_risk(url)

    @pytest.mark.parametrize(
        "url",
        [
            "https://agent.example.com/",
            "https://8.8.8.8/",
            "https://134744072/",
            "https://localhost.example.com/",
            "https://0x.example.com/",
        ],
    )
    def test_public_hosts(self, url: str) -> None:
        assert not is_ssrf_risk(url)

    def test_no_host(self) -> None:
        assert not is_ssrf_risk("not a url")


class TestSemver:
    @pytest.mark.parametrize("value", ["1.0.0", "0.3.0", "1.2.3-beta.1+build.5", "10.20.30"])
    def test_full_versions(self, value: str) -> None:
        assert is_semver(value)

    @pytest.mark.parametrize("value", ["1.2", "v1.0.0", "1.0.0.0", "1.0.0\n", "\u0661.0.0", "", 1])
    def test_rejected(self, value: object) -> None:
        assert not is_semver(value)

    def test_parse_uses_numeric_core(self) -> None:
        parsed = parse_version("1.2.3-rc.1")
        assert parsed is not None
        assert str(parsed) == "1.2.3"
        assert parse_version("latest") is None

    def test_ordering(self) -> None:
        assert version_lt("0.2.0", "0.3.0") is True
        assert version_lt("0.10.0", "0.3.0") is False
        assert version_lt("0.3.0", "0.3.0") is False
        assert version_lt("nope", "0.3.0") is None
