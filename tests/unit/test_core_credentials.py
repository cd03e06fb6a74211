"""Unit tests for credential sources and service URL conventions."""
import pytest

from veeambackup.core.auth import AZURE, VBR, CredentialSource


def make_source(hostname, **overrides):
    return CredentialSource(hostname=hostname, username="admin", password="secret", **overrides)


@pytest.mark.parametrize("hostname, port, expected", [
    ("https://vba.example.com/", None, "https://vba.example.com"),
    ("vba.example.com", None, "https://vba.example.com"),
    ("http://10.0.0.5", None, "http://10.0.0.5"),
    ("https://vba.example.com", 8443, "https://vba.example.com:8443"),
    ("https://vba.example.com:8443", 443, "https://vba.example.com:8443"),
    ("https://vba.example.com/vba", 8443, "https://vba.example.com:8443/vba"),
    ("vba.example.com/vba/", None, "https://vba.example.com/vba"),
    ("https://[fe80::1]", 8443, "https://[fe80::1]:8443"),
])
def test_azure_base_url(hostname, port, expected):
    assert make_source(hostname, port=port).base_url(AZURE) == expected


@pytest.mark.parametrize("hostname, port, expected", [
    ("vbr.example.com", None, "https://vbr.example.com:9419"),
    ("https://vbr.example.com/", None, "https://vbr.example.com:9419"),
    ("http://vbr.example.com", None, "https://vbr.example.com:9419"),
    ("vbr.example.com", 9420, "https://vbr.example.com:9420"),
    ("[fe80::1]", None, "https://[fe80::1]:9419"),
])
def test_vbr_base_url(hostname, port, expected):
    assert make_source(hostname, port=port).base_url(VBR) == expected


def test_token_url():
    assert make_source("vbr.example.com").token_url(VBR) == "https://vbr.example.com:9419/api/oauth2/token"


def test_token_url_keeps_port_ahead_of_base_path():
    source = make_source("https://vba.example.com/vba", port=8443)
    assert source.token_url(AZURE) == "https://vba.example.com:8443/vba/api/oauth2/token"


def test_api_version_defaults():
    source = make_source("host")
    assert source.resolved_api_version(AZURE) == "8.1"
    assert source.resolved_api_version(VBR) == "1.3-rev1"
    assert make_source("host", api_version="1.2-rev0").resolved_api_version(VBR) == "1.2-rev0"


def test_repr_hides_password():
    assert "secret" not in repr(make_source("host"))


def test_credential_source_is_immutable():
    source = make_source("host")
    with pytest.raises(AttributeError):
        source.password = "other"
