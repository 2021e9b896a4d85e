"""Tests for xrdauthz.auth.unix -- the legacy ``unix`` protocol stub."""

from __future__ import annotations

import errno

import pytest

from xrdauthz.auth.unix import (
    PROTOCOL_ID,
    UnixSecProtocol,
    unix_protocol_init,
    unix_protocol_object,
)
from xrdauthz.exceptions import AuthError, ProtocolMismatchError


@pytest.fixture
def protocol() -> UnixSecProtocol:
    return UnixSecProtocol("client.example.org", endpoint=("10.0.0.1", 4321))


class TestAuthenticate:
    def test_no_credentials_accepted_as_host(self, protocol: UnixSecProtocol) -> None:
        entity = protocol.authenticate(None)
        assert entity.prot == "host"
        assert entity.name == "?"
        assert entity.host == "client.example.org"

    def test_empty_credentials_accepted_as_host(self, protocol: UnixSecProtocol) -> None:
        assert protocol.authenticate(b"").prot == "host"

    def test_short_credentials_accepted_as_host(self, protocol: UnixSecProtocol) -> None:
        assert protocol.authenticate(b"uni").prot == "host"

    def test_matching_tag_accepted(self, protocol: UnixSecProtocol) -> None:
        entity = protocol.authenticate(b"unix\0alice staff")
        assert entity.prot == PROTOCOL_ID
        assert entity.host == "client.example.org"

    def test_exact_tag_without_terminator_accepted(self, protocol: UnixSecProtocol) -> None:
        assert protocol.authenticate(b"unix").prot == PROTOCOL_ID

    def test_mismatched_tag_rejected(self, protocol: UnixSecProtocol) -> None:
        with pytest.raises(ProtocolMismatchError) as excinfo:
            protocol.authenticate(b"krb5\0ticket")
        assert excinfo.value.errno == errno.EINVAL
        assert "unix != krb5" in str(excinfo.value)

    def test_longer_tag_rejected(self, protocol: UnixSecProtocol) -> None:
        with pytest.raises(ProtocolMismatchError):
            protocol.authenticate(b"unixx\0")

    def test_mismatch_is_auth_error(self, protocol: UnixSecProtocol) -> None:
        with pytest.raises(AuthError):
            protocol.authenticate(b"gsi\0\0\0")

    def test_endpoint_kept_on_entity(self, protocol: UnixSecProtocol) -> None:
        assert protocol.authenticate(None).addr_info == ("10.0.0.1", 4321)


class TestProtocolHooks:
    def test_no_client_credentials(self, protocol: UnixSecProtocol) -> None:
        assert protocol.get_credentials() is None

    def test_protocol_name(self, protocol: UnixSecProtocol) -> None:
        assert protocol.protocol == "unix"

    def test_init_returns_empty_parameters(self) -> None:
        assert unix_protocol_init("s") == ""

    def test_object_factory(self) -> None:
        obj = unix_protocol_object("s", "peer.example.org")
        assert isinstance(obj, UnixSecProtocol)
        assert obj.entity.host == "peer.example.org"
        assert obj.entity.prot == "unix"
