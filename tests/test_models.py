"""Tests for credcli.models."""

import pytest
from pydantic import ValidationError

from credcli.models import (
    CreateRequest,
    CredentialRecord,
    CredentialType,
    Disposition,
    Material,
    Payload,
)


def test_store_payload_requires_filename():
    with pytest.raises(ValidationError):
        Payload(description="Certificate", disposition=Disposition.STORE, data=b"x")


def test_store_payload_rejects_empty_filename():
    with pytest.raises(ValidationError):
        Payload(description="Certificate", disposition=Disposition.STORE, filename="", data=b"x")


def test_show_payload_rejects_filename():
    with pytest.raises(ValidationError):
        Payload(description="Password", disposition=Disposition.SHOW, filename="pw.txt", data=b"x")


def test_show_payload_text():
    p = Payload(description="Password", disposition=Disposition.SHOW, data=b"hunter2")
    assert p.filename is None
    assert p.text() == "hunter2"


def test_payload_is_immutable():
    p = Payload(description="Password", disposition=Disposition.SHOW, data=b"x")
    with pytest.raises(ValidationError):
        p.data = b"y"


def test_record_parses_type_from_string():
    r = CredentialRecord(id="vpn-1", type="vpn-service", owner="alice@example.com")
    assert r.type is CredentialType.VPN_SERVICE
    assert r.hostname is None


def test_record_rejects_unknown_type():
    with pytest.raises(ValidationError):
        CredentialRecord(id="x", type="smartcard", owner="alice@example.com")


def test_credential_type_labels():
    assert CredentialType.WEB.label == "Web"
    assert CredentialType.VPN_SERVICE.label == "VPN service"


def test_material_missing_part_is_none():
    m = Material(parts={"cert": b"pem"})
    assert m.part("cert") == b"pem"
    assert m.part("key") is None


def test_create_request_defaults():
    req = CreateRequest(type=CredentialType.WEB, user="alice", identity="alice@example.com")
    assert req.hostname is None
    assert req.soc is None
