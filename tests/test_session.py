"""Tests for credcli.session."""

from pathlib import Path

import pytest

from credcli.exceptions import IdentityResolutionError, TransportError
from credcli.session import DeviceProfile, SessionBuilder, SessionConfig
from credcli.signing import Pkcs7Signer


class BrokenProvider:
    def get_email_address(self) -> str:
        raise TransportError("people API unreachable")


# ---------------------------------------------------------------------------
# Identity resolution
# ---------------------------------------------------------------------------


def test_override_takes_precedence_over_provider(store, provider):
    session = SessionBuilder().user("bob@example.com").build(store, provider)
    assert session.resolve_identity() == "bob@example.com"
    assert provider.calls == 0


def test_provider_is_queried_once(store, provider):
    session = SessionBuilder().build(store, provider)
    assert session.resolve_identity() == "alice@example.com"
    assert session.resolve_identity() == "alice@example.com"
    assert provider.calls == 1


def test_no_override_and_no_provider_fails(store):
    session = SessionBuilder().build(store)
    with pytest.raises(IdentityResolutionError):
        session.resolve_identity()


def test_provider_failure_is_identity_error(store):
    session = SessionBuilder().build(store, BrokenProvider())
    with pytest.raises(IdentityResolutionError, match="people API"):
        session.resolve_identity()


def test_empty_email_fails(store, provider):
    provider.email = ""
    session = SessionBuilder().build(store, provider)
    with pytest.raises(IdentityResolutionError):
        session.resolve_identity()


def test_blank_user_override_is_ignored(store, provider):
    session = SessionBuilder().user("").build(store, provider)
    assert session.resolve_identity() == "alice@example.com"


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def test_builder_defaults():
    config = SessionBuilder().config()
    assert config == SessionConfig()
    assert config.project == "example"
    assert config.bucket == "example-credentials"
    assert config.signing is None
    assert config.device_profile == DeviceProfile()


def test_setters_are_chainable_and_idempotent():
    once = SessionBuilder().project("p1").bucket("b1").soc("soc-1").config()
    twice = SessionBuilder().project("p1").project("p1").bucket("b1").bucket("b1").soc("soc-1").soc("soc-1").config()
    assert once == twice
    assert once.soc == "soc-1"


def test_device_profile_blank_fields_keep_defaults():
    config = SessionBuilder().device_profile("com.acme.vpn", None, "").config()
    assert config.device_profile.identifier == "com.acme.vpn"
    assert config.device_profile.name == DeviceProfile().name
    assert config.device_profile.description == DeviceProfile().description


def test_blank_values_keep_earlier_settings():
    config = SessionBuilder().user("bob").user(None).soc("s").soc("").config()
    assert config.user == "bob"
    assert config.soc == "s"


def test_device_profile_calls_accumulate():
    config = (
        SessionBuilder()
        .device_profile("com.acme.vpn")
        .device_profile(name="Acme VPN")
        .device_profile(None, "", "")
        .config()
    )
    assert config.device_profile == DeviceProfile(
        identifier="com.acme.vpn", name="Acme VPN", description=DeviceProfile().description
    )


def test_config_is_frozen():
    config = SessionBuilder().config()
    with pytest.raises(Exception):
        config.project = "other"


# ---------------------------------------------------------------------------
# Signer
# ---------------------------------------------------------------------------


def test_signer_is_none_without_signing(session):
    assert session.signer() is None


def test_default_signer_is_pkcs7(store):
    session = SessionBuilder().signing(Path("k.pem"), Path("c.pem")).build(store)
    signer = session.signer()
    assert isinstance(signer, Pkcs7Signer)
    assert session.signer() is signer


def test_custom_signer_factory(store):
    made = []

    def factory(signing):
        made.append(signing)
        return object()

    session = SessionBuilder().signing(Path("k.pem"), Path("c.pem")).build(store, signer_factory=factory)
    session.signer()
    session.signer()
    assert len(made) == 1
    assert made[0].key_ref == Path("k.pem")
