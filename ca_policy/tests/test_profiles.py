"""Tests for certificate profile resolution."""

import pytest

from ca_policy.exceptions import UnknownProfile
from ca_policy.models import CertificateProfile, ExtendedKeyUsage, KeyUsage
from ca_policy.policy import PolicyRegistry, ProfileResolver
from ca_policy.policy.registry import DEFAULT_KEY_ALGORITHMS, DEFAULT_SIGNATURES


@pytest.fixture
def resolver():
    return ProfileResolver(PolicyRegistry.default())


def test_server_auth_profile(resolver):
    """Test server-auth profile extensions and template."""
    profile = resolver.resolve("EndEntityServerAuthCertificate")
    assert profile.key_usage == {KeyUsage.DIGITAL_SIGNATURE, KeyUsage.KEY_ENCIPHERMENT}
    assert profile.extended_key_usage == (ExtendedKeyUsage.SERVER_AUTH,)
    assert profile.template_arn.endswith("/EndEntityServerAuthCertificate/V1")
    assert profile.key_usage_bits == 5


def test_client_auth_and_code_signing_profiles(resolver):
    """Test the other built-in profiles."""
    client = resolver.resolve("EndEntityClientAuthCertificate")
    assert client.extended_key_usage == (ExtendedKeyUsage.CLIENT_AUTH,)

    code = resolver.resolve("CodeSigningCertificate")
    assert code.key_usage == {KeyUsage.DIGITAL_SIGNATURE}
    assert code.extended_key_usage == (ExtendedKeyUsage.CODE_SIGNING,)
    assert code.template_arn == "arn:aws:acm-pca:::template/CodeSigningCertificate/V1"


def test_unknown_profile(resolver):
    """Test unknown profile names are rejected."""
    with pytest.raises(UnknownProfile) as exc_info:
        resolver.resolve("NotARealProfile")
    assert exc_info.value.name == "NotARealProfile"


def test_profiles_extend_without_touching_signature_policy():
    """Test a new profile can be added with unchanged key/signature tables."""
    ocsp = CertificateProfile(
        name="OCSPSigningCertificate",
        key_usage=frozenset({KeyUsage.DIGITAL_SIGNATURE}),
        extended_key_usage=(ExtendedKeyUsage.OCSP_SIGNING,),
        template_arn="arn:aws:acm-pca:::template/OCSPSigningCertificate/V1",
    )
    registry = PolicyRegistry(DEFAULT_KEY_ALGORITHMS, DEFAULT_SIGNATURES, [ocsp])

    assert ProfileResolver(registry).resolve("OCSPSigningCertificate") == ocsp
    assert registry.key_policy("RSA").signatures == PolicyRegistry.default().key_policy("RSA").signatures
