"""Tests for signing specification assembly."""

import pytest
from pydantic import ValidationError

from ca_policy.crypto import CustodianBackedKey, LocallyHeldKey
from ca_policy.exceptions import IncompleteSpecification
from ca_policy.models import (
    AuthorityReference,
    CertificateRequest,
    DistinguishedName,
    ExtendedKeyUsage,
    KeyAlgorithm,
    KeyUsage,
    SignatureAlgorithm,
)
from ca_policy.policy import (
    CompatibilityValidator,
    PolicyRegistry,
    ProfileResolver,
    build_signing_specification,
)


AUTHORITY = AuthorityReference(
    region="us-east-1",
    authority_arn="arn:aws:acm-pca:us-east-1:123456789012:certificate-authority/sub-ca",
    assume_role=True,
    role_arn="arn:aws:iam::123456789012:role/issuer",
)


class NullCustodian:
    def sign(self, reference, data, algorithm, timeout):
        return b"signature"


@pytest.fixture
def registry():
    return PolicyRegistry.default()


@pytest.fixture
def validated(registry):
    request = CertificateRequest(
        common_name="api.example.com",
        subject_alternative_names=["api.example.com", "10.0.0.5"],
        distinguished_name=DistinguishedName(country=["US"], organization=["Example"]),
        key_algorithm="ECDSA",
        key_size=384,
        signature_algorithm="SHA384WITHECDSA",
        profile="EndEntityServerAuthCertificate",
    )
    return CompatibilityValidator(registry).validate(request)


@pytest.fixture
def profile(registry):
    return ProfileResolver(registry).resolve("EndEntityServerAuthCertificate")


@pytest.fixture
def custodian_key():
    return CustodianBackedKey(AUTHORITY, NullCustodian())


def test_spec_is_fully_resolved(validated, profile, custodian_key):
    """Test the specification carries backend-ready values only."""
    spec = build_signing_specification(validated, profile, custodian_key, AUTHORITY, validity_days=30)

    assert spec.common_name == "api.example.com"
    assert spec.subject_alternative_names == ("api.example.com", "10.0.0.5")
    assert spec.distinguished_name.country == ("US",)
    assert spec.key_algorithm == KeyAlgorithm.ECDSA
    assert spec.key_size == 384
    assert spec.signature_algorithm == SignatureAlgorithm.ECDSA_WITH_SHA384
    assert spec.backend == "acm-pca"
    assert spec.signing_code == "SHA384WITHECDSA"
    assert spec.key_usage == {KeyUsage.DIGITAL_SIGNATURE, KeyUsage.KEY_ENCIPHERMENT}
    assert spec.extended_key_usage == (ExtendedKeyUsage.SERVER_AUTH,)
    assert spec.template_arn.endswith("/EndEntityServerAuthCertificate/V1")
    assert spec.signing_key_id == AUTHORITY.authority_arn
    assert spec.authority == AUTHORITY
    assert spec.validity.days == 30
    assert not spec.root_ca


def test_spec_is_immutable(validated, profile, custodian_key):
    """Test fields cannot be changed after construction."""
    spec = build_signing_specification(validated, profile, custodian_key, AUTHORITY, validity_days=30)
    with pytest.raises(ValidationError):
        spec.signing_code = "SHA256WITHRSA"
    with pytest.raises(ValidationError):
        spec.distinguished_name.country = ("XX",)
    with pytest.raises(AttributeError):
        spec.distinguished_name.organization.append("Evil")
    with pytest.raises(AttributeError):
        spec.key_usage.add(KeyUsage.CERT_SIGN)
    assert spec.distinguished_name.organization == ("Example",)


def test_spec_does_not_share_request_state(validated, profile, custodian_key):
    """Test later edits to the request do not reach the specification."""
    spec = build_signing_specification(validated, profile, custodian_key, AUTHORITY, validity_days=30)
    validated.request.subject_alternative_names.append("evil.example.com")
    validated.request.distinguished_name.country.append("XX")

    assert "evil.example.com" not in spec.subject_alternative_names
    assert spec.distinguished_name.country == ("US",)


def test_custodian_key_requires_authority(validated, profile, custodian_key):
    """Test a remote key without authority reference is incomplete."""
    with pytest.raises(IncompleteSpecification):
        build_signing_specification(validated, profile, custodian_key, None, validity_days=30)


def test_local_key_without_authority(validated, profile):
    """Test a local key may be used without an authority reference."""
    key = LocallyHeldKey.generate(KeyAlgorithm.ECDSA, 256)
    spec = build_signing_specification(validated, profile, key, None, validity_days=1, root_ca=True)
    assert spec.authority is None
    assert spec.root_ca
    assert spec.signing_key_id == key.identity()


def test_non_positive_validity(validated, profile, custodian_key):
    """Test validity period must be positive."""
    with pytest.raises(IncompleteSpecification):
        build_signing_specification(validated, profile, custodian_key, AUTHORITY, validity_days=0)


def test_backend_without_code(validated, profile, custodian_key):
    """Test unknown backend column is reported as incomplete."""
    with pytest.raises(IncompleteSpecification):
        build_signing_specification(
            validated, profile, custodian_key, AUTHORITY, validity_days=30, backend="vault"
        )


def test_canonical_json_is_stable(validated, profile, custodian_key):
    """Test canonical JSON is identical for identical specifications."""
    spec1 = build_signing_specification(validated, profile, custodian_key, AUTHORITY, validity_days=30)
    spec2 = build_signing_specification(validated, profile, custodian_key, AUTHORITY, validity_days=30)
    assert spec1.to_canonical_json() == spec2.to_canonical_json()
    assert '"signing_code":"SHA384WITHECDSA"' in spec1.to_canonical_json()
