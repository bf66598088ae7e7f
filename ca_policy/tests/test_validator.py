"""Tests for key/signature compatibility validation."""

import pytest

from ca_policy.exceptions import (
    IncompatibleSignatureAlgorithm,
    InvalidKeySize,
    UnknownKeyAlgorithm,
    UnknownSignatureAlgorithm,
    UnsupportedSignatureAlgorithm,
)
from ca_policy.models import CertificateRequest, KeyAlgorithm, SignatureAlgorithm
from ca_policy.policy import CompatibilityValidator, PolicyRegistry


REGISTRY = PolicyRegistry.default()


def _request(key_algorithm, key_size, signature, profile="EndEntityServerAuthCertificate"):
    return CertificateRequest(
        common_name="service.example.com",
        subject_alternative_names=["service.example.com"],
        key_algorithm=key_algorithm,
        key_size=key_size,
        signature_algorithm=signature,
        profile=profile,
    )


@pytest.fixture
def validator():
    return CompatibilityValidator(REGISTRY)


def _allowed_combinations():
    for name, key_policy in REGISTRY.key_algorithms.items():
        for size in sorted(key_policy.key_sizes):
            for signature in sorted(key_policy.signatures):
                yield name, size, signature


def _cross_family_combinations():
    for name, key_policy in REGISTRY.key_algorithms.items():
        size = min(key_policy.key_sizes)
        for signature in sorted(set(REGISTRY.signatures) - key_policy.signatures):
            yield name, size, signature


@pytest.mark.parametrize("key_algorithm,key_size,signature", list(_allowed_combinations()))
def test_every_allowed_combination_passes(validator, key_algorithm, key_size, signature):
    """Test all policy-permitted combinations validate."""
    validated = validator.validate(_request(key_algorithm, key_size, signature))
    assert validated.key_policy.name == key_algorithm
    assert validated.signature.name == signature


@pytest.mark.parametrize("key_algorithm,key_size,signature", list(_cross_family_combinations()))
def test_registered_but_foreign_signature_is_incompatible(validator, key_algorithm, key_size, signature):
    """Test globally valid signatures are rejected for the wrong key family."""
    with pytest.raises(IncompatibleSignatureAlgorithm):
        validator.validate(_request(key_algorithm, key_size, signature))


def test_rsa_examples(validator):
    """Test RSA accepts RSA signatures and rejects ECDSA ones."""
    validated = validator.validate(_request("RSA", 2048, "SHA256WITHRSA"))
    assert validated.key_policy.algorithm == KeyAlgorithm.RSA
    assert validated.signature.algorithm == SignatureAlgorithm.SHA256_WITH_RSA

    with pytest.raises(IncompatibleSignatureAlgorithm) as exc_info:
        validator.validate(_request("RSA", 2048, "SHA256WITHECDSA"))
    assert exc_info.value.signature == "SHA256WITHECDSA"
    assert exc_info.value.algorithm == "RSA"


def test_ecdsa_examples(validator):
    """Test ECDSA accepts ECDSA signatures and rejects RSA ones."""
    validator.validate(_request("ECDSA", 256, "SHA512WITHECDSA"))

    with pytest.raises(IncompatibleSignatureAlgorithm):
        validator.validate(_request("ECDSA", 256, "SHA512WITHRSA"))


def test_unknown_key_algorithm(validator):
    """Test unregistered key algorithms are rejected first."""
    with pytest.raises(UnknownKeyAlgorithm) as exc_info:
        validator.validate(_request("DSA", 12345, "NOPE"))
    assert exc_info.value.name == "DSA"


def test_invalid_key_size(validator):
    """Test key size checked before signature."""
    with pytest.raises(InvalidKeySize):
        validator.validate(_request("RSA", 1024, "SHA256WITHRSA"))
    with pytest.raises(InvalidKeySize):
        validator.validate(_request("ECDSA", 2048, "NOT-A-SIGNATURE"))


def test_unknown_signature(validator):
    """Test signatures absent from the global table."""
    with pytest.raises(UnknownSignatureAlgorithm):
        validator.validate(_request("RSA", 4096, "SHA1WITHRSA"))
    with pytest.raises(UnsupportedSignatureAlgorithm):
        validator.validate(_request("RSA", 4096, "SHA256WITHRSAPSS"))


def test_policy_errors_are_client_errors(validator):
    """Test policy violations are classified as caller errors."""
    with pytest.raises(IncompatibleSignatureAlgorithm) as exc_info:
        validator.validate(_request("RSA", 2048, "SHA256WITHECDSA"))
    assert exc_info.value.client_error
    assert not exc_info.value.retryable
