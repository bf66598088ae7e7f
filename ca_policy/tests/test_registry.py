"""Tests for the policy registry."""

import pytest
from pydantic import ValidationError

from ca_policy.exceptions import (
    ConfigError,
    UnknownKeyAlgorithm,
    UnknownProfile,
    UnknownSignatureAlgorithm,
    UnsupportedSignatureAlgorithm,
)
from ca_policy.models import KeyAlgorithm, KeyAlgorithmPolicy, SignatureAlgorithm, SignatureAlgorithmMapping
from ca_policy.policy import ACM_PCA_BACKEND, PolicyRegistry
from ca_policy.policy.registry import DEFAULT_PROFILES, DEFAULT_SIGNATURES


@pytest.fixture
def registry():
    return PolicyRegistry.default()


def test_default_tables(registry):
    """Test built-in policy tables."""
    assert set(registry.key_algorithms) == {"RSA", "ECDSA"}
    assert registry.key_policy("RSA").key_sizes == {2048, 4096}
    assert registry.key_policy("ECDSA").key_sizes == {256, 384, 521}
    assert len(registry.signatures) == 6
    assert set(registry.profiles) == {
        "EndEntityClientAuthCertificate",
        "EndEntityServerAuthCertificate",
        "CodeSigningCertificate",
    }


def test_signature_mapping_has_backend_code(registry):
    """Test canonical names map to generic identity and backend code."""
    mapping = registry.signature_mapping("SHA384WITHECDSA")
    assert mapping.algorithm == SignatureAlgorithm.ECDSA_WITH_SHA384
    assert mapping.backend_code(ACM_PCA_BACKEND) == "SHA384WITHECDSA"


def test_every_allowed_signature_is_registered(registry):
    """Test key policies only reference registered signatures."""
    for key_policy in registry.key_algorithms.values():
        for name in key_policy.signatures:
            assert registry.signature_mapping(name).name == name


def test_generic_identities_are_unique(registry):
    """Test no two names share a generic identity."""
    identities = [m.algorithm for m in registry.signatures.values()]
    assert len(identities) == len(set(identities))


def test_lookup_failures(registry):
    """Test missing entries raise typed errors."""
    with pytest.raises(UnknownKeyAlgorithm):
        registry.key_policy("DSA")
    with pytest.raises(UnknownSignatureAlgorithm):
        registry.signature_mapping("MD5WITHRSA")
    with pytest.raises(UnknownProfile):
        registry.profile("NotARealProfile")


def test_rsa_pss_is_explicitly_unsupported(registry):
    """Test RSA-PSS is reported as unsupported rather than unknown."""
    with pytest.raises(UnsupportedSignatureAlgorithm) as exc_info:
        registry.signature_mapping("SHA256WITHRSAPSS")
    assert isinstance(exc_info.value, UnknownSignatureAlgorithm)
    assert "not supported" in str(exc_info.value)


def test_tables_are_read_only(registry):
    """Test tables cannot be mutated after construction."""
    with pytest.raises(TypeError):
        registry.key_algorithms["DSA"] = registry.key_policy("RSA")
    with pytest.raises(TypeError):
        registry.profiles["X"] = registry.profile("CodeSigningCertificate")


def test_backend_codes_are_read_only(registry):
    """Test a mapping's backend codes cannot be changed through any registry."""
    mapping = registry.signature_mapping("SHA256WITHRSA")
    with pytest.raises(TypeError):
        mapping.backend_codes["acm-pca"] = "TAMPERED"
    with pytest.raises(ValidationError):
        mapping.backend_codes = ()

    fresh = PolicyRegistry.default()
    assert fresh.signature_mapping("SHA256WITHRSA").backend_code(ACM_PCA_BACKEND) == "SHA256WITHRSA"


def test_backend_code_lookup():
    """Test codes are accepted as a mapping and looked up per backend."""
    mapping = SignatureAlgorithmMapping(
        name="SHA256WITHRSA",
        algorithm=SignatureAlgorithm.SHA256_WITH_RSA,
        backend_codes={"local": "sha256WithRSAEncryption", ACM_PCA_BACKEND: "SHA256WITHRSA"},
    )
    assert mapping.backend_code("local") == "sha256WithRSAEncryption"
    assert mapping.backend_code(ACM_PCA_BACKEND) == "SHA256WITHRSA"
    with pytest.raises(KeyError):
        mapping.backend_code("vault")


def test_rejects_unregistered_signature_reference():
    """Test construction fails when a key policy names an unknown signature."""
    bad_policy = KeyAlgorithmPolicy(
        name="RSA",
        algorithm=KeyAlgorithm.RSA,
        key_sizes=frozenset({2048}),
        signatures=frozenset({"SHA1WITHRSA"}),
    )
    with pytest.raises(ConfigError):
        PolicyRegistry([bad_policy], DEFAULT_SIGNATURES, DEFAULT_PROFILES)


def test_rejects_shared_generic_identity():
    """Test construction fails when two names map to one identity."""
    duplicate = SignatureAlgorithmMapping(
        name="RSASHA256",
        algorithm=SignatureAlgorithm.SHA256_WITH_RSA,
        backend_codes={ACM_PCA_BACKEND: "SHA256WITHRSA"},
    )
    with pytest.raises(ConfigError):
        PolicyRegistry([], DEFAULT_SIGNATURES + (duplicate,), DEFAULT_PROFILES)


def test_rejects_duplicate_profile_names():
    """Test construction fails on duplicate profile names."""
    with pytest.raises(ConfigError):
        PolicyRegistry([], DEFAULT_SIGNATURES, DEFAULT_PROFILES + DEFAULT_PROFILES[:1])


def _key_policy(algorithm, sizes, signatures, name=None):
    return KeyAlgorithmPolicy(
        name=name or algorithm.value,
        algorithm=algorithm,
        key_sizes=frozenset(sizes),
        signatures=frozenset(signatures),
    )


@pytest.mark.parametrize("policy", [
    _key_policy(KeyAlgorithm.RSA, {2048}, {"SHA256WITHECDSA"}),
    _key_policy(KeyAlgorithm.ECDSA, {256}, {"SHA256WITHECDSA", "SHA512WITHRSA"}),
])
def test_rejects_cross_family_signature(policy):
    """Test a key policy cannot allow another family's signature."""
    with pytest.raises(ConfigError) as exc_info:
        PolicyRegistry([policy], DEFAULT_SIGNATURES, DEFAULT_PROFILES)
    assert policy.name in str(exc_info.value)


@pytest.mark.parametrize("policy", [
    _key_policy(KeyAlgorithm.ECDSA, {256, 225}, {"SHA256WITHECDSA"}),
    _key_policy(KeyAlgorithm.RSA, {512}, {"SHA256WITHRSA"}),
    _key_policy(KeyAlgorithm.DSA, {2048}, {"SHA256WITHRSA"}),
    _key_policy(KeyAlgorithm.ED25519, {256}, {"SHA256WITHECDSA"}),
])
def test_rejects_ungeneratable_keys(policy):
    """Test key algorithms and sizes must be ones keys can be generated for."""
    with pytest.raises(ConfigError):
        PolicyRegistry([policy], DEFAULT_SIGNATURES, DEFAULT_PROFILES)


def test_rejects_pss_identity_under_another_name():
    """Test the unsupported PSS scheme cannot be registered under an alias."""
    pss = SignatureAlgorithmMapping(
        name="RSAPSSSHA256",
        algorithm=SignatureAlgorithm.SHA256_WITH_RSA_PSS,
        backend_codes={ACM_PCA_BACKEND: "SHA256WITHRSAPSS"},
    )
    with pytest.raises(ConfigError):
        PolicyRegistry([], DEFAULT_SIGNATURES + (pss,), DEFAULT_PROFILES)
