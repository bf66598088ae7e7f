"""Immutable policy tables for key algorithms, signatures and profiles."""

from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

from ..crypto.keys import CURVES, RSA_MIN_KEY_SIZE
from ..exceptions import (
    ConfigError,
    UnknownKeyAlgorithm,
    UnknownProfile,
    UnknownSignatureAlgorithm,
    UnsupportedSignatureAlgorithm,
)
from ..models.algorithms import (
    KeyAlgorithm,
    KeyAlgorithmPolicy,
    SignatureAlgorithm,
    SignatureAlgorithmMapping,
)
from ..models.profiles import CertificateProfile, ExtendedKeyUsage, KeyUsage


ACM_PCA_BACKEND = "acm-pca"
TEMPLATE_ARN_PREFIX = "arn:aws:acm-pca:::template/"

# Recognised schemes with no backend mapping yet
UNSUPPORTED_SIGNATURES = frozenset({"SHA256WITHRSAPSS"})
UNSUPPORTED_IDENTITIES = frozenset({SignatureAlgorithm.SHA256_WITH_RSA_PSS})


def _signature(name: str, algorithm: SignatureAlgorithm) -> SignatureAlgorithmMapping:
    return SignatureAlgorithmMapping(
        name=name,
        algorithm=algorithm,
        backend_codes={ACM_PCA_BACKEND: name},
    )


def _profile(name: str, key_usage, extended_key_usage) -> CertificateProfile:
    return CertificateProfile(
        name=name,
        key_usage=frozenset(key_usage),
        extended_key_usage=tuple(extended_key_usage),
        template_arn=f"{TEMPLATE_ARN_PREFIX}{name}/V1",
    )


DEFAULT_SIGNATURES: Tuple[SignatureAlgorithmMapping, ...] = (
    _signature("SHA256WITHECDSA", SignatureAlgorithm.ECDSA_WITH_SHA256),
    _signature("SHA384WITHECDSA", SignatureAlgorithm.ECDSA_WITH_SHA384),
    _signature("SHA512WITHECDSA", SignatureAlgorithm.ECDSA_WITH_SHA512),
    _signature("SHA256WITHRSA", SignatureAlgorithm.SHA256_WITH_RSA),
    _signature("SHA384WITHRSA", SignatureAlgorithm.SHA384_WITH_RSA),
    _signature("SHA512WITHRSA", SignatureAlgorithm.SHA512_WITH_RSA),
)

DEFAULT_KEY_ALGORITHMS: Tuple[KeyAlgorithmPolicy, ...] = (
    KeyAlgorithmPolicy(
        name="RSA",
        algorithm=KeyAlgorithm.RSA,
        key_sizes=frozenset({2048, 4096}),
        signatures=frozenset({"SHA256WITHRSA", "SHA384WITHRSA", "SHA512WITHRSA"}),
    ),
    KeyAlgorithmPolicy(
        name="ECDSA",
        algorithm=KeyAlgorithm.ECDSA,
        key_sizes=frozenset({256, 384, 521}),
        signatures=frozenset({"SHA256WITHECDSA", "SHA384WITHECDSA", "SHA512WITHECDSA"}),
    ),
)

DEFAULT_PROFILES: Tuple[CertificateProfile, ...] = (
    _profile(
        "EndEntityClientAuthCertificate",
        [KeyUsage.DIGITAL_SIGNATURE, KeyUsage.KEY_ENCIPHERMENT],
        [ExtendedKeyUsage.CLIENT_AUTH],
    ),
    _profile(
        "EndEntityServerAuthCertificate",
        [KeyUsage.DIGITAL_SIGNATURE, KeyUsage.KEY_ENCIPHERMENT],
        [ExtendedKeyUsage.SERVER_AUTH],
    ),
    _profile(
        "CodeSigningCertificate",
        [KeyUsage.DIGITAL_SIGNATURE],
        [ExtendedKeyUsage.CODE_SIGNING],
    ),
)


class PolicyRegistry:
    """
    Read-only compatibility tables.

    Built once and shared by reference. Nothing mutates the tables after
    construction, so concurrent lookups need no locking.

    Construction checks that:
    1. Canonical signature names and profile names are unique
    2. No two signature names share a generic identity
    3. Every signature a key policy allows is registered
    4. Allowed signatures belong to the key policy's algorithm family
    5. Every allowed key algorithm and size can be generated
    """

    def __init__(
        self,
        key_algorithms: Iterable[KeyAlgorithmPolicy],
        signatures: Iterable[SignatureAlgorithmMapping],
        profiles: Iterable[CertificateProfile],
    ):
        self._signatures = self._index(signatures, "signature")
        self._key_algorithms = self._index(key_algorithms, "key algorithm")
        self._profiles = self._index(profiles, "profile")

        identities = {}
        for mapping in self._signatures.values():
            if mapping.name in UNSUPPORTED_SIGNATURES or mapping.algorithm in UNSUPPORTED_IDENTITIES:
                raise ConfigError(f"Signature algorithm {mapping.name} is not supported")
            other = identities.setdefault(mapping.algorithm, mapping.name)
            if other != mapping.name:
                raise ConfigError(
                    f"Signatures {other} and {mapping.name} share identity {mapping.algorithm.value}"
                )

        for policy in self._key_algorithms.values():
            missing = sorted(policy.signatures - set(self._signatures))
            if missing:
                raise ConfigError(
                    f"Key algorithm {policy.name} allows unregistered signatures: {', '.join(missing)}"
                )
            if not policy.key_sizes:
                raise ConfigError(f"Key algorithm {policy.name} allows no key sizes")
            self._check_generatable(policy)
            for name in sorted(policy.signatures):
                family = self._signatures[name].algorithm.key_algorithm
                if family != policy.algorithm:
                    raise ConfigError(
                        f"Key algorithm {policy.name} allows {name}, a {family.value} signature"
                    )

    @staticmethod
    def _check_generatable(policy: KeyAlgorithmPolicy):
        if policy.algorithm == KeyAlgorithm.RSA:
            bad = sorted(s for s in policy.key_sizes if s < RSA_MIN_KEY_SIZE)
        elif policy.algorithm == KeyAlgorithm.ECDSA:
            bad = sorted(s for s in policy.key_sizes if s not in CURVES)
        else:
            raise ConfigError(
                f"Key algorithm {policy.name}: {policy.algorithm.value} keys cannot be generated"
            )
        if bad:
            raise ConfigError(
                f"Key algorithm {policy.name} allows unsupported sizes: {', '.join(map(str, bad))}"
            )

    @staticmethod
    def _index(items, kind: str) -> Mapping:
        table = {}
        for item in items:
            if item.name in table:
                raise ConfigError(f"Duplicate {kind} name: {item.name}")
            table[item.name] = item
        return MappingProxyType(table)

    @classmethod
    def default(cls) -> "PolicyRegistry":
        """Registry holding the built-in policy tables."""
        return cls(DEFAULT_KEY_ALGORITHMS, DEFAULT_SIGNATURES, DEFAULT_PROFILES)

    def key_policy(self, name: str) -> KeyAlgorithmPolicy:
        try:
            return self._key_algorithms[name]
        except KeyError:
            raise UnknownKeyAlgorithm(name) from None

    def signature_mapping(self, name: str) -> SignatureAlgorithmMapping:
        try:
            return self._signatures[name]
        except KeyError:
            if name in UNSUPPORTED_SIGNATURES:
                raise UnsupportedSignatureAlgorithm(name) from None
            raise UnknownSignatureAlgorithm(name) from None

    def profile(self, name: str) -> CertificateProfile:
        try:
            return self._profiles[name]
        except KeyError:
            raise UnknownProfile(name) from None

    @property
    def key_algorithms(self) -> Mapping[str, KeyAlgorithmPolicy]:
        return self._key_algorithms

    @property
    def signatures(self) -> Mapping[str, SignatureAlgorithmMapping]:
        return self._signatures

    @property
    def profiles(self) -> Mapping[str, CertificateProfile]:
        return self._profiles
