"""Data models for certificate issuance policy."""

from .algorithms import KeyAlgorithm, SignatureAlgorithm, KeyAlgorithmPolicy, SignatureAlgorithmMapping
from .profiles import KeyUsage, ExtendedKeyUsage, CertificateProfile, key_usage_bits
from .request import NodeAttestationMode, DistinguishedName, FrozenDistinguishedName, CertificateRequest
from .certificates import AuthorityReference, CertificateAuthority, CertificateMetadata
from .specification import SigningSpecification

__all__ = [
    "KeyAlgorithm",
    "SignatureAlgorithm",
    "KeyAlgorithmPolicy",
    "SignatureAlgorithmMapping",
    "KeyUsage",
    "ExtendedKeyUsage",
    "CertificateProfile",
    "key_usage_bits",
    "NodeAttestationMode",
    "DistinguishedName",
    "FrozenDistinguishedName",
    "CertificateRequest",
    "AuthorityReference",
    "CertificateAuthority",
    "CertificateMetadata",
    "SigningSpecification",
]
