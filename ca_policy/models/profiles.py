"""X.509 extension profiles."""

from enum import Enum
from typing import FrozenSet, Tuple
from pydantic import BaseModel, ConfigDict, Field


class KeyUsage(str, Enum):
    """X.509 key usage flags, in bit order."""
    DIGITAL_SIGNATURE = "DigitalSignature"
    CONTENT_COMMITMENT = "ContentCommitment"
    KEY_ENCIPHERMENT = "KeyEncipherment"
    DATA_ENCIPHERMENT = "DataEncipherment"
    KEY_AGREEMENT = "KeyAgreement"
    CERT_SIGN = "CertSign"
    CRL_SIGN = "CRLSign"
    ENCIPHER_ONLY = "EncipherOnly"
    DECIPHER_ONLY = "DecipherOnly"

    @property
    def bit(self) -> int:
        return 1 << list(KeyUsage).index(self)


class ExtendedKeyUsage(str, Enum):
    """X.509 extended key usage purposes."""
    ANY = "Any"
    SERVER_AUTH = "ServerAuth"
    CLIENT_AUTH = "ClientAuth"
    CODE_SIGNING = "CodeSigning"
    EMAIL_PROTECTION = "EmailProtection"
    TIME_STAMPING = "TimeStamping"
    OCSP_SIGNING = "OCSPSigning"


def key_usage_bits(usages) -> int:
    """Render a set of key usages as the X.509 bit field."""
    bits = 0
    for usage in usages:
        bits |= usage.bit
    return bits


class CertificateProfile(BaseModel):
    """
    Certificate profile - extensions and backend template for a class of certificates.

    The template ARN is opaque here and resolved by the signing backend.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique profile name")
    key_usage: FrozenSet[KeyUsage] = Field(..., description="Key usage flags")
    extended_key_usage: Tuple[ExtendedKeyUsage, ...] = Field(
        default_factory=tuple,
        description="Extended key usage purposes"
    )
    template_arn: str = Field(..., description="Backend issuance template reference")

    @property
    def key_usage_bits(self) -> int:
        return key_usage_bits(self.key_usage)
