"""Configuration models decoded by ConfigProvider."""

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..models.algorithms import (
    KeyAlgorithm,
    KeyAlgorithmPolicy,
    SignatureAlgorithm,
    SignatureAlgorithmMapping,
)
from ..models.certificates import AuthorityReference
from ..models.profiles import CertificateProfile, ExtendedKeyUsage, KeyUsage
from ..policy.registry import PolicyRegistry


class StrictSettings(BaseModel):
    """Settings base that rejects unrecognised fields."""
    model_config = ConfigDict(extra="forbid")


class KeyAlgorithmSettings(StrictSettings):
    algorithm: KeyAlgorithm
    key_sizes: List[int] = Field(..., min_length=1)
    signatures: List[str] = Field(..., min_length=1)


class SignatureSettings(StrictSettings):
    algorithm: SignatureAlgorithm
    backend_codes: Dict[str, str] = Field(default_factory=dict)


class ProfileSettings(StrictSettings):
    key_usage: List[KeyUsage] = Field(..., min_length=1)
    extended_key_usage: List[ExtendedKeyUsage] = Field(default_factory=list)
    template_arn: str


class PolicySettings(StrictSettings):
    """
    Policy tables as configured.

    Example (YAML):
        policy:
          key_algorithms:
            RSA: {algorithm: RSA, key_sizes: [2048], signatures: [SHA256WITHRSA]}
          signatures:
            SHA256WITHRSA: {algorithm: SHA256-RSA, backend_codes: {acm-pca: SHA256WITHRSA}}
          profiles:
            EndEntityClientAuthCertificate:
              key_usage: [DigitalSignature]
              extended_key_usage: [ClientAuth]
              template_arn: arn:aws:acm-pca:::template/EndEntityClientAuthCertificate/V1
    """
    key_algorithms: Dict[str, KeyAlgorithmSettings]
    signatures: Dict[str, SignatureSettings]
    profiles: Dict[str, ProfileSettings] = Field(default_factory=dict)

    def self_validate(self) -> None:
        for name, algorithm in self.key_algorithms.items():
            missing = [s for s in algorithm.signatures if s not in self.signatures]
            if missing:
                raise ValueError(
                    f"key algorithm {name} references unknown signatures: {', '.join(missing)}"
                )

    def to_registry(self) -> PolicyRegistry:
        """Build an immutable registry from these settings."""
        return PolicyRegistry(
            key_algorithms=[
                KeyAlgorithmPolicy(
                    name=name,
                    algorithm=s.algorithm,
                    key_sizes=frozenset(s.key_sizes),
                    signatures=frozenset(s.signatures),
                )
                for name, s in self.key_algorithms.items()
            ],
            signatures=[
                SignatureAlgorithmMapping(name=name, algorithm=s.algorithm, backend_codes=s.backend_codes)
                for name, s in self.signatures.items()
            ],
            profiles=[
                CertificateProfile(
                    name=name,
                    key_usage=frozenset(s.key_usage),
                    extended_key_usage=tuple(s.extended_key_usage),
                    template_arn=s.template_arn,
                )
                for name, s in self.profiles.items()
            ],
        )


class AuthoritySettings(StrictSettings):
    """Subordinate or root authority the service issues from."""
    region: str
    authority_arn: str
    assume_role: bool = False
    role_arn: Optional[str] = None
    root_ca: bool = False
    validity_days: int = 30
    signing_timeout: float = 10.0

    def self_validate(self) -> None:
        if self.assume_role and not self.role_arn:
            raise ValueError("role_arn is required when assume_role is set")
        if self.validity_days <= 0:
            raise ValueError("validity_days must be positive")
        if self.signing_timeout <= 0:
            raise ValueError("signing_timeout must be positive")

    def to_reference(self) -> AuthorityReference:
        return AuthorityReference(
            region=self.region,
            authority_arn=self.authority_arn,
            assume_role=self.assume_role,
            role_arn=self.role_arn,
        )
