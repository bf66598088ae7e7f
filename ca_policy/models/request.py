"""Issuance request models."""

from enum import Enum
from typing import List, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator


class NodeAttestationMode(str, Enum):
    """
    How the calling workload was authenticated upstream.

    Each member is declared as (configuration value, requires_evidence).
    """
    NONE = ("None", False)
    CLOUD_ATTESTED = ("AWS", True)

    def __new__(cls, value: str, requires_evidence: bool):
        member = str.__new__(cls, value)
        member._value_ = value
        member.requires_evidence = requires_evidence
        return member


class DistinguishedName(BaseModel):
    """Subject distinguished-name fields (each may repeat)."""
    country: List[str] = Field(default_factory=list)
    province: List[str] = Field(default_factory=list)
    locality: List[str] = Field(default_factory=list)
    organization: List[str] = Field(default_factory=list)
    organizational_unit: List[str] = Field(default_factory=list)

    def freeze(self) -> "FrozenDistinguishedName":
        """Immutable copy for inclusion in a signing specification."""
        return FrozenDistinguishedName(**self.model_dump())


class FrozenDistinguishedName(BaseModel):
    """Distinguished-name fields that cannot change after construction."""
    model_config = ConfigDict(frozen=True)

    country: Tuple[str, ...] = ()
    province: Tuple[str, ...] = ()
    locality: Tuple[str, ...] = ()
    organization: Tuple[str, ...] = ()
    organizational_unit: Tuple[str, ...] = ()


class CertificateRequest(BaseModel):
    """
    Certificate request as received from a caller.

    Algorithm, signature and profile are raw policy names; nothing here
    has been checked against policy yet.
    """
    common_name: str = Field(..., description="Subject common name")
    subject_alternative_names: List[str] = Field(
        default_factory=list,
        description="DNS names or IP addresses"
    )
    distinguished_name: DistinguishedName = Field(default_factory=DistinguishedName)
    key_algorithm: str = Field(..., description="Requested key algorithm name")
    key_size: int = Field(..., description="Requested key size in bits")
    signature_algorithm: str = Field(..., description="Requested signature algorithm name")
    profile: str = Field(..., description="Requested certificate profile name")

    @field_validator("common_name")
    @classmethod
    def common_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("common_name must not be blank")
        return value
