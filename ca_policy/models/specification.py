"""Fully resolved signing specification handed to a signing backend."""

import json
from datetime import timedelta
from typing import FrozenSet, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

from .algorithms import KeyAlgorithm, SignatureAlgorithm
from .certificates import AuthorityReference
from .profiles import ExtendedKeyUsage, KeyUsage, key_usage_bits
from .request import FrozenDistinguishedName


class SigningSpecification(BaseModel):
    """
    Signing Specification - everything a backend needs to issue one certificate.

    Contains no raw policy names: the backend signing code, extension bits
    and template are already resolved. Backends must not override any field.
    """
    model_config = ConfigDict(frozen=True)

    common_name: str = Field(..., description="Subject common name")
    subject_alternative_names: Tuple[str, ...] = Field(default_factory=tuple)
    distinguished_name: FrozenDistinguishedName = Field(default_factory=FrozenDistinguishedName)
    key_algorithm: KeyAlgorithm = Field(..., description="Subject public-key algorithm")
    key_size: int = Field(..., description="Subject key size in bits")
    signature_algorithm: SignatureAlgorithm = Field(..., description="Generic signature identity")
    backend: str = Field(..., description="Signing backend the code belongs to")
    signing_code: str = Field(..., description="Backend-specific signing algorithm code")
    key_usage: FrozenSet[KeyUsage] = Field(..., description="Key usage flags")
    extended_key_usage: Tuple[ExtendedKeyUsage, ...] = Field(default_factory=tuple)
    template_arn: str = Field(..., description="Backend issuance template reference")
    signing_key_id: str = Field(..., description="Identity of the authority signing key")
    authority: Optional[AuthorityReference] = Field(None, description="Target authority")
    validity_days: int = Field(..., gt=0, description="Requested validity period in days")
    root_ca: bool = Field(default=False, description="Issue under a root rather than subordinate CA")

    @property
    def key_usage_bits(self) -> int:
        return key_usage_bits(self.key_usage)

    @property
    def validity(self) -> timedelta:
        return timedelta(days=self.validity_days)

    def to_canonical_json(self) -> str:
        """Stable JSON rendering, e.g. for audit digests."""
        data = self.model_dump(mode='json')
        data["key_usage"] = sorted(data["key_usage"])
        return json.dumps(data, sort_keys=True, separators=(',', ':'))
