"""Key and signature algorithm models."""

from enum import Enum
from typing import FrozenSet, Mapping, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator


class KeyAlgorithm(str, Enum):
    """X.509 public-key algorithm identities."""
    RSA = "RSA"
    DSA = "DSA"
    ECDSA = "ECDSA"
    ED25519 = "Ed25519"


class SignatureAlgorithm(str, Enum):
    """Generic signature algorithm identities, independent of any backend."""
    SHA256_WITH_RSA = "SHA256-RSA"
    SHA384_WITH_RSA = "SHA384-RSA"
    SHA512_WITH_RSA = "SHA512-RSA"
    SHA256_WITH_RSA_PSS = "SHA256-RSAPSS"
    ECDSA_WITH_SHA256 = "ECDSA-SHA256"
    ECDSA_WITH_SHA384 = "ECDSA-SHA384"
    ECDSA_WITH_SHA512 = "ECDSA-SHA512"

    @property
    def hash_name(self) -> str:
        """Digest used by the scheme (sha256, sha384, sha512)."""
        for bits in ("256", "384", "512"):
            if bits in self.value:
                return f"sha{bits}"
        raise ValueError(f"No digest known for {self.value}")

    @property
    def key_algorithm(self) -> KeyAlgorithm:
        if self.value.startswith("ECDSA"):
            return KeyAlgorithm.ECDSA
        return KeyAlgorithm.RSA


class KeyAlgorithmPolicy(BaseModel):
    """Allowed key sizes and signature names for one key algorithm family."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Policy name, e.g. RSA")
    algorithm: KeyAlgorithm = Field(..., description="Public-key algorithm identity")
    key_sizes: FrozenSet[int] = Field(..., description="Permitted key sizes in bits")
    signatures: FrozenSet[str] = Field(..., description="Permitted canonical signature names")


class SignatureAlgorithmMapping(BaseModel):
    """
    Canonical signature name bound to its generic identity and backend codes.

    Each signing backend is a column in backend_codes.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Canonical name, e.g. SHA256WITHECDSA")
    algorithm: SignatureAlgorithm = Field(..., description="Generic signature identity")
    backend_codes: Tuple[Tuple[str, str], ...] = Field(
        default_factory=tuple,
        description="(backend name, backend-specific signing algorithm code) pairs"
    )

    @field_validator("backend_codes", mode="before")
    @classmethod
    def codes_as_pairs(cls, value):
        if isinstance(value, Mapping):
            return tuple(sorted(value.items()))
        return value

    def backend_code(self, backend: str) -> str:
        """Signing code for a backend; KeyError when the backend has none."""
        for name, code in self.backend_codes:
            if name == backend:
                return code
        raise KeyError(backend)
