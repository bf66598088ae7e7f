"""Issuance policy: registry, validation, profile resolution and spec assembly."""

from .registry import PolicyRegistry, ACM_PCA_BACKEND, UNSUPPORTED_SIGNATURES
from .validator import CompatibilityValidator, ValidatedRequest
from .profiles import ProfileResolver
from .builder import build_signing_specification

__all__ = [
    "PolicyRegistry",
    "ACM_PCA_BACKEND",
    "UNSUPPORTED_SIGNATURES",
    "CompatibilityValidator",
    "ValidatedRequest",
    "ProfileResolver",
    "build_signing_specification",
]
