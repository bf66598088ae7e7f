"""Signing keys and CSR generation."""

from .keys import SigningKey, LocallyHeldKey, CustodianBackedKey, CustodianClient, hash_for
from .csr import SigningRequest, build_csr, subject_name, general_names

__all__ = [
    "SigningKey",
    "LocallyHeldKey",
    "CustodianBackedKey",
    "CustodianClient",
    "hash_for",
    "SigningRequest",
    "build_csr",
    "subject_name",
    "general_names",
]
