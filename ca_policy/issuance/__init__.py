"""Certificate issuance orchestration."""

from .service import IssuanceService, IssuedCertificate, CertificateOutput, SigningBackend
from .local import LocalSigningBackend, create_root_authority

__all__ = [
    "IssuanceService",
    "IssuedCertificate",
    "CertificateOutput",
    "SigningBackend",
    "LocalSigningBackend",
    "create_root_authority",
]
