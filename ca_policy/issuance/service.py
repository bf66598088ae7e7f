"""Certificate issuance: policy checks, spec assembly and backend hand-off."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Tuple

from ..audit import AuditLogger
from ..config import AuthoritySettings
from ..crypto import CustodianBackedKey, CustodianClient, LocallyHeldKey, SigningKey, build_csr
from ..exceptions import AttestationRequired, ConfigError, PolicyViolation, SigningBackendError
from ..models import (
    CertificateAuthority,
    CertificateMetadata,
    CertificateRequest,
    NodeAttestationMode,
    SigningSpecification,
)
from ..policy import (
    ACM_PCA_BACKEND,
    CompatibilityValidator,
    PolicyRegistry,
    ProfileResolver,
    build_signing_specification,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedCertificate:
    """What a signing backend returns for one specification."""
    certificate_pem: str
    chain_pem: str
    serial_number: str
    not_before: datetime
    not_after: datetime


@dataclass(frozen=True)
class CertificateOutput:
    """Material returned to the requester."""
    certificate_pem: str
    chain_pem: str
    csr_pem: str
    private_key_pem: str


class SigningBackend(Protocol):
    """External service that turns a specification and CSR into a certificate."""

    def issue(
        self,
        spec: SigningSpecification,
        signing_key: SigningKey,
        csr_pem: str
    ) -> IssuedCertificate:
        ...


class IssuanceService:
    """
    Issues certificates under a fixed policy and authority.

    Flow per request:
    1. Attestation evidence present if the mode requires it
    2. Key/signature compatibility and profile resolved from policy
    3. Subject key and CSR generated locally
    4. Signing specification built and handed to the backend
    5. Metadata record created for the issued certificate

    Signing is attempted once; retrying is left to the caller.
    """

    def __init__(
        self,
        registry: PolicyRegistry,
        backend: SigningBackend,
        authority: CertificateAuthority,
        validity_days: int = 30,
        root_ca: bool = False,
        backend_name: str = ACM_PCA_BACKEND,
        audit: Optional[AuditLogger] = None
    ):
        """
        Initialize issuance service.

        Args:
            registry: Policy registry shared with other components
            backend: Signing backend client
            authority: Issuing authority and its signing key
            validity_days: Validity period for issued certificates
            root_ca: Issue directly under a root CA
            backend_name: Column of the signature table to use
            audit: Optional audit logger
        """
        self.registry = registry
        self.backend = backend
        self.authority = authority
        self.validity_days = validity_days
        self.root_ca = root_ca
        self.backend_name = backend_name
        self.audit = audit

        self.validator = CompatibilityValidator(registry)
        self.resolver = ProfileResolver(registry)

    @classmethod
    def from_settings(
        cls,
        settings: AuthoritySettings,
        registry: PolicyRegistry,
        backend: SigningBackend,
        client: CustodianClient,
        certificate_pem: str,
        serial_number: str,
        audit: Optional[AuditLogger] = None
    ) -> "IssuanceService":
        """
        Build a service for a configured custodian-held authority.

        Args:
            settings: Decoded authority configuration
            registry: Policy registry
            backend: Signing backend client
            client: Custodian client the authority key signs through
            certificate_pem: Authority certificate
            serial_number: Authority certificate serial
            audit: Optional audit logger

        Returns:
            IssuanceService using the configured validity, root flag and timeout
        """
        reference = settings.to_reference()
        authority = CertificateAuthority(
            certificate_pem=certificate_pem,
            signing_key=CustodianBackedKey(reference, client, timeout=settings.signing_timeout),
            serial_number=serial_number,
            authority=reference,
        )
        logger.info(f"Configured authority {reference.authority_arn} in {reference.region}")
        return cls(
            registry,
            backend,
            authority,
            validity_days=settings.validity_days,
            root_ca=settings.root_ca,
            audit=audit,
        )

    @property
    def authority_id(self) -> str:
        return self.authority.signing_key.identity()

    def issue(
        self,
        request: CertificateRequest,
        attestation: NodeAttestationMode = NodeAttestationMode.NONE,
        evidence: Optional[bytes] = None
    ) -> Tuple[CertificateMetadata, CertificateOutput]:
        """
        Issue a certificate for a request.

        Args:
            request: Certificate request
            attestation: Mode the caller was authenticated under
            evidence: Attestation evidence supplied by the front-end

        Returns:
            Tuple of (metadata record, output for the requester)

        Raises:
            PolicyViolation: Request rejected by policy
            SigningBackendError: Backend or custodian failure
            ConfigError: Policy permits a key that cannot be generated
        """
        try:
            if attestation.requires_evidence and not evidence:
                raise AttestationRequired(attestation.value)
            validated = self.validator.validate(request)
            profile = self.resolver.resolve(request.profile)
        except PolicyViolation as e:
            logger.warning(f"Rejected request for {request.common_name}: {e}")
            if self.audit:
                self.audit.log_issuance_rejected(request.common_name, type(e).__name__, str(e))
            raise

        try:
            key = LocallyHeldKey.generate(validated.key_policy.algorithm, request.key_size)
            signing_request = build_csr(request, key, validated.signature.algorithm)
        except ValueError as e:
            logger.error(f"Policy permits an ungeneratable key for {request.common_name}: {e}")
            raise ConfigError(
                f"Policy allows {validated.key_policy.name}-{request.key_size} with "
                f"{validated.signature.name}, which cannot be generated: {e}"
            ) from e

        spec = build_signing_specification(
            validated,
            profile,
            self.authority.signing_key,
            self.authority.authority,
            self.validity_days,
            root_ca=self.root_ca,
            backend=self.backend_name,
        )
        logger.debug(f"Built signing specification: {spec.to_canonical_json()}")

        try:
            issued = self.backend.issue(spec, self.authority.signing_key, signing_request.csr_pem)
        except SigningBackendError as e:
            self._signing_failed(request, e)
            raise
        except Exception as e:
            error = SigningBackendError(
                f"Signing backend failed ({type(e).__name__})",
                cause_type=type(e).__name__,
            )
            self._signing_failed(request, error)
            raise error from e

        metadata = CertificateMetadata(
            serial_number=issued.serial_number,
            common_name=request.common_name,
            subject_alternative_names=list(request.subject_alternative_names),
            issued_date=issued.not_before,
            expiration_date=issued.not_after,
            ca_serial_number=self.authority.serial_number,
            certificate_authority_arn=(
                self.authority.authority.authority_arn if self.authority.authority else None
            ),
        )

        logger.info(
            f"Issued certificate {metadata.serial_number} to {request.common_name} "
            f"(profile {profile.name}, valid until {metadata.expiration_date})"
        )
        if self.audit:
            self.audit.log_certificate_issued(
                metadata.serial_number, request.common_name, profile.name, self.authority_id
            )

        return metadata, CertificateOutput(
            certificate_pem=issued.certificate_pem,
            chain_pem=issued.chain_pem,
            csr_pem=signing_request.csr_pem,
            private_key_pem=signing_request.private_key_pem,
        )

    def _signing_failed(self, request: CertificateRequest, error: SigningBackendError):
        logger.error(f"Signing failed for {request.common_name}: {error}")
        if self.audit:
            self.audit.log_signing_failed(
                self.authority_id, request.common_name, str(error), error.retryable
            )

    def revoke(self, metadata: CertificateMetadata, revoked_by: str) -> CertificateMetadata:
        """
        Revoke an issued certificate record.

        Raises:
            AlreadyRevoked: If the record was revoked before
        """
        metadata.revoke(revoked_by)
        logger.info(f"Revoked certificate {metadata.serial_number} (by {revoked_by})")
        if self.audit:
            self.audit.log_certificate_revoked(metadata.serial_number, revoked_by)
        return metadata
