"""Error taxonomy for certificate issuance policy."""

from typing import Optional


class CertificateAuthorityError(Exception):
    """
    Base error.

    client_error distinguishes caller-input failures (4xx-equivalent) from
    backend or environment failures (5xx-equivalent).
    """
    client_error = False
    retryable = False


class PolicyViolation(CertificateAuthorityError):
    """Request rejected by issuance policy. Never retried."""
    client_error = True


class UnknownKeyAlgorithm(PolicyViolation):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Key algorithm {name!r} is not permitted by policy")


class InvalidKeySize(PolicyViolation):
    def __init__(self, algorithm: str, key_size: int):
        self.algorithm = algorithm
        self.key_size = key_size
        super().__init__(f"Key size {key_size} is not permitted for {algorithm}")


class UnknownSignatureAlgorithm(PolicyViolation):
    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(message or f"Signature algorithm {name!r} is not registered")


class UnsupportedSignatureAlgorithm(UnknownSignatureAlgorithm):
    """Known signature scheme that has no mapping yet (e.g. RSA-PSS)."""

    def __init__(self, name: str):
        super().__init__(name, f"Signature algorithm {name!r} is not supported")


class IncompatibleSignatureAlgorithm(PolicyViolation):
    def __init__(self, signature: str, algorithm: str):
        self.signature = signature
        self.algorithm = algorithm
        super().__init__(
            f"Signature algorithm {signature!r} cannot be used with {algorithm} keys"
        )


class UnknownProfile(PolicyViolation):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Certificate profile {name!r} is not defined")


class AttestationRequired(PolicyViolation):
    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(f"Attestation mode {mode!r} requires attestation evidence")


class IncompleteSpecification(CertificateAuthorityError):
    """Signing specification inputs are structurally incomplete."""


class SigningBackendError(CertificateAuthorityError):
    """
    Failure from a signing backend or key custodian.

    Messages never carry key material or signed payloads.
    """

    def __init__(self, message: str, retryable: bool = False, cause_type: Optional[str] = None):
        self.retryable = retryable
        self.cause_type = cause_type
        super().__init__(message)


class AlreadyRevoked(CertificateAuthorityError):
    client_error = True

    def __init__(self, serial_number: str):
        self.serial_number = serial_number
        super().__init__(f"Certificate {serial_number} is already revoked")


class ConfigError(CertificateAuthorityError):
    """Configuration could not be located or decoded."""


class ConfigValidationError(ConfigError):
    """Decoded configuration failed its own validation."""
