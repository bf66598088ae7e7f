"""In-process signing backend for locally held authority keys."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import ExtendedKeyUsageOID

from ..crypto import LocallyHeldKey, SigningKey, general_names, subject_name
from ..exceptions import SigningBackendError
from ..models import (
    CertificateAuthority,
    DistinguishedName,
    ExtendedKeyUsage,
    KeyAlgorithm,
    KeyUsage,
    SignatureAlgorithm,
    SigningSpecification,
)
from .service import IssuedCertificate


logger = logging.getLogger(__name__)

EXTENDED_KEY_USAGE_OIDS = {
    ExtendedKeyUsage.ANY: ExtendedKeyUsageOID.ANY_EXTENDED_KEY_USAGE,
    ExtendedKeyUsage.SERVER_AUTH: ExtendedKeyUsageOID.SERVER_AUTH,
    ExtendedKeyUsage.CLIENT_AUTH: ExtendedKeyUsageOID.CLIENT_AUTH,
    ExtendedKeyUsage.CODE_SIGNING: ExtendedKeyUsageOID.CODE_SIGNING,
    ExtendedKeyUsage.EMAIL_PROTECTION: ExtendedKeyUsageOID.EMAIL_PROTECTION,
    ExtendedKeyUsage.TIME_STAMPING: ExtendedKeyUsageOID.TIME_STAMPING,
    ExtendedKeyUsage.OCSP_SIGNING: ExtendedKeyUsageOID.OCSP_SIGNING,
}

DEFAULT_SIGNATURES = {
    KeyAlgorithm.RSA: SignatureAlgorithm.SHA256_WITH_RSA,
    KeyAlgorithm.ECDSA: SignatureAlgorithm.ECDSA_WITH_SHA256,
}


def key_usage_extension(usages) -> x509.KeyUsage:
    """X.509 KeyUsage extension for a set of key usages."""
    return x509.KeyUsage(
        digital_signature=KeyUsage.DIGITAL_SIGNATURE in usages,
        content_commitment=KeyUsage.CONTENT_COMMITMENT in usages,
        key_encipherment=KeyUsage.KEY_ENCIPHERMENT in usages,
        data_encipherment=KeyUsage.DATA_ENCIPHERMENT in usages,
        key_agreement=KeyUsage.KEY_AGREEMENT in usages,
        key_cert_sign=KeyUsage.CERT_SIGN in usages,
        crl_sign=KeyUsage.CRL_SIGN in usages,
        encipher_only=KeyUsage.ENCIPHER_ONLY in usages,
        decipher_only=KeyUsage.DECIPHER_ONLY in usages,
    )


def _pem(certificate: x509.Certificate) -> str:
    return certificate.public_bytes(serialization.Encoding.PEM).decode('utf-8')


def create_root_authority(
    common_name: str,
    key: LocallyHeldKey,
    validity_days: int = 3650,
    distinguished_name: Optional[DistinguishedName] = None
) -> CertificateAuthority:
    """
    Create a self-signed root authority around a local key.

    Args:
        common_name: Root CA common name
        key: Authority key
        validity_days: Root certificate lifetime
        distinguished_name: Optional subject fields

    Returns:
        CertificateAuthority without a remote authority reference
    """
    name = subject_name(common_name, distinguished_name or DistinguishedName())
    now = datetime.now(timezone.utc)

    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + timedelta(days=validity_days))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            key_usage_extension({KeyUsage.DIGITAL_SIGNATURE, KeyUsage.CERT_SIGN, KeyUsage.CRL_SIGN}),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
    )
    certificate = key.sign_builder(builder, DEFAULT_SIGNATURES[key.key_algorithm])

    logger.info(f"Created root authority {common_name} ({key.identity()})")
    return CertificateAuthority(
        certificate_pem=_pem(certificate),
        signing_key=key,
        serial_number=format(certificate.serial_number, 'x'),
    )


class LocalSigningBackend:
    """
    Signs certificates in-process with a locally held authority key.

    Every extension and the validity period come from the specification;
    only the public key is taken from the CSR.
    """

    def __init__(self, authority: CertificateAuthority, chain_pem: str = ""):
        """
        Initialize local backend.

        Args:
            authority: Issuing authority; its key must be locally held
            chain_pem: Certificates above the authority, if any
        """
        if not isinstance(authority.signing_key, LocallyHeldKey):
            raise ValueError("Local signing requires a locally held authority key")
        self.authority = authority
        self.chain_pem = chain_pem
        self._issuer = x509.load_pem_x509_certificate(authority.certificate_pem.encode())

    def issue(self, spec: SigningSpecification, signing_key: SigningKey, csr_pem: str) -> IssuedCertificate:
        if signing_key.identity() != self.authority.signing_key.identity():
            raise SigningBackendError("Signing key does not belong to this authority")

        try:
            csr = x509.load_pem_x509_csr(csr_pem.encode())
        except ValueError:
            raise SigningBackendError("Malformed certificate signing request") from None
        if not csr.is_signature_valid:
            raise SigningBackendError("Certificate signing request signature is invalid")

        now = datetime.now(timezone.utc)
        not_after = now + spec.validity
        builder = (
            x509.CertificateBuilder()
            .subject_name(subject_name(spec.common_name, spec.distinguished_name))
            .issuer_name(self._issuer.subject)
            .public_key(csr.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(not_after)
            .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            .add_extension(key_usage_extension(spec.key_usage), critical=True)
        )
        if spec.extended_key_usage:
            builder = builder.add_extension(
                x509.ExtendedKeyUsage([EXTENDED_KEY_USAGE_OIDS[u] for u in spec.extended_key_usage]),
                critical=False,
            )
        if spec.subject_alternative_names:
            builder = builder.add_extension(
                x509.SubjectAlternativeName(general_names(list(spec.subject_alternative_names))),
                critical=False,
            )

        try:
            certificate = self.authority.signing_key.sign_builder(builder, spec.signature_algorithm)
        except ValueError as e:
            raise SigningBackendError(f"Authority cannot sign: {e}") from None

        return IssuedCertificate(
            certificate_pem=_pem(certificate),
            chain_pem=self.authority.certificate_pem + self.chain_pem,
            serial_number=format(certificate.serial_number, 'x'),
            not_before=now,
            not_after=not_after,
        )
