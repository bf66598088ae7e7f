"""Certificate signing request generation for locally held keys."""

import ipaddress
from dataclasses import dataclass
from typing import List, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID

from ..models.algorithms import SignatureAlgorithm
from ..models.request import CertificateRequest, DistinguishedName, FrozenDistinguishedName
from .keys import LocallyHeldKey


@dataclass
class SigningRequest:
    """PEM-encoded CSR together with the private key that signed it."""
    csr_pem: str
    private_key_pem: str


def subject_name(
    common_name: str,
    dn: Union[DistinguishedName, FrozenDistinguishedName]
) -> x509.Name:
    """Build an X.509 subject from a common name and distinguished-name fields."""
    attributes: List[x509.NameAttribute] = []
    for oid, values in (
        (NameOID.COUNTRY_NAME, dn.country),
        (NameOID.STATE_OR_PROVINCE_NAME, dn.province),
        (NameOID.LOCALITY_NAME, dn.locality),
        (NameOID.ORGANIZATION_NAME, dn.organization),
        (NameOID.ORGANIZATIONAL_UNIT_NAME, dn.organizational_unit),
    ):
        attributes.extend(x509.NameAttribute(oid, value) for value in values)
    attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    return x509.Name(attributes)


def general_names(names: List[str]) -> List[x509.GeneralName]:
    """IP literals become IP SANs, anything else a DNS name."""
    result: List[x509.GeneralName] = []
    for name in names:
        try:
            result.append(x509.IPAddress(ipaddress.ip_address(name)))
        except ValueError:
            result.append(x509.DNSName(name))
    return result


def build_csr(
    request: CertificateRequest,
    key: LocallyHeldKey,
    algorithm: SignatureAlgorithm
) -> SigningRequest:
    """
    Create a CSR for a request, signed by a locally held key.

    Args:
        request: Certificate request providing subject and SANs
        key: Freshly generated local key
        algorithm: Generic signature identity to sign the CSR with

    Returns:
        SigningRequest with CSR and private key PEM
    """
    builder = x509.CertificateSigningRequestBuilder().subject_name(
        subject_name(request.common_name, request.distinguished_name)
    )
    if request.subject_alternative_names:
        builder = builder.add_extension(
            x509.SubjectAlternativeName(general_names(request.subject_alternative_names)),
            critical=False,
        )

    csr = key.sign_builder(builder, algorithm)
    return SigningRequest(
        csr_pem=csr.public_bytes(serialization.Encoding.PEM).decode('utf-8'),
        private_key_pem=key.private_key_pem(),
    )
