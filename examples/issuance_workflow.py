#!/usr/bin/env python3
"""
End-to-end issuance workflow with an in-process authority.

This script demonstrates:
1. Loading policy from configuration
2. Creating a local root authority
3. Issuing a certificate under policy
4. Rejecting requests policy does not permit
5. Auditing and revocation
"""

import tempfile
from pathlib import Path

from cryptography import x509

from ca_policy.audit import AuditLogger
from ca_policy.config import ConfigProvider, load_registry
from ca_policy.crypto import LocallyHeldKey
from ca_policy.exceptions import PolicyViolation
from ca_policy.issuance import IssuanceService, LocalSigningBackend, create_root_authority
from ca_policy.models import CertificateRequest, DistinguishedName, KeyAlgorithm


def main():
    print("=== Certificate Issuance Workflow ===\n")
    workdir = Path(tempfile.mkdtemp(prefix="ca-policy-"))
    audit = AuditLogger("example-ca", log_file=workdir / "audit.jsonl")

    # Step 1: Policy
    print("Step 1: Loading policy...")
    provider = ConfigProvider.from_file(str(Path(__file__).parent / "config.yaml"))
    registry = load_registry(provider, audit=audit)
    print(f"  ✓ Key algorithms: {', '.join(sorted(registry.key_algorithms))}")
    print(f"  ✓ Profiles: {', '.join(sorted(registry.profiles))}")

    # Step 2: Authority
    print("\nStep 2: Creating root authority...")
    root = create_root_authority("Example Root CA", LocallyHeldKey.generate(KeyAlgorithm.ECDSA, 384))
    service = IssuanceService(registry, LocalSigningBackend(root), root, validity_days=7, audit=audit)
    print(f"  ✓ Root serial: {root.serial_number}")

    # Step 3: Issue
    print("\nStep 3: Issuing certificate...")
    request = CertificateRequest(
        common_name="api.example.com",
        subject_alternative_names=["api.example.com", "10.0.0.10"],
        distinguished_name=DistinguishedName(country=["US"], organization=["Example"]),
        key_algorithm="ECDSA",
        key_size=256,
        signature_algorithm="SHA256WITHECDSA",
        profile="EndEntityServerAuthCertificate",
    )
    metadata, output = service.issue(request)
    cert = x509.load_pem_x509_certificate(output.certificate_pem.encode())
    cert.verify_directly_issued_by(x509.load_pem_x509_certificate(root.certificate_pem.encode()))
    print(f"  ✓ Serial: {metadata.serial_number}")
    print(f"  ✓ Subject: {cert.subject.rfc4514_string()}")
    print(f"  ✓ Expires: {metadata.expiration_date}")

    # Step 4: Rejections
    print("\nStep 4: Requests outside policy...")
    rejected = [
        dict(key_algorithm="ECDSA", key_size=521, signature_algorithm="SHA256WITHECDSA"),
        dict(key_algorithm="ECDSA", key_size=256, signature_algorithm="SHA256WITHRSA"),
        dict(key_algorithm="RSA", key_size=2048, signature_algorithm="SHA256WITHRSAPSS"),
    ]
    for overrides in rejected:
        fields = request.model_dump()
        fields.update(overrides)
        try:
            service.issue(CertificateRequest(**fields))
        except PolicyViolation as e:
            print(f"  ✓ {type(e).__name__}: {e}")

    # Step 5: Revoke and audit
    print("\nStep 5: Revocation and audit...")
    service.revoke(metadata, revoked_by="operator@example.com")
    print(f"  ✓ Revoked {metadata.serial_number} at {metadata.revoke_date}")
    print(f"  ✓ Audit events: {audit.get_event_count()}")
    print(f"  ✓ Audit chain intact: {audit.verify_chain()}")

    print(f"\nOutput directory: {workdir}")


if __name__ == "__main__":
    main()
