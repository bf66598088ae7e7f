"""Assembly of backend-ready signing specifications."""

from typing import Optional

from ..crypto.keys import CustodianBackedKey, SigningKey
from ..exceptions import IncompleteSpecification
from ..models.certificates import AuthorityReference
from ..models.profiles import CertificateProfile
from ..models.specification import SigningSpecification
from .registry import ACM_PCA_BACKEND
from .validator import ValidatedRequest


def build_signing_specification(
    validated: ValidatedRequest,
    profile: CertificateProfile,
    signing_key: SigningKey,
    authority: Optional[AuthorityReference],
    validity_days: int,
    root_ca: bool = False,
    backend: str = ACM_PCA_BACKEND,
) -> SigningSpecification:
    """
    Combine a validated request, a resolved profile and a signing key.

    No policy is re-checked here; callers run CompatibilityValidator and
    ProfileResolver first.

    Args:
        validated: Output of CompatibilityValidator.validate
        profile: Output of ProfileResolver.resolve
        signing_key: Key of the issuing authority
        authority: Target authority (required for custodian-backed keys)
        validity_days: Requested validity period
        root_ca: Issue under a root CA
        backend: Signing backend whose code should be used

    Returns:
        Immutable SigningSpecification

    Raises:
        IncompleteSpecification: If inputs are structurally incomplete
    """
    if authority is None and isinstance(signing_key, CustodianBackedKey):
        raise IncompleteSpecification("Custodian-backed keys require an authority reference")

    if validity_days <= 0:
        raise IncompleteSpecification(f"Validity must be positive, got {validity_days} days")

    try:
        signing_code = validated.signature.backend_code(backend)
    except KeyError:
        raise IncompleteSpecification(
            f"Backend {backend!r} has no code for {validated.signature.name}"
        ) from None

    request = validated.request
    return SigningSpecification(
        common_name=request.common_name,
        subject_alternative_names=tuple(request.subject_alternative_names),
        distinguished_name=request.distinguished_name.freeze(),
        key_algorithm=validated.key_policy.algorithm,
        key_size=request.key_size,
        signature_algorithm=validated.signature.algorithm,
        backend=backend,
        signing_code=signing_code,
        key_usage=profile.key_usage,
        extended_key_usage=profile.extended_key_usage,
        template_arn=profile.template_arn,
        signing_key_id=signing_key.identity(),
        authority=authority,
        validity_days=validity_days,
        root_ca=root_ca,
    )
