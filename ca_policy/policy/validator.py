"""Checks a certificate request against the policy registry."""

from dataclasses import dataclass

from ..exceptions import IncompatibleSignatureAlgorithm, InvalidKeySize
from ..models.algorithms import KeyAlgorithmPolicy, SignatureAlgorithmMapping
from ..models.request import CertificateRequest
from .registry import PolicyRegistry


@dataclass(frozen=True)
class ValidatedRequest:
    """A request that passed validation, with the policy entries it resolved to."""
    request: CertificateRequest
    key_policy: KeyAlgorithmPolicy
    signature: SignatureAlgorithmMapping


class CompatibilityValidator:
    """
    Validates (key algorithm, key size, signature) combinations.

    Checks run in order and stop at the first failure:
    1. Key algorithm is defined by policy
    2. Key size is allowed for that algorithm
    3. Signature name is registered globally
    4. Signature name is allowed for that algorithm
    """

    def __init__(self, registry: PolicyRegistry):
        self.registry = registry

    def validate(self, request: CertificateRequest) -> ValidatedRequest:
        """
        Validate a request.

        Args:
            request: Incoming certificate request

        Returns:
            ValidatedRequest carrying the resolved policy entries

        Raises:
            UnknownKeyAlgorithm, InvalidKeySize, UnknownSignatureAlgorithm,
            IncompatibleSignatureAlgorithm
        """
        key_policy = self.registry.key_policy(request.key_algorithm)

        if request.key_size not in key_policy.key_sizes:
            raise InvalidKeySize(key_policy.name, request.key_size)

        signature = self.registry.signature_mapping(request.signature_algorithm)

        # A globally valid name can still be wrong for this key family
        if signature.name not in key_policy.signatures:
            raise IncompatibleSignatureAlgorithm(signature.name, key_policy.name)

        return ValidatedRequest(request=request, key_policy=key_policy, signature=signature)
