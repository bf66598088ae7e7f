"""Certificate profile resolution."""

from ..models.profiles import CertificateProfile
from .registry import PolicyRegistry


class ProfileResolver:
    """Looks up extension sets and templates by profile name."""

    def __init__(self, registry: PolicyRegistry):
        self.registry = registry

    def resolve(self, profile_name: str) -> CertificateProfile:
        """Resolve a profile; raises UnknownProfile when it is not defined."""
        return self.registry.profile(profile_name)
