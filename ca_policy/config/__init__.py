"""Configuration loading."""

from .provider import ConfigProvider, Validatable, load_registry
from .settings import (
    StrictSettings,
    KeyAlgorithmSettings,
    SignatureSettings,
    ProfileSettings,
    PolicySettings,
    AuthoritySettings,
)

__all__ = [
    "ConfigProvider",
    "Validatable",
    "load_registry",
    "StrictSettings",
    "KeyAlgorithmSettings",
    "SignatureSettings",
    "ProfileSettings",
    "PolicySettings",
    "AuthoritySettings",
]
