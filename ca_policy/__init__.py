"""Certificate issuance policy: compatibility checks, profiles and signing specifications."""

__version__ = "0.1.0"
