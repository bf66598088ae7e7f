"""Certificate authority and issued-certificate records."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..exceptions import AlreadyRevoked

if TYPE_CHECKING:
    from ..crypto.keys import SigningKey


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthorityReference(BaseModel):
    """Where an authority's key lives: region, ARN and optional role to assume."""
    model_config = ConfigDict(frozen=True)

    region: str = Field(..., description="Backend region")
    authority_arn: str = Field(..., description="Certificate authority ARN")
    assume_role: bool = Field(default=False, description="Assume a role before signing")
    role_arn: Optional[str] = Field(None, description="Role to assume")

    @model_validator(mode="after")
    def role_required_when_assuming(self) -> "AuthorityReference":
        if self.assume_role and not self.role_arn:
            raise ValueError("role_arn is required when assume_role is set")
        return self


@dataclass(frozen=True)
class CertificateAuthority:
    """An issuing authority: its certificate, signing key and reference."""
    certificate_pem: str
    signing_key: "SigningKey"
    serial_number: str
    authority: Optional[AuthorityReference] = None


class CertificateMetadata(BaseModel):
    """
    Record of an issued certificate.

    Frozen except for the revocation transition, which sets revoked,
    revoked_by and revoke_date together exactly once. Naive datetimes are
    taken as UTC.
    """
    model_config = ConfigDict(frozen=True)

    serial_number: str = Field(..., description="Certificate serial number")
    common_name: str = Field(..., description="Subject common name")
    subject_alternative_names: Tuple[str, ...] = Field(default_factory=tuple)
    issued_date: datetime = Field(..., description="Start of validity")
    expiration_date: datetime = Field(..., description="End of validity")
    ca_serial_number: str = Field(..., description="Issuing authority serial")
    certificate_authority_arn: Optional[str] = Field(None, description="Issuing authority ARN")
    revoked: bool = Field(default=False)
    revoked_by: Optional[str] = Field(None)
    revoke_date: Optional[datetime] = Field(None)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("issued_date", "expiration_date", "revoke_date", "timestamp")
    @classmethod
    def aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None

    @model_validator(mode="after")
    def expiration_after_issue(self) -> "CertificateMetadata":
        if self.expiration_date <= self.issued_date:
            raise ValueError("expiration_date must be after issued_date")
        return self

    def revoke(self, revoked_by: str, when: Optional[datetime] = None) -> "CertificateMetadata":
        """Mark the certificate revoked; raises AlreadyRevoked on a second call."""
        if self.revoked:
            raise AlreadyRevoked(self.serial_number)
        when = as_utc(when) if when else datetime.now(timezone.utc)
        # Frozen model: the three fields change together as one step
        self.__dict__.update(revoked=True, revoked_by=revoked_by, revoke_date=when)
        return self

    def is_valid(self, current_time: Optional[datetime] = None) -> bool:
        """Check if the certificate is within validity and not revoked."""
        current_time = as_utc(current_time) if current_time else datetime.now(timezone.utc)
        return not self.revoked and self.issued_date <= current_time <= self.expiration_date

