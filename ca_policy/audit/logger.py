"""Issuance audit trail with hash chaining."""

import hashlib
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Audit event types."""
    CERTIFICATE_ISSUED = "certificate_issued"
    CERTIFICATE_REVOKED = "certificate_revoked"
    ISSUANCE_REJECTED = "issuance_rejected"
    SIGNING_FAILED = "signing_failed"
    POLICY_LOADED = "policy_loaded"


@dataclass
class AuditEvent:
    """
    Audit event linked to its predecessor by hash.

    Altering or removing an earlier event breaks every later link.
    """
    event_id: str
    event_type: EventType
    timestamp: datetime
    service_id: str
    actor: Optional[str]
    target: Optional[str]
    action: str
    result: str  # success, failure, rejected
    details: Dict[str, Any] = field(default_factory=dict)
    previous_hash: Optional[str] = None
    event_hash: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary, without event_hash."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "service_id": self.service_id,
            "actor": self.actor,
            "target": self.target,
            "action": self.action,
            "result": self.result,
            "details": self.details,
            "previous_hash": self.previous_hash,
        }

    def compute_hash(self) -> str:
        return _digest(self.to_dict())


def _digest(data: dict) -> str:
    canonical = json.dumps(data, sort_keys=True)
    return hashlib.sha256(canonical.encode()).hexdigest()


class AuditLogger:
    """
    Audit logger for issuance decisions.

    Events go to the standard logger and, when a file is configured, to a
    JSON-lines file that verify_chain() can check for tampering.
    """

    def __init__(
        self,
        service_id: str,
        log_file: Optional[Path] = None,
        enable_chaining: bool = True
    ):
        """
        Initialize audit logger.

        Args:
            service_id: Identifier of the issuing service
            log_file: Path to audit log file (optional)
            enable_chaining: Enable hash chaining for tamper detection
        """
        self.service_id = service_id
        self.log_file = Path(log_file) if log_file else None
        self.enable_chaining = enable_chaining

        self._last_hash: Optional[str] = None
        self._event_count = 0

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            if self.enable_chaining and self.log_file.exists():
                self._last_hash = self._read_last_hash()

    def _read_last_hash(self) -> Optional[str]:
        """Resume the chain from an existing audit file."""
        last = None
        with open(self.log_file, 'r', encoding='utf-8') as f:
            for line in f:
                if line.strip():
                    last = line
        if last is None:
            return None
        return json.loads(last).get("event_hash")

    def log_event(
        self,
        event_type: EventType,
        action: str,
        result: str,
        actor: Optional[str] = None,
        target: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AuditEvent:
        """
        Record an audit event.

        Args:
            event_type: Type of event
            action: Action description
            result: Result (success, failure, rejected)
            actor: Who triggered the event
            target: What was affected
            details: Additional details

        Returns:
            Created audit event
        """
        event = AuditEvent(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            timestamp=datetime.now(timezone.utc),
            service_id=self.service_id,
            actor=actor,
            target=target,
            action=action,
            result=result,
            details=details or {},
            previous_hash=self._last_hash if self.enable_chaining else None
        )

        if self.enable_chaining:
            event.event_hash = event.compute_hash()
            self._last_hash = event.event_hash

        self._event_count += 1
        self._write_event(event)

        logger.info(
            f"AUDIT: {event.event_type.value} | {event.action} | {event.result} | "
            f"actor={event.actor} target={event.target}"
        )
        return event

    def _write_event(self, event: AuditEvent):
        if not self.log_file:
            return

        record = event.to_dict()
        record["event_hash"] = event.event_hash
        try:
            with open(self.log_file, 'a', encoding='utf-8') as f:
                json.dump(record, f)
                f.write('\n')
        except OSError as e:
            logger.error(f"Failed to write audit event: {e}")

    def log_certificate_issued(self, serial_number: str, common_name: str, profile: str, authority: str):
        return self.log_event(
            EventType.CERTIFICATE_ISSUED,
            action=f"Issued {profile} certificate to {common_name}",
            result="success",
            actor=authority,
            target=serial_number,
            details={"common_name": common_name, "profile": profile}
        )

    def log_issuance_rejected(self, common_name: str, error: str, reason: str):
        return self.log_event(
            EventType.ISSUANCE_REJECTED,
            action=f"Rejected certificate request for {common_name}",
            result="rejected",
            target=common_name,
            details={"error": error, "reason": reason}
        )

    def log_signing_failed(self, authority: str, common_name: str, reason: str, retryable: bool):
        return self.log_event(
            EventType.SIGNING_FAILED,
            action=f"Signing failed for {common_name}",
            result="failure",
            actor=authority,
            target=common_name,
            details={"reason": reason, "retryable": retryable}
        )

    def log_certificate_revoked(self, serial_number: str, revoked_by: str):
        return self.log_event(
            EventType.CERTIFICATE_REVOKED,
            action="Revoked certificate",
            result="success",
            actor=revoked_by,
            target=serial_number
        )

    def log_policy_loaded(self, key_algorithms: int, signatures: int, profiles: int):
        return self.log_event(
            EventType.POLICY_LOADED,
            action="Loaded issuance policy",
            result="success",
            details={
                "key_algorithms": key_algorithms,
                "signatures": signatures,
                "profiles": profiles,
            }
        )

    def verify_chain(self) -> bool:
        """
        Verify the audit file has not been altered.

        Returns:
            True if every event links to its predecessor and hashes match
        """
        if not self.log_file or not self.enable_chaining:
            return True
        if not self.log_file.exists():
            return self._event_count == 0

        try:
            with open(self.log_file, 'r', encoding='utf-8') as f:
                events = [json.loads(line) for line in f if line.strip()]
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading audit log: {e}")
            return False

        previous_hash = None
        for i, record in enumerate(events):
            if record.get("previous_hash") != previous_hash:
                logger.error(f"Chain break at event {i}")
                return False

            data = dict(record)
            event_hash = data.pop("event_hash", None)
            if _digest(data) != event_hash:
                logger.error(f"Hash mismatch at event {i}")
                return False

            previous_hash = event_hash

        return True

    def get_event_count(self) -> int:
        return self._event_count

    def get_last_hash(self) -> Optional[str]:
        return self._last_hash
