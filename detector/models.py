"""Normalized records passed between the parsers, the engine and the dispatcher.

Event   — one parsed log line, immutable.
Finding — one rule match against one Event, immutable.
Alert   — a Finding that made it through the dispatcher gate.  The only
          mutable field is ``acknowledged``, which belongs to whoever
          consumes the alert (operator console, ticketing, ...).
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType


class Severity(str, Enum):
    """Event severity, normalized across every supported log format."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    UNKNOWN = "UNKNOWN"

    def __str__(self):
        return self.value


class Level(str, Enum):
    """Finding / alert severity."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    def __str__(self):
        return self.value


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Event:
    timestamp: datetime
    source: str
    host: str
    severity: Severity
    event_type: str
    message: str
    source_ip: str | None = None
    dest_ip: str | None = None
    username: str | None = None
    metadata: dict = field(default_factory=dict)
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        # frozen stops rebinding; the proxy stops in-place edits
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))


@dataclass(frozen=True)
class Finding:
    rule_id: str
    rule_name: str
    severity: Level
    title: str
    description: str
    event_id: str
    # source_ip, host, source, message, username — copied off the Event so
    # sinks never need the original record.
    details: dict = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def source_ip(self) -> str | None:
        return self.details.get("source_ip")

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "event_id": self.event_id,
            "details": dict(self.details),
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Alert:
    finding: Finding
    dedup_key: str
    delivered_at: datetime = field(default_factory=datetime.now)
    acknowledged: bool = False
    id: str = field(default_factory=_new_id)

    @property
    def severity(self) -> Level:
        return self.finding.severity

    @property
    def rule_id(self) -> str:
        return self.finding.rule_id

    def acknowledge(self) -> None:
        self.acknowledged = True

    def to_dict(self) -> dict:
        payload = self.finding.to_dict()
        payload.update({
            "alert_id": self.id,
            "dedup_key": self.dedup_key,
            "delivered_at": self.delivered_at.isoformat(),
            "acknowledged": self.acknowledged,
        })
        return payload
