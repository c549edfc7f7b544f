"""High severity error — ERROR/CRITICAL lines can be the visible edge of an attack."""

from detector.models import Level, Severity
from detector.rules import Rule

# FATAL is folded into CRITICAL by the parsers
_SEVERITIES = {Severity.ERROR, Severity.CRITICAL}


class HighSeverityError(Rule):
    id = "high_severity_error"
    name = "High Severity Error Detection"
    severity = Level.MEDIUM

    def match(self, event, ctx):
        return event.severity in _SEVERITIES

    def describe(self, event, ctx):
        return (
            "High severity error detected",
            f"Severity: {event.severity}, Message: {event.message}",
        )
