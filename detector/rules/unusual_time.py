"""Unusual time — activity between 23:00 and 05:59 (log-local clock)."""

from detector.models import Level
from detector.rules import Rule


class UnusualTime(Rule):
    id = "unusual_time"
    name = "Unusual Time Pattern Detection"
    severity = Level.LOW

    def match(self, event, ctx):
        if event.timestamp is None:
            return False
        hour = event.timestamp.hour
        return hour < 6 or hour > 22

    def describe(self, event, ctx):
        return (
            "Activity during unusual hours",
            f"Log entry at unusual time: {event.timestamp.isoformat()}",
        )
