"""Unusual user activity — one username behind too many log lines.

Lifetime count per username, threshold >100, re-fires on every line past it.
"""

from detector.models import Level
from detector.rules import Rule

THRESHOLD = 100


def key_for(username: str) -> str:
    return f"user:{username}"


class UnusualUserActivity(Rule):
    id = "unusual_user_activity"
    name = "Unusual User Activity Detection"
    severity = Level.MEDIUM

    def match(self, event, ctx):
        return bool(event.username)

    def evaluate(self, event, ctx):
        total = ctx.state.increment_count(key_for(event.username))
        if total <= THRESHOLD:
            return None
        return self.finding(
            event,
            f"Unusual activity from user: {event.username}",
            f"User {event.username} has generated {total} log entries",
        )
