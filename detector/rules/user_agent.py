"""Suspicious user agent — request made by a known attack tool."""

from detector.models import Level
from detector.rules import Rule


def _user_agent(event):
    return (event.metadata or {}).get("user_agent")


class SuspiciousUserAgent(Rule):
    id = "suspicious_user_agent"
    name = "Suspicious User Agent Detection"
    severity = Level.MEDIUM

    def match(self, event, ctx):
        return ctx.watchlists.first_user_agent(_user_agent(event)) is not None

    def describe(self, event, ctx):
        return (
            "Suspicious user agent detected",
            f"User agent: {_user_agent(event)}",
        )
