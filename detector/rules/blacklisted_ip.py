"""Blacklisted IP — any traffic from a source on the IP blacklist."""

from detector.models import Level
from detector.rules import Rule


class BlacklistedIp(Rule):
    id = "blacklisted_ip"
    name = "Blacklisted IP Detection"
    severity = Level.HIGH

    def match(self, event, ctx):
        return ctx.watchlists.is_blacklisted(event.source_ip)

    def describe(self, event, ctx):
        return (
            f"Blacklisted IP detected: {event.source_ip}",
            f"Source IP {event.source_ip} is on the blacklist and attempted access.",
        )
