"""Brute force — repeated failed logins from one source IP.

Counts every "failed ... login" line per source IP for the lifetime of the
process (no window).  Fires on the 6th failure and on every failure after
that, so a sustained attack keeps escalating until the counters are reset.
"""

from detector.models import Level
from detector.rules import Rule, message_of

THRESHOLD = 5


def key_for(ip: str) -> str:
    return f"ip:{ip}"


class BruteForce(Rule):
    id = "brute_force"
    name = "Brute Force Attack Detection"
    severity = Level.HIGH

    def match(self, event, ctx):
        message = message_of(event)
        return bool(event.source_ip) and "failed" in message and "login" in message

    def evaluate(self, event, ctx):
        total = ctx.state.increment_count(key_for(event.source_ip))
        if total <= THRESHOLD:
            return None
        return self.finding(
            event,
            f"Possible brute force attack from {event.source_ip}",
            f"Multiple failed login attempts ({total}) from IP: {event.source_ip}",
        )
