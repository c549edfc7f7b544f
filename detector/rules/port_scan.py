"""Port scan — a burst of refused connections from one source IP.

The only time-windowed rule: refused connections are timestamped per IP
and the rule fires once more than 10 land inside the last hour.
"""

from detector.models import Level
from detector.rules import Rule, message_of

THRESHOLD = 10
WINDOW_SECONDS = 3600


def key_for(ip: str) -> str:
    return f"ip:{ip}"


class PortScan(Rule):
    id = "port_scan"
    name = "Port Scan Detection"
    severity = Level.MEDIUM

    def match(self, event, ctx):
        return bool(event.source_ip) and "connection refused" in message_of(event)

    def evaluate(self, event, ctx):
        key = key_for(event.source_ip)
        ctx.state.record_timestamp(key)
        attempts = ctx.state.count_within_window(key, WINDOW_SECONDS)
        if attempts <= THRESHOLD:
            return None
        return self.finding(
            event,
            f"Potential port scan from {event.source_ip}",
            f"Multiple connection attempts ({attempts} in the last hour) "
            f"from IP: {event.source_ip}",
        )
