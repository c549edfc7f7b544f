# Detection rules as Python classes, one per file.
#
# The rule set is closed: ALL_RULES below is the whole battery and there is
# no runtime expression language.  Each rule gets a guard (match) and an
# evaluation step; only the stateful rules touch the EntityStateStore, and
# only under their own keys, so rules can run in any order.

from dataclasses import dataclass

from detector.models import Event, Finding, Level
from detector.state import EntityStateStore
from detector.watchlists import Watchlists


@dataclass
class DetectionContext:
    """Shared state handed to every rule. Owned by the DetectionEngine."""

    state: EntityStateStore
    watchlists: Watchlists


class Rule:
    """Base detection rule. Subclass and implement match() + describe()."""

    id: str
    name: str
    severity: Level

    def match(self, event: Event, ctx: DetectionContext) -> bool:
        """Guard: does this event concern the rule at all?

        Must tolerate any optional Event field being None.
        """
        raise NotImplementedError

    def evaluate(self, event: Event, ctx: DetectionContext) -> Finding | None:
        """Called only when match() is True. Stateless rules always fire;
        stateful rules override this to update counters and check thresholds."""
        title, description = self.describe(event, ctx)
        return self.finding(event, title, description)

    def describe(self, event: Event, ctx: DetectionContext) -> tuple[str, str]:
        """(title, description) for the finding."""
        raise NotImplementedError

    def finding(self, event: Event, title: str, description: str) -> Finding:
        return Finding(
            rule_id=self.id,
            rule_name=self.name,
            severity=self.severity,
            title=title,
            description=description,
            event_id=event.id,
            details={
                "source_ip": event.source_ip,
                "host": event.host,
                "source": event.source,
                "message": event.message,
                "username": event.username,
            },
        )


def message_of(event: Event) -> str:
    return (event.message or "").lower()


from detector.rules.blacklisted_ip import BlacklistedIp
from detector.rules.suspicious_keyword import SuspiciousKeyword
from detector.rules.brute_force import BruteForce
from detector.rules.user_activity import UnusualUserActivity
from detector.rules.injection import SqlInjection, XssAttack
from detector.rules.port_scan import PortScan
from detector.rules.user_agent import SuspiciousUserAgent
from detector.rules.high_severity import HighSeverityError
from detector.rules.unusual_time import UnusualTime

ALL_RULES = [
    BlacklistedIp(),
    SuspiciousKeyword(),
    BruteForce(),
    UnusualUserActivity(),
    SqlInjection(),
    XssAttack(),
    PortScan(),
    SuspiciousUserAgent(),
    HighSeverityError(),
    UnusualTime(),
]
