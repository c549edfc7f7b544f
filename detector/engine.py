"""Detection engine — evaluates events against the fixed rule battery.

Pure in-memory logic; collectors feed events in from any thread and the
dispatcher takes the findings out.

State: one EntityStateStore (counters + timestamp windows keyed by entity)
and one Watchlists instance, both owned here and shared by every rule.
"""

import logging

from detector.models import Event, Finding
from detector.rules import ALL_RULES, DetectionContext, Rule
from detector.state import EntityStateStore
from detector.watchlists import Watchlists

logger = logging.getLogger(__name__)


class DetectionEngine:

    def __init__(self, rules: list[Rule] | None = None,
                 state: EntityStateStore | None = None,
                 watchlists: Watchlists | None = None):
        self.rules = rules if rules is not None else ALL_RULES
        self.state = state if state is not None else EntityStateStore()
        self.watchlists = (
            watchlists if watchlists is not None else Watchlists.with_defaults()
        )
        self._ctx = DetectionContext(state=self.state, watchlists=self.watchlists)

    def evaluate(self, event: Event | None) -> list[Finding]:
        """Feed one event, get back zero or more findings.

        For each rule:
          1. Guard    — does the event concern this rule?  Missing fields = no.
          2. Evaluate — stateful rules update their counters, then decide.
        A rule that blows up is logged and counted as "did not fire"; the
        remaining rules still run.
        """
        if event is None:
            return []

        findings = []
        for rule in self.rules:
            try:
                if not rule.match(event, self._ctx):
                    continue
                finding = rule.evaluate(event, self._ctx)
            except Exception:
                logger.exception("Rule %s failed on event %s", rule.id, event.id)
                continue
            if finding is not None:
                findings.append(finding)
        return findings

    # ------------------------------------------------------------------
    # Administrative surface
    # ------------------------------------------------------------------

    def add_blacklisted_ip(self, ip: str) -> None:
        self.watchlists.add_blacklisted_ip(ip)

    def remove_blacklisted_ip(self, ip: str) -> None:
        self.watchlists.remove_blacklisted_ip(ip)

    def add_suspicious_keyword(self, keyword: str) -> None:
        self.watchlists.add_suspicious_keyword(keyword)

    def add_suspicious_user_agent(self, user_agent: str) -> None:
        self.watchlists.add_suspicious_user_agent(user_agent)

    def reset_counters(self) -> None:
        self.state.reset()
        logger.info("Reset all detection counters")

    def statistics(self) -> dict:
        stats = self.watchlists.sizes()
        stats.update({
            "active_ip_counts": self.state.counter_keys("ip:"),
            "active_user_counts": self.state.counter_keys("user:"),
            "active_windows": self.state.window_keys(),
            "total_rules": len(self.rules),
        })
        return stats
