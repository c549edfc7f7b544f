"""Alert dispatcher — turns raw findings into delivered alerts.

HIGH findings are candidates for interactive escalation, so they pass two
independent gates before delivery:

  locality   — sources in 10/8, 172.16/12, 192.168/16 (or no source at all)
               are suppressed unless allow_local_ips is switched on.
  rate limit — at most one alert per dedup key (rule_id|source_ip) per
               minute.

Anything below HIGH skips both gates; sinks decide what to do with it.
Suppressed findings are still offered to sinks via on_suppressed() so an
audit trail can keep them.
"""

import ipaddress
import logging
import threading
import time
from datetime import datetime

from detector.models import Alert, Finding, Level

logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 60
UNKNOWN_SOURCE = "unknown"

_LOCAL_NETWORKS = tuple(
    ipaddress.ip_network(n) for n in ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16")
)


def is_local_ip(ip: str | None) -> bool:
    """True for private ranges, and for anything absent or unparseable."""
    if not ip or ip == UNKNOWN_SOURCE:
        return True
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return True
    return any(addr in net for net in _LOCAL_NETWORKS)


def dedup_key(finding: Finding) -> str:
    return f"{finding.rule_id}|{finding.source_ip or UNKNOWN_SOURCE}"


class AlertDispatcher:

    def __init__(self, sinks=None, allow_local_ips: bool = False,
                 min_interval_seconds: float = MIN_INTERVAL_SECONDS):
        self.allow_local_ips = allow_local_ips
        self.min_interval = min_interval_seconds
        self._sinks = list(sinks or [])
        self._sinks_lock = threading.Lock()
        # dedup key -> epoch seconds of last delivery; never evicted
        self._last_delivery: dict[str, float] = {}
        self._gate_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Sinks
    # ------------------------------------------------------------------

    def add_sink(self, sink) -> None:
        with self._sinks_lock:
            self._sinks = self._sinks + [sink]

    def remove_sink(self, sink) -> None:
        with self._sinks_lock:
            self._sinks = [s for s in self._sinks if s is not sink]

    def set_allow_local_ips(self, allow: bool) -> None:
        self.allow_local_ips = bool(allow)
        logger.info("Delivery for local/private IPs: %s",
                    "enabled" if self.allow_local_ips else "suppressed")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, finding: Finding) -> Alert | None:
        """Deliver the finding to every sink, or return None if suppressed."""
        key = dedup_key(finding)

        if finding.severity == Level.HIGH:
            reason = self._gate(finding, key)
            if reason is not None:
                self._notify_suppressed(finding, reason)
                return None

        alert = Alert(finding=finding, dedup_key=key, delivered_at=datetime.now())
        for sink in self._sinks:
            try:
                sink.on_alert(alert)
            except Exception:
                logger.exception("Alert sink %r failed on %s", sink, key)
        return alert

    def _gate(self, finding: Finding, key: str) -> str | None:
        """Return a suppression reason, or None if the finding may go out."""
        if not self.allow_local_ips and is_local_ip(finding.source_ip):
            logger.info("Suppressed alert for private IP: %s - %s",
                        finding.source_ip or UNKNOWN_SOURCE, finding.title)
            return "local_ip"

        now = time.time()
        # check-and-stamp under one lock so two threads can't both deliver
        with self._gate_lock:
            last = self._last_delivery.get(key)
            if last is not None and now - last < self.min_interval:
                logger.info("Rate-limited duplicate alert for %s (last %.1fs ago)",
                            key, now - last)
                return "rate_limited"
            self._last_delivery[key] = now
        return None

    def _notify_suppressed(self, finding: Finding, reason: str) -> None:
        for sink in self._sinks:
            hook = getattr(sink, "on_suppressed", None)
            if hook is None:
                continue
            try:
                hook(finding, reason)
            except Exception:
                logger.exception("Alert sink %r failed on suppressed finding", sink)

    def tracked_keys(self) -> int:
        with self._gate_lock:
            return len(self._last_delivery)
