"""Alert sinks — where delivered alerts go.

A sink is anything with on_alert(alert).  on_suppressed(finding, reason) is
optional and only called for HIGH findings the dispatcher held back.
"""

import json
import logging

from prometheus_client import REGISTRY, Counter

logger = logging.getLogger(__name__)


class AlertSink:
    """Base sink. Subclass and implement on_alert()."""

    def on_alert(self, alert) -> None:
        raise NotImplementedError

    def on_suppressed(self, finding, reason: str) -> None:
        pass


class LogSink(AlertSink):
    """Writes one log line per alert."""

    def __init__(self, log=None):
        self._log = log or logger

    def on_alert(self, alert):
        details = alert.finding.details
        self._log.warning(
            "ALERT rule=%s severity=%s src=%s host=%s  %s",
            alert.rule_id, alert.severity, details.get("source_ip"),
            details.get("host"), alert.finding.title,
        )


class CollectingSink(AlertSink):
    """Keeps everything in memory. Handy for operator consoles and tests."""

    def __init__(self):
        self.alerts = []
        self.suppressed = []

    def on_alert(self, alert):
        self.alerts.append(alert)

    def on_suppressed(self, finding, reason):
        self.suppressed.append((finding, reason))


class KafkaSink(AlertSink):
    """Publishes each alert as JSON, keyed by dedup key so one entity's
    alerts stay on one partition."""

    def __init__(self, producer, topic: str):
        self.producer = producer
        self.topic = topic
        self.produced = 0

    def on_alert(self, alert):
        self.producer.produce(
            self.topic,
            key=alert.dedup_key.encode("utf-8"),
            value=json.dumps(alert.to_dict()).encode("utf-8"),
        )
        # serve delivery callbacks without blocking
        self.producer.poll(0)
        self.produced += 1


class MetricsSink(AlertSink):
    """Prometheus counters for delivered and suppressed alerts.

    Each Counter registers itself in ``registry`` on construction; pass a
    private CollectorRegistry when more than one sink lives in a process.
    """

    def __init__(self, registry=REGISTRY):
        self.alerts_total = Counter(
            "detector_alerts_total",
            "Alerts delivered to sinks",
            ["rule_id", "severity"],
            registry=registry,
        )
        self.suppressed_total = Counter(
            "detector_alerts_suppressed_total",
            "HIGH findings held back by the dispatcher",
            ["rule_id", "reason"],
            registry=registry,
        )

    def on_alert(self, alert):
        self.alerts_total.labels(
            rule_id=alert.rule_id, severity=alert.severity.value
        ).inc()

    def on_suppressed(self, finding, reason):
        self.suppressed_total.labels(rule_id=finding.rule_id, reason=reason).inc()
