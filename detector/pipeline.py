"""Ingest pipeline — raw line in, delivered alerts out.

    pipeline = Pipeline.from_settings(load_settings("config/detector.yml"))
    pipeline.add_sink(LogSink())
    pipeline.detect_format("/var/log/nginx/access.log", first_20_lines)
    for n, line in enumerate(lines, 1):
        pipeline.ingest(line, "/var/log/nginx/access.log", n)

Parser choice per source, in order: pinned/detected parser for that
source, else the first registered parser that accepts the single line.
Every step runs on the caller's thread.
"""

import logging
import threading

from detector.config import Settings
from detector.dispatcher import AlertDispatcher
from detector.engine import DetectionEngine
from detector.formats import LineParser
from detector.formats.registry import FormatRegistry
from detector.models import Alert, Event
from detector.watchlists import Watchlists

logger = logging.getLogger(__name__)


class Pipeline:

    def __init__(self, registry: FormatRegistry | None = None,
                 engine: DetectionEngine | None = None,
                 dispatcher: AlertDispatcher | None = None):
        self.registry = registry or FormatRegistry()
        self.engine = engine or DetectionEngine()
        self.dispatcher = dispatcher or AlertDispatcher()
        self._source_parsers: dict[str, LineParser] = {}
        self._lock = threading.Lock()
        self.lines_seen = 0
        self.events_parsed = 0

    @classmethod
    def from_settings(cls, settings: Settings, sinks=None) -> "Pipeline":
        watchlists = Watchlists(
            settings.blacklisted_ips,
            settings.suspicious_keywords,
            settings.suspicious_user_agents,
        )
        return cls(
            engine=DetectionEngine(watchlists=watchlists),
            dispatcher=AlertDispatcher(
                sinks=sinks, allow_local_ips=settings.allow_local_ips
            ),
        )

    # ------------------------------------------------------------------
    # Format selection
    # ------------------------------------------------------------------

    def detect_format(self, source: str, sample_lines) -> LineParser | None:
        """Run format detection on samples and pin the winner to source."""
        parser = self.registry.detect(sample_lines)
        if parser is None:
            logger.info("No format detected for %s; falling back to per-line", source)
            return None
        with self._lock:
            self._source_parsers[source] = parser
        logger.info("Source %s detected as %s", source, parser.name)
        return parser

    def pin_parser(self, source: str, parser_name: str) -> LineParser:
        parser = self.registry.get(parser_name)
        if parser is None:
            known = ", ".join(p.name for p in self.registry.parsers)
            raise ValueError(f"Unknown parser '{parser_name}' (known: {known})")
        with self._lock:
            self._source_parsers[source] = parser
        return parser

    def parser_for(self, source: str, line: str) -> LineParser | None:
        parser = self._source_parsers.get(source)
        if parser is not None:
            return parser
        return self.registry.parser_for_line(line)

    # ------------------------------------------------------------------
    # Ingest
    # ------------------------------------------------------------------

    def parse(self, raw_line: str, source: str, line_number: int) -> Event | None:
        parser = self.parser_for(source, raw_line)
        if parser is None:
            return None
        return parser.parse(raw_line, source, line_number)

    def ingest(self, raw_line: str, source: str, line_number: int) -> list[Alert]:
        """Parse, evaluate and dispatch one line. Malformed input → []."""
        with self._lock:
            self.lines_seen += 1

        event = self.parse(raw_line, source, line_number)
        if event is None:
            logger.debug("Skipped unparseable line %s:%d", source, line_number)
            return []
        with self._lock:
            self.events_parsed += 1

        alerts = []
        for finding in self.engine.evaluate(event):
            alert = self.dispatcher.dispatch(finding)
            if alert is not None:
                alerts.append(alert)
        return alerts

    # ------------------------------------------------------------------
    # Administrative surface
    # ------------------------------------------------------------------

    def add_sink(self, sink) -> None:
        self.dispatcher.add_sink(sink)

    def add_blacklisted_ip(self, ip: str) -> None:
        self.engine.add_blacklisted_ip(ip)

    def remove_blacklisted_ip(self, ip: str) -> None:
        self.engine.remove_blacklisted_ip(ip)

    def add_suspicious_keyword(self, keyword: str) -> None:
        self.engine.add_suspicious_keyword(keyword)

    def add_suspicious_user_agent(self, user_agent: str) -> None:
        self.engine.add_suspicious_user_agent(user_agent)

    def reset_counters(self) -> None:
        self.engine.reset_counters()

    def set_allow_local_ips(self, allow: bool) -> None:
        self.dispatcher.set_allow_local_ips(allow)

    def statistics(self) -> dict:
        stats = self.engine.statistics()
        stats.update({
            "lines_seen": self.lines_seen,
            "events_parsed": self.events_parsed,
            "alert_keys_tracked": self.dispatcher.tracked_keys(),
            "allow_local_ips": self.dispatcher.allow_local_ips,
        })
        return stats
