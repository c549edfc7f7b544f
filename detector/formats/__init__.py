# Log line parsers, one class per on-disk format.
#
# Each parser owns an ordered list of fixed-grammar patterns, most detailed
# first.  The first pattern that matches the whole line wins and decides how
# the Event is built.  "No match" is a None return, never an exception, so a
# collector can stream arbitrary files through without try/except noise.

import ipaddress
import logging
import re
from datetime import datetime

from detector.models import Event, Severity

logger = logging.getLogger(__name__)

_IPV4 = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b")

# Tried in order; explicit key=value forms beat prose.
_USERNAME_PATTERNS = [
    re.compile(r"\buser(?:name)?[=:]\s*([\w.@\\-]+)", re.IGNORECASE),
    re.compile(r"\bfor (?:invalid )?user\s+([\w.@\\-]+)", re.IGNORECASE),
    re.compile(r"\bfor\s+([\w.@\\-]+)\s+from\b", re.IGNORECASE),
]

# Level words seen in the wild, folded onto the six normalized severities.
_LEVELS = {
    "FATAL": Severity.CRITICAL,
    "CRITICAL": Severity.CRITICAL,
    "CRIT": Severity.CRITICAL,
    "EMERGENCY": Severity.CRITICAL,
    "ALERT": Severity.CRITICAL,
    "ERROR": Severity.ERROR,
    "ERR": Severity.ERROR,
    "WARN": Severity.WARN,
    "WARNING": Severity.WARN,
    "INFO": Severity.INFO,
    "INFORMATION": Severity.INFO,
    "NOTICE": Severity.INFO,
    "DEBUG": Severity.DEBUG,
    "TRACE": Severity.DEBUG,
    "VERBOSE": Severity.DEBUG,
}


def normalize_level(level: str | None) -> Severity:
    if not level:
        return Severity.UNKNOWN
    return _LEVELS.get(level.strip().upper(), Severity.UNKNOWN)


def parse_timestamp(value: str, fmt: str) -> datetime:
    """strptime, falling back to now — a bad timestamp never drops a line."""
    try:
        return datetime.strptime(value, fmt)
    except ValueError:
        logger.debug("Unparseable timestamp %r (expected %s), using now", value, fmt)
        return datetime.now()


def parse_iso_timestamp(value: str) -> datetime:
    try:
        # fromisoformat only learned the trailing Z in 3.11
        if value.endswith(("Z", "z")):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Unparseable ISO timestamp %r, using now", value)
        return datetime.now()


def extract_entities(message: str) -> tuple[str | None, str | None, str | None]:
    """Pull (source_ip, dest_ip, username) out of free text.

    First valid IPv4 address is the source, second the destination.
    """
    ips = []
    for candidate in _IPV4.findall(message or ""):
        try:
            ipaddress.IPv4Address(candidate)
        except ValueError:
            continue
        ips.append(candidate)
    src = ips[0] if ips else None
    dst = ips[1] if len(ips) > 1 else None

    username = None
    for pattern in _USERNAME_PATTERNS:
        m = pattern.search(message or "")
        if m:
            username = m.group(1)
            break
    return src, dst, username


class LineParser:
    """Base line parser. Subclass, fill in ``patterns`` and implement build()."""

    name: str
    # (variant, compiled pattern), most specific first
    patterns: list[tuple[str, re.Pattern]]

    def can_parse(self, line: str) -> bool:
        """Return True if any of this parser's patterns accepts the line."""
        return self._match(line) is not None

    def parse(self, line: str, source: str, line_number: int) -> Event | None:
        """Turn one raw line into an Event, or None if the line isn't ours."""
        hit = self._match(line)
        if hit is None:
            return None
        variant, match = hit
        return self.build(variant, match, source, line_number)

    def build(self, variant: str, match: re.Match, source: str,
              line_number: int) -> Event:
        raise NotImplementedError

    def _match(self, line):
        if line is None or not line.strip():
            return None
        line = line.rstrip("\r\n")
        for variant, pattern in self.patterns:
            m = pattern.fullmatch(line)
            if m:
                return variant, m
        return None

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}>"


from detector.formats.access_log import AccessLogParser
from detector.formats.syslog import SyslogParser
from detector.formats.event_log import EventLogParser


def default_parsers() -> list[LineParser]:
    """Fresh parser instances in registration (detection priority) order."""
    return [AccessLogParser(), SyslogParser(), EventLogParser()]
