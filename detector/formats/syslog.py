"""Syslog — RFC 3164 (BSD) and RFC 5424.

    <34>Oct 11 22:14:15 mymachine su: 'su root' failed for lonvick on /dev/pts/8
    <165>1 2003-10-11T22:14:15.003Z mymachine.example.com evntslog - ID47 [exampleSDID@32473 iut="3"] An application event

PRI decomposes into facility = PRI // 8 and severity code = PRI % 8.
RFC 3164 timestamps carry no year; the current one is assumed.
"""

import re
from datetime import datetime

from detector.formats import (
    LineParser, extract_entities, parse_iso_timestamp, parse_timestamp,
)
from detector.models import Event, Severity

# Index = PRI % 8
SEVERITY_NAMES = [
    "EMERGENCY", "ALERT", "CRITICAL", "ERROR",
    "WARNING", "NOTICE", "INFO", "DEBUG",
]

_SEVERITY_BY_NAME = {
    "EMERGENCY": Severity.CRITICAL,
    "ALERT": Severity.CRITICAL,
    "CRITICAL": Severity.CRITICAL,
    "ERROR": Severity.ERROR,
    "WARNING": Severity.WARN,
    "NOTICE": Severity.INFO,
    "INFO": Severity.INFO,
    "DEBUG": Severity.DEBUG,
}


def decode_priority(priority: int) -> tuple[int, int, str]:
    """PRI → (facility, severity code, severity name)."""
    facility, code = divmod(priority, 8)
    return facility, code, SEVERITY_NAMES[code]


class SyslogParser(LineParser):
    name = "syslog"
    # digit runs are bounded so int() in build() can't be fed a huge number
    patterns = [
        ("rfc3164", re.compile(
            r"<(\d{1,3})>(\w{3}\s+\d{1,2}\s+\d{2}:\d{2}:\d{2})\s+(\S+)\s+(\S+):\s*(.*)"
        )),
        ("rfc5424", re.compile(
            r"<(\d{1,3})>(\d{1,2})\s+(\S+)\s+(\S+)\s+(\S+)\s+(\S+)\s+(\S+)"
            r"\s+(-|(?:\[[^\]]*\])+)\s*(.*)"
        )),
    ]

    def build(self, variant, match, source, line_number):
        priority = int(match.group(1))
        facility, code, severity_name = decode_priority(priority)
        metadata = {
            "format": variant,
            "priority": priority,
            "facility": facility,
            "severity_code": code,
            "severity_name": severity_name,
            "line_number": line_number,
        }

        if variant == "rfc3164":
            raw_ts, host, tag, message = match.group(2, 3, 4, 5)
            timestamp = parse_timestamp(
                f"{datetime.now().year} {raw_ts}", "%Y %b %d %H:%M:%S"
            )
            metadata["tag"] = tag
        else:
            version, raw_ts, host, app_name, proc_id, msg_id, sd, message = (
                match.group(2, 3, 4, 5, 6, 7, 8, 9)
            )
            timestamp = parse_iso_timestamp(raw_ts)
            metadata.update({
                "version": int(version),
                "app_name": app_name,
                "proc_id": proc_id,
                "msg_id": msg_id,
                "structured_data": sd,
            })

        src_ip, dst_ip, username = extract_entities(message)
        return Event(
            timestamp=timestamp,
            source=source,
            host=host,
            severity=_SEVERITY_BY_NAME[severity_name],
            event_type="SYSLOG",
            message=message,
            source_ip=src_ip,
            dest_ip=dst_ip,
            username=username,
            metadata=metadata,
        )
