"""Timestamped event logs — Windows-style exports and generic app logs.

Tried in this order:

    detailed  2024-10-04 10:30:15 Information Microsoft-Windows-Security-Auditing 4625 Logon Audit Failure An account failed to log on
    standard  2024-10-04 10:30:15 Error Service-Control-Manager 7000 None System Timeout
    generic   2024-10-04 10:30:15 ERROR Authentication failed for user admin

A standard line whose message has more than one word also fits the
detailed layout and is read as such (keywords = first message word).
The generic layout only accepts a known level word in the third column,
otherwise any "date time word ..." line would qualify.
"""

import re

from detector.formats import (
    LineParser, extract_entities, normalize_level, parse_timestamp,
)
from detector.models import Event

_DATE_TIME = r"(\d{4}-\d{2}-\d{2})\s+(\d{2}:\d{2}:\d{2})"
_LEVEL_WORDS = (
    r"FATAL|CRITICAL|CRIT|EMERGENCY|ALERT|ERROR|ERR|WARN|WARNING|"
    r"INFO|INFORMATION|NOTICE|DEBUG|TRACE|VERBOSE"
)
_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class EventLogParser(LineParser):
    name = "event_log"
    patterns = [
        ("detailed", re.compile(
            _DATE_TIME + r"\s+(\w+)\s+(\S+)\s+(\d{1,10})\s+(\S+)\s+(\S+)\s+(\S+)\s+(.*)"
        )),
        ("standard", re.compile(
            _DATE_TIME + r"\s+(\w+)\s+(\S+)\s+(\d{1,10})\s+(\S+)\s+(\S+)\s+(.*)"
        )),
        ("generic", re.compile(
            _DATE_TIME + r"(?:[.,]\d+)?\s+\[?(" + _LEVEL_WORDS + r")\]?:?\s+(.*)",
            re.IGNORECASE,
        )),
    ]

    def build(self, variant, match, source, line_number):
        date, time_of_day, level = match.group(1, 2, 3)
        metadata = {"format": variant, "level": level, "line_number": line_number}

        if variant == "generic":
            host = "localhost"
            message = match.group(4)
        else:
            host = "windows"
            metadata.update({
                "event_source": match.group(4),
                "event_id": int(match.group(5)),
                "task": match.group(6),
                "category": match.group(7),
            })
            if variant == "detailed":
                metadata["keywords"] = match.group(8)
                message = match.group(9)
            else:
                message = match.group(8)

        src_ip, dst_ip, username = extract_entities(message)
        return Event(
            timestamp=parse_timestamp(f"{date} {time_of_day}", _TIMESTAMP_FORMAT),
            source=source,
            host=host,
            severity=normalize_level(level),
            event_type="WINDOWS_EVENT" if host == "windows" else "APP_EVENT",
            message=message,
            source_ip=src_ip,
            dest_ip=dst_ip,
            username=username,
            metadata=metadata,
        )
