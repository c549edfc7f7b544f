"""Web server access logs — Combined and Common Log Format.

    203.0.113.9 - alice [10/Oct/2024:13:55:36 -0700] "GET /a.gif HTTP/1.1" 404 2326 "http://ref/" "curl/8.0"

Combined is Common plus referer and user-agent, so it is tried first.
Severity comes from the HTTP status: 4xx → WARN, 5xx → ERROR, else INFO.
The message carries the percent-decoded path so payload rules see what the
server saw; metadata keeps the raw path.
"""

import re
from urllib.parse import unquote

from detector.formats import LineParser, parse_timestamp
from detector.models import Event, Severity

_PREFIX = (
    r'(\S+) (\S+) (\S+) \[([^\]]+)\] "(\S+) ([^"]*)" (\d{3}) (\d+|-)'
)

_TIMESTAMP_FORMAT = "%d/%b/%Y:%H:%M:%S %z"


def status_severity(status: int) -> Severity:
    if 400 <= status < 500:
        return Severity.WARN
    if status >= 500:
        return Severity.ERROR
    return Severity.INFO


class AccessLogParser(LineParser):
    name = "access_log"
    patterns = [
        ("combined", re.compile(_PREFIX + r' "([^"]*)" "([^"]*)"')),
        ("common", re.compile(_PREFIX)),
    ]

    def build(self, variant, match, source, line_number):
        client_ip, ident, auth_user, raw_ts, method, request, status, size = (
            match.group(1, 2, 3, 4, 5, 6, 7, 8)
        )
        # request is "path protocol" — protocol may be missing on HTTP/0.9
        path, _, protocol = request.partition(" ")

        metadata = {
            "format": variant,
            "method": method,
            "path": path,
            "protocol": protocol,
            "status": int(status),
            "size": size,
            "ident": ident,
            "line_number": line_number,
        }
        if variant == "combined":
            metadata["referer"] = match.group(9)
            metadata["user_agent"] = match.group(10)

        return Event(
            timestamp=parse_timestamp(raw_ts, _TIMESTAMP_FORMAT),
            source=source,
            host="apache",
            severity=status_severity(int(status)),
            event_type="HTTP_REQUEST",
            message=f"{method} {unquote(path)} - {status} {size}",
            source_ip=client_ip,
            username=auth_user if auth_user != "-" else None,
            metadata=metadata,
        )
