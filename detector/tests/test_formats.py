"""Tests for the line parsers — fixtures per format, priority, fallbacks."""

from datetime import datetime, timedelta

import pytest

from detector.formats import extract_entities, normalize_level
from detector.formats.access_log import AccessLogParser
from detector.formats.event_log import EventLogParser
from detector.formats.syslog import SyslogParser, decode_priority
from detector.models import Severity

COMBINED = (
    '203.0.113.9 - alice [10/Oct/2024:13:55:36 -0700] "GET /admin.php HTTP/1.1" '
    '404 2326 "http://example.com/start" "sqlmap/1.7.2#stable"'
)
COMMON = '198.51.100.7 - - [10/Oct/2024:13:55:36 +0000] "POST /login HTTP/1.1" 500 -'
RFC3164 = "<34>Oct 11 22:14:15 mymachine su: 'su root' failed for lonvick on /dev/pts/8"
RFC5424 = (
    '<165>1 2003-10-11T22:14:15.003Z mymachine.example.com evntslog - ID47 '
    '[exampleSDID@32473 iut="3" eventSource="Application"] An application event log entry'
)
GENERIC = "2024-10-04 10:30:15 ERROR Authentication failed for user admin"
WINDOWS_DETAILED = (
    "2024-10-04 10:30:15 Information Microsoft-Windows-Security-Auditing 4625 "
    "Logon Audit Failure An account failed to log on"
)
WINDOWS_STANDARD = "2024-10-04 10:30:15 Error Service-Control-Manager 7000 None System Timeout"

BLANKS = ["", "   ", "\t", "\n", " \r\n"]
ALL_PARSERS = [AccessLogParser(), SyslogParser(), EventLogParser()]


def _close_to_now(ts):
    return abs(datetime.now() - ts) < timedelta(seconds=5)


# ---------------------------------------------------------------------------
# Blank / malformed input
# ---------------------------------------------------------------------------

class TestBlankLines:
    @pytest.mark.parametrize("parser", ALL_PARSERS, ids=lambda p: p.name)
    @pytest.mark.parametrize("line", BLANKS)
    def test_blank_lines_parse_to_none(self, parser, line):
        assert parser.parse(line, "test", 1) is None
        assert not parser.can_parse(line)

    @pytest.mark.parametrize("parser", ALL_PARSERS, ids=lambda p: p.name)
    def test_none_line(self, parser):
        assert parser.parse(None, "test", 1) is None

    @pytest.mark.parametrize("parser", ALL_PARSERS, ids=lambda p: p.name)
    def test_garbage_parses_to_none(self, parser):
        assert parser.parse("this is not a log line at all", "test", 1) is None


class TestOversizedNumbers:
    """Numeric fields longer than Python's int() digit limit must be rejected
    by the grammar, not blow up in build()."""

    HUGE = "9" * 5000

    def test_syslog_priority(self):
        parser = SyslogParser()
        assert parser.parse(f"<{self.HUGE}>Oct 11 22:14:15 host app: hi", "s", 1) is None
        assert parser.parse(
            f"<{self.HUGE}>1 2024-10-04T10:30:15Z host app 1 ID1 - hi", "s", 1) is None

    def test_syslog_version(self):
        line = f"<13>{self.HUGE} 2024-10-04T10:30:15Z host app 1 ID1 - hi"
        assert SyslogParser().parse(line, "s", 1) is None

    def test_access_log_status(self):
        line = f'1.2.3.4 - - [10/Oct/2024:13:55:36 +0000] "GET / HTTP/1.1" {self.HUGE} 1'
        assert AccessLogParser().parse(line, "a", 1) is None

    def test_event_log_event_id(self):
        line = f"2024-10-04 10:30:15 Error Service-Control-Manager {self.HUGE} None System Timeout"
        event = EventLogParser().parse(line, "e", 1)
        # still a valid "date time LEVEL message" line, but no event id is read
        assert event.metadata["format"] == "generic"
        assert "event_id" not in event.metadata


# ---------------------------------------------------------------------------
# Access log
# ---------------------------------------------------------------------------

class TestAccessLog:
    def setup_method(self):
        self.parser = AccessLogParser()

    def test_combined_404_is_warn(self):
        event = self.parser.parse(COMBINED, "access.log", 7)
        assert event.severity == Severity.WARN
        assert event.severity == "WARN"
        assert event.host == "apache"
        assert event.event_type == "HTTP_REQUEST"
        assert event.source == "access.log"
        assert event.source_ip == "203.0.113.9"
        assert event.username == "alice"
        assert event.message == "GET /admin.php - 404 2326"

    def test_combined_metadata(self):
        md = self.parser.parse(COMBINED, "access.log", 7).metadata
        assert md["format"] == "combined"
        assert md["method"] == "GET"
        assert md["path"] == "/admin.php"
        assert md["protocol"] == "HTTP/1.1"
        assert md["status"] == 404
        assert md["referer"] == "http://example.com/start"
        assert md["user_agent"] == "sqlmap/1.7.2#stable"
        assert md["line_number"] == 7

    def test_combined_timestamp_keeps_logged_wall_clock(self):
        event = self.parser.parse(COMBINED, "access.log", 1)
        assert (event.timestamp.year, event.timestamp.month, event.timestamp.day) == (2024, 10, 10)
        assert event.timestamp.hour == 13

    def test_common_500_is_error(self):
        event = self.parser.parse(COMMON, "access.log", 1)
        assert event.severity == Severity.ERROR
        assert event.username is None
        assert event.metadata["format"] == "common"
        assert "user_agent" not in event.metadata
        assert event.message == "POST /login - 500 -"

    @pytest.mark.parametrize("status,expected", [
        (200, Severity.INFO), (301, Severity.INFO), (399, Severity.INFO),
        (400, Severity.WARN), (499, Severity.WARN),
        (500, Severity.ERROR), (503, Severity.ERROR),
    ])
    def test_status_bucketing(self, status, expected):
        line = f'1.2.3.4 - - [10/Oct/2024:13:55:36 +0000] "GET / HTTP/1.1" {status} 1'
        assert self.parser.parse(line, "a", 1).severity == expected

    def test_bad_timestamp_falls_back_to_now(self):
        line = '1.2.3.4 - - [99/Foo/2024:99:99:99 +0000] "GET / HTTP/1.1" 200 1'
        event = self.parser.parse(line, "a", 1)
        assert event is not None
        assert _close_to_now(event.timestamp)

    def test_message_path_is_percent_decoded(self):
        line = ('1.2.3.4 - - [10/Oct/2024:13:55:36 +0000] '
                '"GET /q?id=1%20UNION%20SELECT%201 HTTP/1.1" 200 1')
        event = self.parser.parse(line, "a", 1)
        assert "UNION SELECT" in event.message
        assert event.metadata["path"] == "/q?id=1%20UNION%20SELECT%201"

    def test_each_event_gets_a_unique_id(self):
        a = self.parser.parse(COMMON, "a", 1)
        b = self.parser.parse(COMMON, "a", 1)
        assert a.id != b.id


# ---------------------------------------------------------------------------
# Syslog
# ---------------------------------------------------------------------------

class TestSyslog:
    def setup_method(self):
        self.parser = SyslogParser()

    def test_rfc3164(self):
        event = self.parser.parse(RFC3164, "syslog", 3)
        # <34> → facility 4 (auth), severity 2 (critical)
        assert event.severity == Severity.CRITICAL
        assert event.host == "mymachine"
        assert event.event_type == "SYSLOG"
        assert event.message == "'su root' failed for lonvick on /dev/pts/8"
        assert event.metadata["facility"] == 4
        assert event.metadata["severity_code"] == 2
        assert event.metadata["severity_name"] == "CRITICAL"
        assert event.metadata["tag"] == "su"
        assert event.metadata["format"] == "rfc3164"

    def test_rfc3164_assumes_current_year(self):
        event = self.parser.parse(RFC3164, "syslog", 3)
        assert event.timestamp.year == datetime.now().year
        assert (event.timestamp.month, event.timestamp.day) == (10, 11)
        assert event.timestamp.hour == 22

    def test_rfc3164_single_digit_day(self):
        event = self.parser.parse("<13>Oct  4 10:30:15 web01 app: hello", "s", 1)
        assert event.timestamp.day == 4
        assert event.severity == Severity.INFO  # 13 % 8 = 5 NOTICE

    def test_rfc5424(self):
        event = self.parser.parse(RFC5424, "syslog", 1)
        # <165> → facility 20, severity 5 (notice)
        assert event.severity == Severity.INFO
        assert event.host == "mymachine.example.com"
        assert event.message == "An application event log entry"
        md = event.metadata
        assert md["facility"] == 20
        assert md["severity_name"] == "NOTICE"
        assert md["app_name"] == "evntslog"
        assert md["msg_id"] == "ID47"
        assert md["structured_data"].startswith("[exampleSDID@32473")
        assert md["format"] == "rfc5424"
        assert (event.timestamp.year, event.timestamp.hour) == (2003, 22)

    def test_rfc5424_nil_structured_data(self):
        line = "<11>1 2024-10-04T10:30:15Z host app 123 ID1 - disk failure"
        event = self.parser.parse(line, "s", 1)
        assert event.severity == Severity.ERROR
        assert event.metadata["structured_data"] == "-"
        assert event.message == "disk failure"

    def test_rfc5424_bad_timestamp_falls_back_to_now(self):
        line = "<11>1 not-a-timestamp host app 123 ID1 - disk failure"
        event = self.parser.parse(line, "s", 1)
        assert _close_to_now(event.timestamp)

    def test_entities_extracted_from_message(self):
        line = ("<38>Oct 11 02:14:15 gw sshd[811]: Failed password for root "
                "from 203.0.113.50 port 4242 ssh2")
        event = self.parser.parse(line, "auth.log", 1)
        assert event.source_ip == "203.0.113.50"
        assert event.username == "root"

    @pytest.mark.parametrize("priority,expected", [
        (0, (0, 0, "EMERGENCY")),
        (7, (0, 7, "DEBUG")),
        (34, (4, 2, "CRITICAL")),
        (165, (20, 5, "NOTICE")),
        (191, (23, 7, "DEBUG")),
    ])
    def test_decode_priority(self, priority, expected):
        assert decode_priority(priority) == expected


# ---------------------------------------------------------------------------
# Event log
# ---------------------------------------------------------------------------

class TestEventLog:
    def setup_method(self):
        self.parser = EventLogParser()

    def test_generic_error_line(self):
        event = self.parser.parse(GENERIC, "app.log", 1)
        assert event.severity == "ERROR"
        assert event.message == "Authentication failed for user admin"
        assert event.username == "admin"
        assert event.host == "localhost"
        assert event.metadata["format"] == "generic"
        assert event.timestamp == datetime(2024, 10, 4, 10, 30, 15)

    def test_windows_detailed(self):
        event = self.parser.parse(WINDOWS_DETAILED, "security.evtx.txt", 1)
        assert event.host == "windows"
        assert event.event_type == "WINDOWS_EVENT"
        assert event.severity == Severity.INFO
        md = event.metadata
        assert md["format"] == "detailed"
        assert md["event_id"] == 4625
        assert md["event_source"] == "Microsoft-Windows-Security-Auditing"
        assert md["keywords"] == "Failure"
        assert event.message == "An account failed to log on"

    def test_windows_standard(self):
        event = self.parser.parse(WINDOWS_STANDARD, "system.txt", 1)
        assert event.metadata["format"] == "standard"
        assert event.metadata["event_id"] == 7000
        assert event.severity == Severity.ERROR
        assert event.message == "Timeout"

    def test_generic_requires_known_level_word(self):
        assert not self.parser.can_parse("2024-10-04 10:30:15 Server started ok")

    @pytest.mark.parametrize("level,expected", [
        ("FATAL", Severity.CRITICAL),
        ("warning", Severity.WARN),
        ("[INFO]", Severity.INFO),
        ("DEBUG", Severity.DEBUG),
    ])
    def test_generic_levels(self, level, expected):
        event = self.parser.parse(f"2024-10-04 10:30:15 {level} something happened", "a", 1)
        assert event.severity == expected

    def test_fractional_seconds(self):
        event = self.parser.parse("2024-10-04 10:30:15,123 WARN slow query", "a", 1)
        assert event.severity == Severity.WARN
        assert event.message == "slow query"

    def test_impossible_date_falls_back_to_now(self):
        event = self.parser.parse("2024-13-45 10:30:15 ERROR boom", "a", 1)
        assert event is not None
        assert _close_to_now(event.timestamp)

    def test_ip_extraction(self):
        event = self.parser.parse(
            "2024-10-04 10:30:15 WARN Failed login for user bob from 198.51.100.4 "
            "to 10.0.0.5", "a", 1)
        assert event.source_ip == "198.51.100.4"
        assert event.dest_ip == "10.0.0.5"
        assert event.username == "bob"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    def test_extract_entities_skips_invalid_octets(self):
        src, dst, user = extract_entities("from 999.1.1.1 and 10.0.0.1")
        assert src == "10.0.0.1"
        assert dst is None
        assert user is None

    def test_extract_entities_key_value_username_wins(self):
        _, _, user = extract_entities("login ok username=carol for user dave")
        assert user == "carol"

    def test_extract_entities_empty(self):
        assert extract_entities("") == (None, None, None)

    def test_normalize_unknown_level(self):
        assert normalize_level("SHOUTY") == Severity.UNKNOWN
        assert normalize_level(None) == Severity.UNKNOWN
