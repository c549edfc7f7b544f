"""Injection payloads in the message — SQL injection and XSS.

Plain substring checks against a fixed list; cheap enough to run on every
line and good at catching scanners that don't bother encoding payloads.
"""

from detector.models import Level
from detector.rules import Rule, message_of

SQL_PATTERNS = ("union select", "drop table", "insert into", "delete from")
XSS_PATTERNS = ("<script>", "javascript:", "onload=", "onerror=")


class SqlInjection(Rule):
    id = "sql_injection"
    name = "SQL Injection Detection"
    severity = Level.HIGH

    def match(self, event, ctx):
        message = message_of(event)
        return any(p in message for p in SQL_PATTERNS)

    def describe(self, event, ctx):
        return (
            "Potential SQL injection attempt detected",
            f"Log entry contains SQL injection patterns: {event.message}",
        )


class XssAttack(Rule):
    id = "xss_attack"
    name = "XSS Attack Detection"
    severity = Level.HIGH

    def match(self, event, ctx):
        message = message_of(event)
        return any(p in message for p in XSS_PATTERNS)

    def describe(self, event, ctx):
        return (
            "Potential XSS attack detected",
            f"Log entry contains XSS attack patterns: {event.message}",
        )
