"""Suspicious keyword — message mentions a watchlisted word.

Case-insensitive substring match.  Only the first keyword in watchlist
order is reported, so one line never produces a finding per keyword.
"""

from detector.models import Level
from detector.rules import Rule


class SuspiciousKeyword(Rule):
    id = "suspicious_keyword"
    name = "Suspicious Keywords Detection"
    severity = Level.MEDIUM

    def match(self, event, ctx):
        return ctx.watchlists.first_keyword(event.message) is not None

    def describe(self, event, ctx):
        keyword = ctx.watchlists.first_keyword(event.message) or "unknown"
        return (
            f"Suspicious keyword detected: {keyword}",
            f"Log entry contains suspicious keyword: {keyword}",
        )
