"""Format registry — picks a parser for a stream from a handful of sample lines."""

import logging
import threading

from detector.formats import LineParser, default_parsers

logger = logging.getLogger(__name__)


class FormatRegistry:

    def __init__(self, parsers: list[LineParser] | None = None):
        self._parsers: list[LineParser] = (
            list(parsers) if parsers is not None else default_parsers()
        )
        self._lock = threading.Lock()

    @property
    def parsers(self) -> list[LineParser]:
        return list(self._parsers)

    def register(self, parser: LineParser) -> None:
        """Append a parser; it is consulted after every existing one."""
        with self._lock:
            # copy-on-write so concurrent detect() calls see a stable list
            self._parsers = self._parsers + [parser]
        logger.info("Registered parser %s", parser.name)

    def get(self, name: str) -> LineParser | None:
        for parser in self._parsers:
            if parser.name == name:
                return parser
        return None

    def detect(self, sample_lines) -> LineParser | None:
        """Return the first parser (registration order) accepting >50% of samples.

        No scoring beyond the threshold: an earlier parser at 51% beats a
        later one at 100%.
        """
        samples = list(sample_lines or [])
        if not samples:
            return None

        for parser in self._parsers:
            accepted = sum(1 for line in samples if parser.can_parse(line))
            if accepted * 2 > len(samples):
                logger.debug("Detected format %s (%d/%d samples)",
                             parser.name, accepted, len(samples))
                return parser
        return None

    def parser_for_line(self, line: str) -> LineParser | None:
        """Single-line fallback for streams nobody detected or pinned."""
        for parser in self._parsers:
            if parser.can_parse(line):
                return parser
        return None
