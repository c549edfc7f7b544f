"""Watchlists consulted by the stateless rules.

Three insertion-ordered sets behind one lock: blacklisted IPs, suspicious
keywords, suspicious user-agent substrings.  Readers get snapshots, so an
admin edit never races an in-flight evaluation.
"""

import logging
import threading

logger = logging.getLogger(__name__)

DEFAULT_BLACKLISTED_IPS = (
    "192.168.1.100", "10.0.0.50", "172.16.0.100",
    "203.0.113.1", "198.51.100.1", "192.0.2.1",
)

DEFAULT_SUSPICIOUS_KEYWORDS = (
    "failed", "denied", "unauthorized", "attack", "malware", "virus",
    "hack", "breach", "intrusion", "exploit", "vulnerability",
    "injection", "payload", "backdoor", "trojan", "rootkit",
    "phishing", "spam", "botnet", "ddos", "ransomware",
)

DEFAULT_SUSPICIOUS_USER_AGENTS = (
    "sqlmap", "nikto", "nmap", "masscan", "zap",
    "burp", "w3af", "nessus", "openvas", "metasploit",
)


class Watchlists:

    def __init__(self, blacklisted_ips=(), suspicious_keywords=(),
                 suspicious_user_agents=()):
        self._lock = threading.Lock()
        # dicts as ordered sets: "first matching keyword" must be stable
        self._ips = dict.fromkeys(blacklisted_ips)
        self._keywords = dict.fromkeys(k.lower() for k in suspicious_keywords)
        self._user_agents = dict.fromkeys(u.lower() for u in suspicious_user_agents)

    @classmethod
    def with_defaults(cls) -> "Watchlists":
        return cls(DEFAULT_BLACKLISTED_IPS, DEFAULT_SUSPICIOUS_KEYWORDS,
                   DEFAULT_SUSPICIOUS_USER_AGENTS)

    # ------------------------------------------------------------------
    # Admin mutations
    # ------------------------------------------------------------------

    def add_blacklisted_ip(self, ip: str) -> None:
        with self._lock:
            self._ips[ip.strip()] = None
        logger.info("Added IP to blacklist: %s", ip)

    def remove_blacklisted_ip(self, ip: str) -> None:
        with self._lock:
            self._ips.pop(ip.strip(), None)
        logger.info("Removed IP from blacklist: %s", ip)

    def add_suspicious_keyword(self, keyword: str) -> None:
        with self._lock:
            self._keywords[keyword.lower()] = None
        logger.info("Added suspicious keyword: %s", keyword)

    def add_suspicious_user_agent(self, user_agent: str) -> None:
        with self._lock:
            self._user_agents[user_agent.lower()] = None
        logger.info("Added suspicious user agent: %s", user_agent)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def is_blacklisted(self, ip: str | None) -> bool:
        if not ip:
            return False
        with self._lock:
            return ip in self._ips

    def first_keyword(self, text: str | None) -> str | None:
        """First watchlisted keyword (insertion order) contained in text."""
        if not text:
            return None
        lowered = text.lower()
        with self._lock:
            keywords = list(self._keywords)
        for keyword in keywords:
            if keyword in lowered:
                return keyword
        return None

    def first_user_agent(self, user_agent: str | None) -> str | None:
        if not user_agent:
            return None
        lowered = str(user_agent).lower()
        with self._lock:
            needles = list(self._user_agents)
        for needle in needles:
            if needle in lowered:
                return needle
        return None

    def sizes(self) -> dict:
        with self._lock:
            return {
                "blacklisted_ips": len(self._ips),
                "suspicious_keywords": len(self._keywords),
                "suspicious_user_agents": len(self._user_agents),
            }
