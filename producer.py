"""Synthetic log line generator.

Simulates a small estate writing web access logs, syslog and application
event logs, with configurable normal and hostile actor profiles.  Lines are
published as JSON records ({"source", "line_number", "line"}) — the format
detector.main consumes.

Usage:
    python producer.py
    python producer.py --normal 20 --brute-forcers 2 --scanners 1 --injectors 1
    python producer.py --eps 100 --topic raw-log-lines
"""

import argparse
import json
import random
import signal
import time
from dataclasses import dataclass, field
from datetime import datetime

from confluent_kafka import Producer
from confluent_kafka.admin import AdminClient, NewTopic

SOURCES = {
    "access_log": "/var/log/nginx/access.log",
    "syslog": "/var/log/syslog",
    "event_log": "/var/log/app/events.log",
}
PATHS = ["/", "/index.html", "/login", "/api/orders", "/static/app.js", "/health"]
BROWSERS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) Gecko/20100101 Firefox/128.0",
    "curl/8.4.0",
]
ATTACK_TOOLS = ["sqlmap/1.7.2#stable", "Nikto/2.5.0", "masscan/1.3"]
SQL_PAYLOADS = ["?id=1 UNION SELECT username,password FROM users", "?q=1;DROP TABLE users"]
XSS_PAYLOADS = ["?q=<script>alert(1)</script>", "?img=x onerror=alert(1)"]

running = True


def _shutdown(sig, frame):
    global running
    print("\nShutting down generator...")
    running = False


# ---------------------------------------------------------------------------
# Line builders
# ---------------------------------------------------------------------------

def access_log_line(ip, method, path, status, size, when, user="-",
                    referer="-", user_agent=None):
    """Combined Log Format when user_agent is given, Common otherwise."""
    ts = when.strftime("%d/%b/%Y:%H:%M:%S +0000")
    line = f'{ip} - {user} [{ts}] "{method} {path} HTTP/1.1" {status} {size}'
    if user_agent is not None:
        line += f' "{referer}" "{user_agent}"'
    return line


def syslog_line(priority, host, tag, message, when):
    """RFC 3164."""
    ts = f"{when.strftime('%b')} {when.day:>2} {when.strftime('%H:%M:%S')}"
    return f"<{priority}>{ts} {host} {tag}: {message}"


def event_log_line(level, message, when):
    """Generic 'date time LEVEL message' application log."""
    return f"{when.strftime('%Y-%m-%d %H:%M:%S')} {level} {message}"


# ---------------------------------------------------------------------------
# Actor profiles
# ---------------------------------------------------------------------------

@dataclass
class Actor:
    name: str
    ip: str
    role: str  # normal | brute_forcer | scanner | injector
    lines_per_min: float
    username: str = field(default="-")


def _public_ip():
    return f"{random.choice([45, 81, 103, 185, 198])}.{random.randint(0, 255)}." \
           f"{random.randint(0, 255)}.{random.randint(1, 254)}"


def _create_actors(n_normal, n_brute, n_scanners, n_injectors):
    """Build the actor pool. Each actor keeps one source IP."""
    actors = []
    for i in range(n_normal):
        actors.append(Actor(
            name=f"user_{i + 1:04d}", ip=f"192.168.1.{random.randint(2, 250)}",
            role="normal", lines_per_min=random.uniform(10, 60),
            username=f"user{i + 1}",
        ))
    for i in range(n_brute):
        actors.append(Actor(
            name=f"brute_{i + 1}", ip=_public_ip(), role="brute_forcer",
            lines_per_min=random.uniform(60, 200),
        ))
    for i in range(n_scanners):
        actors.append(Actor(
            name=f"scanner_{i + 1}", ip=_public_ip(), role="scanner",
            lines_per_min=random.uniform(100, 300),
        ))
    for i in range(n_injectors):
        actors.append(Actor(
            name=f"injector_{i + 1}", ip=_public_ip(), role="injector",
            lines_per_min=random.uniform(20, 80),
        ))
    return actors


def make_line(actor: Actor, when: datetime | None = None) -> tuple[str, str]:
    """One (format, line) for an actor based on their role."""
    when = when or datetime.now()

    if actor.role == "brute_forcer":
        target = random.choice(["admin", "root", "oracle", "test"])
        return "event_log", event_log_line(
            "WARN", f"Failed login for user {target} from {actor.ip}", when)

    if actor.role == "scanner":
        port = random.randint(1, 65535)
        return "syslog", syslog_line(
            38, "fw01", "kernel",
            f"Connection refused from {actor.ip} to 10.0.0.5 port {port}", when)

    if actor.role == "injector":
        payload = random.choice(SQL_PAYLOADS + XSS_PAYLOADS)
        return "access_log", access_log_line(
            actor.ip, "GET", "/search" + payload.replace(" ", "%20"),
            random.choice([200, 403, 500]), random.randint(200, 4000), when,
            user_agent=random.choice(ATTACK_TOOLS))

    # normal traffic: mostly web hits, some app events
    if random.random() < 0.8:
        return "access_log", access_log_line(
            actor.ip, random.choice(["GET", "GET", "POST"]), random.choice(PATHS),
            random.choice([200, 200, 200, 304, 404]), random.randint(100, 9000),
            when, user=actor.username, user_agent=random.choice(BROWSERS))
    return "event_log", event_log_line(
        "INFO", f"Session refreshed user={actor.username} from {actor.ip}", when)


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

def _ensure_topics(bootstrap_servers, topics, partitions=3, replication_factor=3):
    """Create whichever of the raw-line topics the cluster doesn't list yet."""
    admin = AdminClient({"bootstrap.servers": bootstrap_servers})
    existing = admin.list_topics(timeout=10).topics
    missing = [t for t in topics if t not in existing]
    if not missing:
        print(f"Topics already present: {', '.join(topics)}")
        return
    futures = admin.create_topics([
        NewTopic(t, num_partitions=partitions, replication_factor=replication_factor)
        for t in missing
    ])
    for topic, future in futures.items():
        future.result()
        print(f"Created topic '{topic}'")


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

def main():
    parser = argparse.ArgumentParser(description="Synthetic log line generator")
    parser.add_argument("--bootstrap-servers", default="localhost:9092")
    parser.add_argument("--topic", default="raw-log-lines")
    parser.add_argument("--normal", type=int, default=8)
    parser.add_argument("--brute-forcers", type=int, default=1)
    parser.add_argument("--scanners", type=int, default=1)
    parser.add_argument("--injectors", type=int, default=1)
    parser.add_argument("--eps", type=float, default=50, help="Target lines/sec")
    args = parser.parse_args()

    signal.signal(signal.SIGINT, _shutdown)   # Ctrl+C (local dev)
    signal.signal(signal.SIGTERM, _shutdown)  # docker stop / k8s pod termination

    actors = _create_actors(
        args.normal, args.brute_forcers, args.scanners, args.injectors,
    )
    weights = [a.lines_per_min for a in actors]

    print(f"Generating to topic '{args.topic}' at ~{args.eps} lines/sec")
    print(f"Actors: {len(actors)} total")
    for a in actors:
        print(f"  {a.name:<12s} {a.role:<13s} ~{a.lines_per_min:>6.0f} lpm  ip={a.ip}")

    _ensure_topics(args.bootstrap_servers, [args.topic])

    producer = Producer({
        "bootstrap.servers": args.bootstrap_servers,
        "acks": "all",
        "client.id": "log-line-generator",
    })

    count = 0
    line_numbers = {source: 0 for source in SOURCES.values()}
    delay = 1.0 / args.eps

    while running:
        actor = random.choices(actors, weights=weights, k=1)[0]
        fmt, line = make_line(actor)
        source = SOURCES[fmt]
        line_numbers[source] += 1

        producer.produce(
            topic=args.topic,
            key=source.encode(),
            value=json.dumps({
                "source": source,
                "line_number": line_numbers[source],
                "line": line,
            }),
        )
        producer.poll(0)

        count += 1
        if count % 500 == 0:
            print(f"  ... {count} lines produced")

        time.sleep(delay)

    producer.flush()
    print(f"Done. {count} lines produced.")


if __name__ == "__main__":
    main()
