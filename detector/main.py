"""Detection consumer — reads raw log lines, runs the pipeline, produces alerts.

Consumes JSON line records from the raw-log-lines topic:

    {"source": "/var/log/auth.log", "line_number": 42, "line": "<34>Oct ..."}

parses and evaluates each one, and publishes delivered alerts to the alerts
topic.  One consumer instance per partition (scale via consumer group).

Usage:
    python -m detector.main
    python -m detector.main --config config/detector.yml --metrics-port 9108
    python -m detector.main --format syslog --allow-local-ips
"""

import argparse
import json
import logging
import signal
import sys

from confluent_kafka import Consumer, KafkaError, KafkaException, Producer
from confluent_kafka.admin import AdminClient, NewTopic
from prometheus_client import start_http_server

from detector.config import load_settings
from detector.pipeline import Pipeline
from detector.sinks import KafkaSink, LogSink, MetricsSink

running = True


def _shutdown(sig, frame):
    global running
    print("\nShutting down detector...")
    running = False


def _ensure_topic(bootstrap_servers, topic, partitions, replication_factor):
    """Create the alerts topic; an existing topic is left as it is."""
    admin = AdminClient({"bootstrap.servers": bootstrap_servers})
    new_topic = NewTopic(topic, num_partitions=partitions,
                         replication_factor=replication_factor)
    try:
        admin.create_topics([new_topic])[topic].result()
    except KafkaException as e:
        if e.args[0].code() != KafkaError.TOPIC_ALREADY_EXISTS:
            raise
        print(f"Alerts topic '{topic}' already exists")
    else:
        print(f"Created alerts topic '{topic}' ({partitions} partitions, rf={replication_factor})")


def decode_record(raw: bytes) -> tuple[str, str, int] | None:
    """Kafka value → (line, source, line_number), or None if malformed."""
    try:
        record = json.loads(raw.decode("utf-8"))
        return str(record["line"]), str(record.get("source", "kafka")), int(
            record.get("line_number", 0)
        )
    except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError):
        return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Log threat detection consumer")
    parser.add_argument("--bootstrap-servers", default="localhost:9092")
    parser.add_argument("--input-topic", default="raw-log-lines")
    parser.add_argument("--output-topic", default="alerts")
    parser.add_argument("--group-id", default="log-detector")
    parser.add_argument("--partitions", type=int, default=3,
                        help="Partitions for a newly created alerts topic")
    parser.add_argument("--replication-factor", type=int, default=3)
    parser.add_argument("--config", default=None,
                        help="YAML settings file (watchlists, dispatch policy)")
    parser.add_argument("--format", default=None,
                        choices=["access_log", "syslog", "event_log"],
                        help="Pin one parser for every source")
    parser.add_argument("--allow-local-ips", action="store_true",
                        help="Deliver HIGH alerts for private source addresses")
    parser.add_argument("--metrics-port", type=int, default=None)
    parser.add_argument("--log-level", default="INFO")
    return parser


def main():
    args = build_parser().parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    settings = load_settings(args.config)
    if args.allow_local_ips:
        settings.allow_local_ips = True

    _ensure_topic(args.bootstrap_servers, args.output_topic,
                  args.partitions, args.replication_factor)

    consumer = Consumer({
        "bootstrap.servers": args.bootstrap_servers,
        "group.id": args.group_id,
        "auto.offset.reset": "earliest",
        "enable.auto.commit": True,
    })
    consumer.subscribe([args.input_topic])

    producer = Producer({"bootstrap.servers": args.bootstrap_servers})

    pipeline = Pipeline.from_settings(settings)
    pipeline.add_sink(KafkaSink(producer, args.output_topic))
    pipeline.add_sink(LogSink())
    if args.metrics_port is not None:
        pipeline.add_sink(MetricsSink())
        start_http_server(args.metrics_port)
        print(f"Prometheus metrics server started on :{args.metrics_port}")

    consumed = 0
    alerts_produced = 0
    pinned = set()

    print(f"Detector started  input={args.input_topic}  "
          f"output={args.output_topic}  rules={len(pipeline.engine.rules)}")

    try:
        while running:
            msg = consumer.poll(1.0)
            if msg is None:
                continue
            if msg.error():
                if msg.error().code() == KafkaError._PARTITION_EOF:
                    continue
                print(f"Consumer error: {msg.error()}", file=sys.stderr)
                continue

            decoded = decode_record(msg.value())
            consumed += 1
            if decoded is None:
                continue
            line, source, line_number = decoded
            if args.format and source not in pinned:
                pipeline.pin_parser(source, args.format)
                pinned.add(source)

            alerts_produced += len(pipeline.ingest(line, source, line_number))

            # Batch flush every 1000 lines (producer buffers internally)
            if consumed % 1000 == 0:
                producer.flush()

            if consumed % 500 == 0:
                print(f"  ... {consumed} lines consumed, {alerts_produced} alerts produced")
    finally:
        producer.flush()
        consumer.close()
        print(f"Done. {consumed} lines consumed, {alerts_produced} alerts produced.")


if __name__ == "__main__":
    main()
