#!/usr/bin/env python3
"""Generate sample back office data.

Runs the back office scenario and exports every table:
- JSON files (default): one ``<table>.json`` per table plus ``*.jsonl``
  lifecycle event files
- Console: ``--console`` prints tables and events instead
- Kafka: ``--kafka-bootstrap`` publishes tables and events to topics
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from bookstore.config import BookstoreConfig, ScenarioConfig
from bookstore.logging import setup_logging
from bookstore.scenarios import BackOfficeScenario
from bookstore.sinks import ConsoleSink, JsonFileSink, KafkaSink

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate sample bookstore back office data")
    parser.add_argument("--members", type=int, default=50, help="Number of members (default: 50)")
    parser.add_argument("--books", type=int, default=120, help="Number of books (default: 120)")
    parser.add_argument("--orders", type=int, default=80, help="Number of orders (default: 80)")
    parser.add_argument("--days", type=int, default=60, help="Simulated days (default: 60)")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility (default: SEED env or 42)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for JSON output (default: OUTPUT_DIR env or ./output)",
    )
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    parser.add_argument("--console", action="store_true", help="Print to stdout instead of files")
    parser.add_argument(
        "--kafka-bootstrap",
        type=str,
        default=None,
        help="Publish to Kafka at these bootstrap servers instead of files",
    )
    parser.add_argument("--log-level", type=str, default=None, help="Log level (default: LOG_LEVEL env or INFO)")
    parser.add_argument("--log-format", choices=["standard", "json"], default="standard")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = BookstoreConfig.from_env()
    setup_logging(args.log_level or config.log_level, args.log_format)

    seed = args.seed if args.seed is not None else (config.seed if config.seed is not None else 42)
    scenario_config = ScenarioConfig(
        num_members=args.members,
        num_books=args.books,
        num_orders=args.orders,
        days=args.days,
    )

    if args.console:
        sink = ConsoleSink(pretty=args.pretty, max_records=5)
    elif args.kafka_bootstrap:
        sink = KafkaSink(replace(config.kafka, bootstrap_servers=args.kafka_bootstrap))
    else:
        output_dir = args.output_dir or config.output.json_output_dir
        sink = JsonFileSink(output_dir, pretty=args.pretty or config.output.pretty_json)

    scenario = BackOfficeScenario(
        config=scenario_config,
        seed=seed,
        loan_policy=config.loans,
        order_policy=config.orders,
        sink=sink,
        topic_prefix=config.output.topic_prefix,
    )
    store = scenario.generate()

    for name, table in store.tables().items():
        records = list(table)
        if isinstance(sink, KafkaSink):
            sink.write_batch(f"{config.output.topic_prefix}.{name}", records)
        else:
            sink.write_batch(name, records)
    sink.close()

    logger.info("Summary: %s", store.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
