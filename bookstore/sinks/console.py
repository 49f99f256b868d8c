"""Console sink for debugging and development."""

import json
from typing import Any

from bookstore.sinks.serialization import to_dict


class ConsoleSink:
    """Output records and events to stdout."""

    def __init__(self, pretty: bool = True, max_records: int | None = None) -> None:
        """Initialize console sink.

        Parameters
        ----------
        pretty : bool
            Pretty-print JSON output.
        max_records : int | None
            Maximum records to print per batch (None for all).
        """
        self.pretty = pretty
        self.max_records = max_records
        self._counts: dict[str, int] = {}

    def _dumps(self, record: Any) -> str:
        indent = 2 if self.pretty else None
        return json.dumps(to_dict(record), indent=indent, ensure_ascii=False, default=str)

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write a batch of records to console."""
        print(f"\n{'=' * 60}")
        print(f"Entity: {entity_type} ({len(records)} records)")
        print("=" * 60)

        display_records = records[: self.max_records] if self.max_records else records
        for record in display_records:
            print(self._dumps(record))

        if self.max_records and len(records) > self.max_records:
            print(f"... and {len(records) - self.max_records} more records")

        self._counts[entity_type] = self._counts.get(entity_type, 0) + len(records)

    def send(self, topic: str, record: Any, key: str | None = None) -> None:
        """Print a single event line prefixed with its topic."""
        prefix = f"[{topic}]" if key is None else f"[{topic} key={key}]"
        print(f"{prefix} {self._dumps(record)}")
        self._counts[topic] = self._counts.get(topic, 0) + 1

    def close(self) -> None:
        """Print summary and close."""
        print(f"\n{'=' * 60}")
        print("Console Sink Summary")
        print("=" * 60)
        for entity_type, count in self._counts.items():
            print(f"  {entity_type}: {count} records")
