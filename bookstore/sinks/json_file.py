"""JSON file sink for exporting data to files."""

import json
from pathlib import Path
from typing import Any, TextIO

from bookstore.exceptions import SinkError
from bookstore.sinks.serialization import to_dict


class JsonFileSink:
    """Write entity snapshots to ``<entity>.json`` and events to ``<topic>.jsonl``."""

    def __init__(self, output_dir: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write JSON files.
        pretty : bool
            Pretty-print JSON output.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.pretty = pretty
        self._counts: dict[str, int] = {}
        self._streams: dict[str, TextIO] = {}

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write a batch of records to a JSON file."""
        file_path = self.output_dir / f"{entity_type}.json"
        data = [to_dict(record) for record in records]

        try:
            with open(file_path, "w", encoding="utf-8") as f:
                if self.pretty:
                    json.dump(data, f, indent=2, ensure_ascii=False, default=str)
                else:
                    json.dump(data, f, ensure_ascii=False, default=str)
        except OSError as exc:
            raise SinkError(f"Cannot write {file_path}: {exc}") from exc

        self._counts[entity_type] = len(records)

    def send(self, topic: str, record: Any, key: str | None = None) -> None:
        """Append one record to the topic's JSON Lines file."""
        stream = self._streams.get(topic)
        if stream is None:
            # dev.bookstore.loan-events -> dev_bookstore_loan-events.jsonl
            file_path = self.output_dir / (topic.replace(".", "_") + ".jsonl")
            try:
                stream = open(file_path, "a", encoding="utf-8")
            except OSError as exc:
                raise SinkError(f"Cannot open {file_path}: {exc}") from exc
            self._streams[topic] = stream
        stream.write(json.dumps(to_dict(record), ensure_ascii=False, default=str) + "\n")
        self._counts[topic] = self._counts.get(topic, 0) + 1

    def close(self) -> None:
        """Close event files and print summary."""
        for stream in self._streams.values():
            stream.close()
        self._streams.clear()
        print(f"JSON files written to: {self.output_dir}")
        for entity_type, count in self._counts.items():
            print(f"  {entity_type}: {count} records")
