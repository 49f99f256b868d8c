"""Output sinks for exporting entities and lifecycle events."""

from bookstore.sinks.console import ConsoleSink
from bookstore.sinks.json_file import JsonFileSink
from bookstore.sinks.kafka import KafkaSink

__all__ = ["ConsoleSink", "JsonFileSink", "KafkaSink"]
