"""Library and bookstore back office: lifecycle core, store and services."""

__version__ = "0.1.0"
