"""TLE ingest: multi-source element-set polling, persistence and batch propagation."""

__version__ = "0.3"
