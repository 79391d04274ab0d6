"""Timeline export."""

from petalsong.io.exporter import TimelineExporter

__all__ = ["TimelineExporter"]
