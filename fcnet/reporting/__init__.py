"""Reporting utilities for fcnet."""

from .artifacts import write_manifest
from .metrics import ConsoleReporter, CsvSink, JsonlSink
from .plots import PlotAdapter

__all__ = ["write_manifest", "ConsoleReporter", "CsvSink", "JsonlSink", "PlotAdapter"]
