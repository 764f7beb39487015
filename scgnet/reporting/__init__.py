"""Reporting utilities for scgnet."""

from .artifacts import write_manifest
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter

__all__ = ["write_manifest", "JsonlSink", "CsvSink", "PlotAdapter"]
