"""Scan workflow."""

from idwatch.scanning.service import ScanService, SourceOutcome

__all__ = ["ScanService", "SourceOutcome"]
