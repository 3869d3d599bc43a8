"""URL scanning: cache lookups, remote classification and result fan-out."""

from .dispatcher import ScanDispatcher

__all__ = ["ScanDispatcher"]
