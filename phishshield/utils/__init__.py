"""Shared helpers for PhishShield."""

from .clock import Clock, SystemClock
from .urls import cache_key, extract_hostname, is_scannable_url

__all__ = ["Clock", "SystemClock", "cache_key", "extract_hostname", "is_scannable_url"]
