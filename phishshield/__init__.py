"""PhishShield background scan orchestrator."""

__version__ = "1.0.0"
