"""Cerebral Voice - voice-driven multi-agent build assistant."""

__version__ = "1.0.0"
