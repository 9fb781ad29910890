"""
Configuration management for the streaming client.

Loads settings from an optional JSON file and THOR_* environment variables
(.env supported) and exposes the typed values the core consumes.
"""

from thor_streamer.config.settings import StreamerSettings, load_settings  # noqa: F401

__all__ = ["StreamerSettings", "load_settings"]
