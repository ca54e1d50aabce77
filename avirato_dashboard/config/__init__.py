"""Configuration package."""

from avirato_dashboard.config.logging import configure_logging, get_logger
from avirato_dashboard.config.settings import Settings, settings

__all__ = ["settings", "Settings", "configure_logging", "get_logger"]
