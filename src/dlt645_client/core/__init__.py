"""Core library functionality."""

from dlt645_client.core.config import RS485Config, Settings, TransportType, setup_logging

__all__ = [
    "RS485Config",
    "Settings",
    "TransportType",
    "setup_logging",
]
