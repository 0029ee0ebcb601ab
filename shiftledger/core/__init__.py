"""Core - configuration and logging."""

from shiftledger.core.config import Settings, get_engine_url, get_settings
from shiftledger.core.logging import configure_logging
