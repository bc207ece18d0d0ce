"""Core infrastructure: config, logging, and id utilities."""

from core.config import ConfigValidationError, Settings, load_config
from core.ids import cache_key, generate_contact_id, namespace_prefix
from core.logging import configure_logging

__all__ = [
    "ConfigValidationError",
    "Settings",
    "load_config",
    "cache_key",
    "configure_logging",
    "generate_contact_id",
    "namespace_prefix",
]
