"""
Configuration module for vm-preflight.

Provides the override store consulted for skip/warn keys and check targets.
"""

from vm_preflight.config import keys
from vm_preflight.config.settings import PreflightConfig, default_config_path

__all__ = [
    "keys",
    "PreflightConfig",
    "default_config_path",
]
