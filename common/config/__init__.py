"""
Configuration dataclasses and constants.
"""

from common.config.config import (
    AdminConfig,
    Config,
    DevnetConfig,
    DowntimeTestConfig,
    config_from_dict,
    load_config,
)
from common.config.constants import ServiceType

__all__ = [
    # config.py
    "AdminConfig",
    "Config",
    "DevnetConfig",
    "DowntimeTestConfig",
    "config_from_dict",
    "load_config",
    # constants.py
    "ServiceType",
]
