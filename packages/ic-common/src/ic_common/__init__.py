"""
ic-common: Shared library for the intent ensemble.

Provides data models, configuration management, structured logging and
Prometheus metrics helpers used by the ensemble service.
"""

from ic_common.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
