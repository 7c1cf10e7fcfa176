"""
Cache services.
"""

from .change_monitor_bridge import ChangeMonitorRegistry
from .expiring_cache import ExpiringCache

__all__ = ["ChangeMonitorRegistry", "ExpiringCache"]
