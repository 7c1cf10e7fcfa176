"""
widecache Global Constants

Centralized location for system-wide constants used across the library.
"""

from datetime import datetime, timezone

# Region used when a caller does not name one
DEFAULT_REGION = "Default"

# Storage record layout
ITEM_SUPER_COLUMN = "Item"
POLICY_SUPER_COLUMN = "Policy"

# Key limits
MAX_KEY_LENGTH = 250
REGION_NAME_PATTERN = r"^[A-Za-z0-9_]{1,48}$"


# Timestamp Functions
def get_current_timestamp() -> datetime:
    """Get current timestamp with UTC timezone.

    Returns:
        datetime: Current UTC timestamp

    Note: Use this function instead of a constant to get real-time timestamps.
    """
    return datetime.now(timezone.utc)


# Library Constants
APP_NAME = "widecache"
APP_VERSION = "0.1.0"
