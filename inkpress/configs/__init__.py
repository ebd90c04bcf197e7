from inkpress.configs.settings import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RECENT_LIMIT,
    MAX_PAGE_SIZE,
    MAX_RECENT_LIMIT,
    Settings,
    file_logger,
    settings,
)

__all__ = [
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_RECENT_LIMIT",
    "MAX_PAGE_SIZE",
    "MAX_RECENT_LIMIT",
    "Settings",
    "file_logger",
    "settings",
]
