"""
Exceptions raised by the cache backend.

Runtime store failures never surface as exceptions; they are reported
through CacheResult / boolean returns. These are reserved for problems
the caller has to fix: bad configuration and programming errors.
"""


class CacheBackendError(Exception):
    """Base class for every error raised by tagcache."""


class CacheBackendConfigurationError(CacheBackendError):
    """The backend could not be constructed in a usable state."""


class InvalidCleaningModeError(CacheBackendError, ValueError):
    """clean() was called with a mode that is not a CleaningMode."""

    def __init__(self, mode):
        self.mode = mode
        super().__init__(f"Invalid mode for clean() method: {mode!r}")
