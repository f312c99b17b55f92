"""Custom exceptions for gallery site operations."""


class GalleryError(Exception):
    """Base exception for all gallery site operations."""
    pass


class ConfigError(GalleryError):
    """Raised when site configuration is invalid."""
    pass


class StatsPersistenceError(GalleryError):
    """Raised when the hit count snapshot cannot be read or written."""
    pass


class StatsLogError(GalleryError):
    """Raised when the historical stats log cannot be read, parsed or written."""
    pass
