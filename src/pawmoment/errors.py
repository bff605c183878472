"""Exception types raised by pawmoment."""


class PawmomentError(Exception):
    """Base class for pawmoment errors."""


class ConfigError(PawmomentError, ValueError):
    """Invalid engine configuration."""


class CaptureError(PawmomentError):
    """A capture command failed on the device."""


class DetectorError(PawmomentError):
    """The pose detector backend is unavailable or not initialized."""


__all__ = ["PawmomentError", "ConfigError", "CaptureError", "DetectorError"]
