"""Exceptions raised by kelvin."""


class KelvinError(Exception):
    """Base class for all kelvin errors."""


class ConfigurationError(KelvinError):
    """Invalid configuration values."""


class MisconfiguredIntervalError(ConfigurationError):
    """An interval mixes an ignored field with a real value across its endpoints."""


class NoActiveIntervalError(KelvinError):
    """No schedule interval contains the requested time."""


class BulbError(KelvinError):
    """Communication with a bulb failed."""

    def __init__(self, light_id: str, message: str):
        super().__init__(f"Light {light_id}: {message}")
        self.light_id = light_id


class BulbReadError(BulbError):
    """Reading the current state of a bulb failed."""


class BulbWriteError(BulbError):
    """Writing a new state to a bulb failed."""
