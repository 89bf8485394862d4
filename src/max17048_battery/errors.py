"""
Fault taxonomy for the fuel-gauge poller.
Every fault is recovered inside a polling cycle; none stop the daemon.
"""


class BatteryError(Exception):
    """Base class for all poller faults."""


class BusFault(BatteryError):
    """A register read failed, timed out or returned something that is not a byte."""

    def __init__(self, register: int, reason: str):
        super().__init__(f"register 0x{register:02x}: {reason}")
        self.register = register
        self.reason = reason


class ConversionFault(BatteryError):
    """A derived value does not have the expected numeric shape."""


class RangeFault(BatteryError):
    """Cell voltage outside the plausible single-cell range."""


class SinkUnavailableFault(BatteryError):
    """The publish endpoints are missing or not writable."""


class ConfigError(BatteryError):
    """Invalid poller configuration."""
