"""
MAX17048 Battery - fuel gauge poller for the userspace_battery power supply.

This package provides:
- Register access over I2C (smbus2 or i2cget)
- Truncating fixed-point conversion of VCELL, SOC and TEMP
- Charge trend detection with asymmetric hysteresis
- Publishing to the userspace_battery kernel device
- Conky-style status helper
"""

__version__ = "1.0.0"

from .classifier import (
    ChargeClassifier,
    ChargeStatus,
    ClassifierState,
    VOLTAGE_INCREASE_THRESHOLD,
    VOLTAGE_DECREASE_THRESHOLD,
)
from .errors import (
    BatteryError,
    BusFault,
    ConfigError,
    ConversionFault,
    RangeFault,
    SinkUnavailableFault,
)
from .gauge import BusDriver, read_word, combine_word, I2C_ADDRESS, I2C_BUS
from .mapper import map_status, FULL_VOLTAGE_THRESHOLD
from .poller import Poller
from .units import PhysicalReading, convert

__all__ = [
    "ChargeClassifier",
    "ChargeStatus",
    "ClassifierState",
    "VOLTAGE_INCREASE_THRESHOLD",
    "VOLTAGE_DECREASE_THRESHOLD",
    "BatteryError",
    "BusFault",
    "ConfigError",
    "ConversionFault",
    "RangeFault",
    "SinkUnavailableFault",
    "BusDriver",
    "read_word",
    "combine_word",
    "I2C_ADDRESS",
    "I2C_BUS",
    "map_status",
    "FULL_VOLTAGE_THRESHOLD",
    "Poller",
    "PhysicalReading",
    "convert",
]
