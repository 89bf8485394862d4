"""
Poller configuration and command line options.
"""

import argparse
import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

from .classifier import VOLTAGE_DECREASE_THRESHOLD, VOLTAGE_INCREASE_THRESHOLD
from .errors import ConfigError
from .gauge import I2C_ADDRESS, I2C_BUS
from .mapper import FULL_VOLTAGE_THRESHOLD
from .sink import PLATFORM_PATH

INTERVAL_SECONDS = 10
SINK_BACKOFF_SECONDS = 5
DRIVERS = ("smbus", "i2cget")


@dataclass
class PollerConfig:
    bus: int = I2C_BUS
    address: int = I2C_ADDRESS
    interval: float = INTERVAL_SECONDS
    increase_threshold: Decimal = VOLTAGE_INCREASE_THRESHOLD
    decrease_threshold: Decimal = VOLTAGE_DECREASE_THRESHOLD
    full_threshold: Decimal = FULL_VOLTAGE_THRESHOLD
    publish: bool = True
    driver: str = "smbus"
    platform_path: Path = field(default=PLATFORM_PATH)
    sink_backoff: float = SINK_BACKOFF_SECONDS

    def validate(self):
        if not math.isfinite(self.interval) or self.interval <= 0:
            raise ConfigError(f"interval must be positive, got {self.interval}")
        if self.increase_threshold <= 0:
            raise ConfigError(f"increase threshold must be positive, got {self.increase_threshold}")
        if self.decrease_threshold >= 0:
            raise ConfigError(f"decrease threshold must be negative, got {self.decrease_threshold}")
        if not 0 <= self.address <= 0x7F:
            raise ConfigError(f"invalid I2C address 0x{self.address:x}")
        if self.driver not in DRIVERS:
            raise ConfigError(f"unknown driver {self.driver!r}")
        return self


def _decimal(text: str) -> Decimal:
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a decimal number: {text!r}")
    if not value.is_finite():
        raise argparse.ArgumentTypeError(f"not a finite number: {text!r}")
    return value


def _address(text: str) -> int:
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an address: {text!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Poll a MAX17048 fuel gauge and publish to the userspace_battery device."
    )
    parser.add_argument("--bus", type=int, default=I2C_BUS, help="I2C bus number")
    parser.add_argument(
        "--address", type=_address, default=I2C_ADDRESS, help="device address (e.g. 0x36)"
    )
    parser.add_argument(
        "--interval", type=float, default=INTERVAL_SECONDS, help="seconds between samples"
    )
    parser.add_argument(
        "--increase-threshold",
        type=_decimal,
        default=VOLTAGE_INCREASE_THRESHOLD,
        help="voltage rise per cycle that means charging (V)",
    )
    parser.add_argument(
        "--decrease-threshold",
        type=_decimal,
        default=VOLTAGE_DECREASE_THRESHOLD,
        help="voltage drop per cycle that means discharging (V, negative)",
    )
    parser.add_argument(
        "--full-threshold",
        type=_decimal,
        default=FULL_VOLTAGE_THRESHOLD,
        help="voltage at or above which a stable battery is reported Full (V)",
    )
    parser.add_argument(
        "--no-publish",
        dest="publish",
        action="store_false",
        help="only print readings, do not write to the kernel device",
    )
    parser.add_argument("--driver", choices=DRIVERS, default="smbus", help="bus access method")
    parser.add_argument(
        "--platform-path", type=Path, default=PLATFORM_PATH, help="userspace_battery device path"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> PollerConfig:
    """Build and validate a PollerConfig from parsed options."""
    return PollerConfig(
        bus=args.bus,
        address=args.address,
        interval=args.interval,
        increase_threshold=args.increase_threshold,
        decrease_threshold=args.decrease_threshold,
        full_threshold=args.full_threshold,
        publish=args.publish,
        driver=args.driver,
        platform_path=args.platform_path,
    ).validate()
