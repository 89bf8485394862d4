"""
MAX17048 register access.
Reads 16-bit big-endian words as two single-byte reads, through either
smbus2 or the i2c-tools ``i2cget`` command.
"""

import logging
import re
import subprocess

from smbus2 import SMBus

from .errors import BusFault

log = logging.getLogger(__name__)

# Bus defaults
I2C_BUS = 1
I2C_ADDRESS = 0x36

# Register addresses (MSB; LSB is the next address)
REG_VCELL = 0x02
REG_SOC = 0x04
REG_TEMP = 0x16

I2CGET_TIMEOUT = 5  # seconds
_BYTE_RE = re.compile(r"^0x[0-9a-fA-F]{1,2}$")


class BusDriver:
    """Reads one byte at a register address of a fixed device."""

    def __init__(self, bus: int = I2C_BUS, address: int = I2C_ADDRESS):
        self.bus = bus
        self.address = address

    def read_byte(self, register: int) -> int:
        raise NotImplementedError

    def close(self):
        pass


class SMBusDriver(BusDriver):
    """Byte reads through the kernel i2c-dev interface."""

    def __init__(self, bus: int = I2C_BUS, address: int = I2C_ADDRESS):
        super().__init__(bus, address)
        self._smbus = SMBus(bus)

    def read_byte(self, register: int) -> int:
        return self._smbus.read_byte_data(self.address, register)

    def close(self):
        self._smbus.close()


class I2cgetDriver(BusDriver):
    """Byte reads by running ``i2cget -y BUS ADDR REG b``."""

    def read_byte(self, register: int) -> int:
        cmd = ["i2cget", "-y", str(self.bus), f"0x{self.address:02x}", f"0x{register:02x}", "b"]
        try:
            proc = subprocess.run(cmd, timeout=I2CGET_TIMEOUT, capture_output=True, text=True)
        except FileNotFoundError:
            raise BusFault(register, "'i2cget' not found")
        except subprocess.TimeoutExpired:
            raise BusFault(register, f"i2cget timed out after {I2CGET_TIMEOUT}s")

        out = proc.stdout.strip()
        if proc.returncode != 0 or not _BYTE_RE.match(out):
            detail = out or proc.stderr.strip()
            raise BusFault(register, f"received '{detail}' (exit code: {proc.returncode})")
        return int(out, 16)


def combine_word(msb: int, lsb: int) -> int:
    """Combine two register bytes into an unsigned 16-bit word."""
    return msb * 256 + lsb


def _checked_byte(driver: BusDriver, register: int) -> int:
    try:
        value = driver.read_byte(register)
    except BusFault:
        raise
    except (OSError, ValueError, TypeError) as e:
        raise BusFault(register, str(e) or type(e).__name__) from e

    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFF:
        raise BusFault(register, f"not a byte: {value!r}")
    return value


def read_word(driver: BusDriver, register: int) -> int:
    """
    Read the word whose MSB is at ``register`` and LSB at ``register + 1``.

    Raises:
        BusFault: if either byte read fails. No retry is attempted.
    """
    msb = _checked_byte(driver, register)
    lsb = _checked_byte(driver, register + 1)
    return combine_word(msb, lsb)


def open_driver(kind: str, bus: int, address: int) -> BusDriver:
    """Create the named bus driver."""
    if kind == "i2cget":
        return I2cgetDriver(bus, address)
    if kind == "smbus":
        return SMBusDriver(bus, address)
    raise ValueError(f"unknown bus driver: {kind}")
