"""Fixtures for testing."""
from decimal import Decimal

import pytest

from max17048_battery.config import PollerConfig
from max17048_battery.gauge import BusDriver, REG_SOC, REG_TEMP, REG_VCELL


class FakeBus(BusDriver):
    """Bus driver backed by a register -> byte dict. Exceptions are raised."""

    def __init__(self, registers=None):
        super().__init__()
        self.registers = dict(registers or {})
        self.reads = []

    def set_word(self, register, word):
        self.registers[register] = word >> 8
        self.registers[register + 1] = word & 0xFF

    def read_byte(self, register):
        self.reads.append(register)
        value = self.registers[register]
        if isinstance(value, Exception):
            raise value
        return value


def volts_to_raw(volts):
    """Raw VCELL word for a voltage that is an exact multiple of 78.125 uV."""
    return int(Decimal(volts) * 1000000 * 1000 / 78125)


@pytest.fixture
def fake_bus():
    bus = FakeBus()
    bus.set_word(REG_VCELL, 53120)  # 4.1500 V
    bus.set_word(REG_SOC, 85 * 256 + 128)  # 85.50 %
    bus.set_word(REG_TEMP, 25 * 256)  # 25.00 C
    return bus


@pytest.fixture
def platform_dir(tmp_path):
    """A writable stand-in for the userspace_battery platform device."""
    path = tmp_path / "userspace_battery"
    path.mkdir()
    for name in ("set_voltage_uv", "set_capacity", "set_status"):
        (path / name).write_text("")
    return path


@pytest.fixture
def config(platform_dir):
    return PollerConfig(platform_path=platform_dir)
