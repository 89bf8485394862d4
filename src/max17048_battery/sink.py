"""
Publishing to the userspace_battery power-supply device.

The kernel module exposes three write-only attributes under its platform
device; whatever is written there shows up under
/sys/class/power_supply/userspace_battery for upower and friends.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import SinkUnavailableFault
from .mapper import SINK_STATUSES

log = logging.getLogger(__name__)

PLATFORM_PATH = Path("/sys/devices/platform/userspace_battery")
CLASS_PATH = Path("/sys/class/power_supply/userspace_battery")

VOLTAGE_FILE = "set_voltage_uv"
CAPACITY_FILE = "set_capacity"
STATUS_FILE = "set_status"


@dataclass(frozen=True)
class PublishedStatus:
    voltage_uv: int
    capacity_percent: int
    status: str

    def validate(self):
        """Raise ValueError unless every field is what the device accepts."""
        if isinstance(self.voltage_uv, bool) or not isinstance(self.voltage_uv, int):
            raise ValueError(f"Invalid voltage_uv ({self.voltage_uv!r})")
        if self.voltage_uv < 0:
            raise ValueError(f"Negative voltage_uv ({self.voltage_uv})")
        if isinstance(self.capacity_percent, bool) or not isinstance(self.capacity_percent, int):
            raise ValueError(f"Invalid capacity ({self.capacity_percent!r})")
        if not 0 <= self.capacity_percent <= 100:
            raise ValueError(f"Capacity out of range ({self.capacity_percent})")
        if self.status not in SINK_STATUSES:
            raise ValueError(f"Invalid status ({self.status!r})")


class SysfsSink:
    """Write-only view of the device's set_* attributes."""

    def __init__(self, platform_path: Path = PLATFORM_PATH):
        self.platform_path = Path(platform_path)
        self.voltage_file = self.platform_path / VOLTAGE_FILE
        self.capacity_file = self.platform_path / CAPACITY_FILE
        self.status_file = self.platform_path / STATUS_FILE

    def check(self):
        """
        Raises:
            SinkUnavailableFault: if the device is absent or its files are not writable.
        """
        if not self.platform_path.is_dir():
            raise SinkUnavailableFault(f"{self.platform_path} not found. Is module loaded?")
        for path in (self.voltage_file, self.capacity_file, self.status_file):
            if not os.access(path, os.W_OK):
                raise SinkUnavailableFault(
                    f"Cannot write to {path.name} in {self.platform_path}. Check permissions."
                )

    def _write(self, path: Path, value: str) -> bool:
        try:
            with open(path, "w") as f:
                f.write(value)
            return True
        except OSError as e:
            log.error("Error writing %r to %s: %s", value, path, e)
            return False

    def publish(self, status: PublishedStatus) -> bool:
        """
        Write all three values. Nothing is written if validation fails; a
        failed write is logged and the remaining values are still written.

        Returns:
            True if every value was written.
        """
        try:
            status.validate()
        except ValueError as e:
            log.error("Not publishing: %s", e)
            return False

        log.debug(
            "Writing -> V_uV:%d | Cap:%d | Status:%s",
            status.voltage_uv,
            status.capacity_percent,
            status.status,
        )
        ok = self._write(self.voltage_file, str(status.voltage_uv))
        ok = self._write(self.capacity_file, str(status.capacity_percent)) and ok
        ok = self._write(self.status_file, status.status) and ok
        if not ok:
            log.error("ERROR writing one or more values to %s", self.platform_path)
        return ok


def _read_str(path: Path) -> Optional[str]:
    try:
        raw = path.read_text().strip()
    except FileNotFoundError:
        return None
    return raw or None


def _read_int(path: Path) -> Optional[int]:
    raw = _read_str(path)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        log.debug("Non-numeric value in %s: %s", path, raw)
        return None


def read_power_supply(class_path: Path = CLASS_PATH) -> Optional[dict]:
    """
    Read back what the power-supply class reports.

    Returns:
        Dict with ``voltage_uv``, ``capacity`` and ``status`` (each may be
        None), or None if the device does not exist.
    """
    class_path = Path(class_path)
    if not class_path.is_dir():
        return None
    return {
        "voltage_uv": _read_int(class_path / "voltage_now"),
        "capacity": _read_int(class_path / "capacity"),
        "status": _read_str(class_path / "status"),
    }
