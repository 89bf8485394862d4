"""
Charge trend detection from successive cell voltage samples.

The classifier only sees voltage: a rise above the increase threshold means
charging, a drop below the decrease threshold means discharging, anything in
between is the deadband. A drop while already charging is ignored so that
charger ripple does not make the status flutter.
"""

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .errors import RangeFault

log = logging.getLogger(__name__)

# Hysteresis thresholds, volts per cycle
VOLTAGE_INCREASE_THRESHOLD = Decimal("0.010")
VOLTAGE_DECREASE_THRESHOLD = Decimal("-0.010")

# Plausible single Li-ion cell range (exclusive)
CELL_VOLTAGE_MIN = Decimal("1.0")
CELL_VOLTAGE_MAX = Decimal("5.0")


class ChargeStatus(enum.Enum):
    INITIALIZING = "Initializing"
    MONITORING = "Monitoring"
    CHARGING = "Charging"
    DISCHARGING = "Discharging"
    STABLE = "Stable"

    def __str__(self):
        return self.value


@dataclass
class ClassifierState:
    """Memory carried from one polling cycle to the next."""

    last_voltage: Optional[Decimal] = None
    charge_status: ChargeStatus = ChargeStatus.MONITORING


def check_cell_voltage(voltage: Decimal) -> Decimal:
    """Raise RangeFault unless ``voltage`` is strictly inside the cell range."""
    if not CELL_VOLTAGE_MIN < voltage < CELL_VOLTAGE_MAX:
        raise RangeFault(f"voltage {voltage} outside ({CELL_VOLTAGE_MIN}, {CELL_VOLTAGE_MAX}) V")
    return voltage


class ChargeClassifier:
    """Hysteresis state machine over cell voltage."""

    def __init__(
        self,
        increase_threshold: Decimal = VOLTAGE_INCREASE_THRESHOLD,
        decrease_threshold: Decimal = VOLTAGE_DECREASE_THRESHOLD,
    ):
        self.increase_threshold = increase_threshold
        self.decrease_threshold = decrease_threshold

    def step(self, voltage: Decimal, state: ClassifierState) -> ChargeStatus:
        """Return the new charge status for ``voltage``. Does not modify ``state``."""
        if state.last_voltage is None:
            return ChargeStatus.MONITORING

        current = state.charge_status
        diff = voltage - state.last_voltage

        if diff > self.increase_threshold:
            return ChargeStatus.CHARGING
        if diff < self.decrease_threshold:
            if current != ChargeStatus.CHARGING:
                return ChargeStatus.DISCHARGING
            return current
        # Deadband
        if current in (ChargeStatus.INITIALIZING, ChargeStatus.MONITORING):
            return ChargeStatus.STABLE
        return current

    def update(self, state: ClassifierState, voltage: Decimal) -> ChargeStatus:
        """Advance ``state.charge_status`` for this cycle's voltage."""
        state.charge_status = self.step(voltage, state)
        return state.charge_status

    @staticmethod
    def remember(state: ClassifierState, voltage: Decimal) -> bool:
        """
        Keep ``voltage`` as the reference for the next cycle.

        An implausible voltage clears the reference instead, so the next
        cycle goes back to Monitoring.

        Returns:
            True if the voltage was accepted.
        """
        try:
            state.last_voltage = check_cell_voltage(voltage)
            return True
        except RangeFault as e:
            log.warning("Voltage invalid or out of range, not updating last voltage: %s", e)
            state.last_voltage = None
            return False
