"""
Charge status -> power-supply status vocabulary.
"""

from decimal import Decimal

from .classifier import ChargeStatus

FULL_VOLTAGE_THRESHOLD = Decimal("4.18")

STATUS_CHARGING = "Charging"
STATUS_DISCHARGING = "Discharging"
STATUS_FULL = "Full"
STATUS_NOT_CHARGING = "Not charging"
STATUS_UNKNOWN = "Unknown"

SINK_STATUSES = (
    STATUS_CHARGING,
    STATUS_DISCHARGING,
    STATUS_FULL,
    STATUS_NOT_CHARGING,
    STATUS_UNKNOWN,
)


def map_status(
    status: ChargeStatus, voltage: Decimal, full_threshold: Decimal = FULL_VOLTAGE_THRESHOLD
) -> str:
    """Translate a charge status into the string written to the status endpoint."""
    if status == ChargeStatus.CHARGING:
        return STATUS_CHARGING
    if status == ChargeStatus.DISCHARGING:
        return STATUS_DISCHARGING
    if status == ChargeStatus.STABLE:
        if voltage >= full_threshold:
            return STATUS_FULL
        return STATUS_NOT_CHARGING
    return STATUS_UNKNOWN


def parse_sink_status(text: str) -> str:
    """
    Interpret a status string the way the power-supply device does:
    one trailing newline dropped, case ignored, anything else is Unknown.
    """
    if text.endswith("\n"):
        text = text[:-1]
    lowered = text.lower()
    for known in SINK_STATUSES:
        if lowered == known.lower():
            return known
    return STATUS_UNKNOWN
