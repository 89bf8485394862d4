"""
Raw register word -> physical unit conversion.

All arithmetic is integer fixed-point with truncation toward zero, the
results are exposed as ``Decimal`` so that ``5.1199`` prints as ``5.1199``.
Never round here: boundary readings must match the gauge tables exactly.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .errors import ConversionFault

log = logging.getLogger(__name__)

# Scaling factors
VCELL_LSB_NV = 78125  # 78.125 uV per bit
SOC_LSB_DIV = 256  # 1/256 % per bit
TEMP_LSB_DIV = 256  # 1/256 degC per bit
TEMP_UNAVAILABLE = 0xFFFF

VOLTAGE_DIGITS = 4
DISPLAY_DIGITS = 2


def _trunc_div(num: int, den: int) -> int:
    """Integer division truncating toward zero (``//`` floors)."""
    q = abs(num) // abs(den)
    return -q if (num < 0) != (den < 0) else q


def _fixed(units: int, digits: int) -> Decimal:
    value = Decimal(units).scaleb(-digits)
    if not value.is_finite():
        raise ConversionFault(f"non-finite result {value}")
    return value


def _check_word(raw: int, name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or not 0 <= raw <= 0xFFFF:
        raise ConversionFault(f"{name}: not a 16-bit word: {raw!r}")
    return raw


def to_signed16(raw: int) -> int:
    """Two's-complement interpretation of a 16-bit word."""
    return raw - 0x10000 if raw > 0x7FFF else raw


def to_voltage(raw_vcell: int) -> Decimal:
    """VCELL word -> volts, truncated to 4 decimals."""
    raw_vcell = _check_word(raw_vcell, "VCELL")
    nanovolts = raw_vcell * VCELL_LSB_NV
    return _fixed(_trunc_div(nanovolts, 10 ** (9 - VOLTAGE_DIGITS)), VOLTAGE_DIGITS)


def to_microvolts(voltage: Decimal) -> int:
    """Volts -> integer microvolts, truncated."""
    if not isinstance(voltage, Decimal) or not voltage.is_finite():
        raise ConversionFault(f"voltage is not a decimal: {voltage!r}")
    uv = int(voltage * 1000000)
    if uv < 0:
        raise ConversionFault(f"negative microvolt value {uv}")
    return uv


def to_soc_percent(raw_soc: int) -> int:
    """SOC word -> whole percent, clamped to 0..100."""
    raw_soc = _check_word(raw_soc, "SOC")
    return max(0, min(100, raw_soc // SOC_LSB_DIV))


def to_soc_display(raw_soc: int) -> Decimal:
    """SOC word -> percent with 2 decimals, unclamped."""
    raw_soc = _check_word(raw_soc, "SOC")
    return _fixed(_trunc_div(raw_soc * 10**DISPLAY_DIGITS, SOC_LSB_DIV), DISPLAY_DIGITS)


def to_temperature(raw_temp: int) -> Optional[Decimal]:
    """TEMP word -> degC with 2 decimals, or None for the 0xFFFF sentinel."""
    raw_temp = _check_word(raw_temp, "TEMP")
    if raw_temp == TEMP_UNAVAILABLE:
        return None
    signed = to_signed16(raw_temp)
    return _fixed(_trunc_div(signed * 10**DISPLAY_DIGITS, TEMP_LSB_DIV), DISPLAY_DIGITS)


@dataclass(frozen=True)
class PhysicalReading:
    voltage_v: Decimal
    voltage_uv: int
    soc_percent_int: int
    soc_percent_float: Optional[Decimal]
    temp_c: Optional[Decimal]
    temp_error: bool = False

    @property
    def soc_text(self) -> str:
        return "N/A" if self.soc_percent_float is None else str(self.soc_percent_float)

    @property
    def temp_text(self) -> str:
        if self.temp_error:
            return "Error"
        return "N/A" if self.temp_c is None else str(self.temp_c)


def convert(raw_vcell: int, raw_soc: int, raw_temp: Optional[int]) -> PhysicalReading:
    """
    Convert one cycle's raw words.

    ``raw_temp`` is None when the temperature read failed.

    Raises:
        ConversionFault: for the voltage, microvolt or SOC values. Faults on
            the SOC display value and temperature only degrade those fields.
    """
    voltage = to_voltage(raw_vcell)
    voltage_uv = to_microvolts(voltage)
    soc = to_soc_percent(raw_soc)

    try:
        soc_float = to_soc_display(raw_soc)
    except ConversionFault as e:
        log.warning("Error calculating SOC display value (%s). Displaying N/A.", e)
        soc_float = None

    temp = None
    temp_error = False
    if raw_temp is not None:
        try:
            temp = to_temperature(raw_temp)
        except ConversionFault as e:
            log.warning("Error calculating temperature (%s).", e)
            temp_error = True

    return PhysicalReading(voltage, voltage_uv, soc, soc_float, temp, temp_error)
