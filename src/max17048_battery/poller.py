"""
Polling loop: read the gauge, classify the charge trend, publish.

One cycle runs to completion before the next starts. A fault on the
voltage or SOC path skips the rest of the cycle and leaves the classifier
state untouched.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .classifier import ChargeClassifier, ChargeStatus, ClassifierState
from .config import PollerConfig
from .errors import BusFault, ConversionFault, SinkUnavailableFault
from .gauge import REG_SOC, REG_TEMP, REG_VCELL, BusDriver, read_word
from .mapper import map_status
from .sink import PublishedStatus, SysfsSink
from .units import PhysicalReading, convert

log = logging.getLogger(__name__)

ROW_FORMAT = "%s | %-11s | %-7s | %-9s | %s"
HEADER = (
    "Timestamp             | Voltage (V) | SOC (%) | Temp (°C) | Status       \n"
    "----------------------|-------------|---------|-----------|---------------"
)


@dataclass(frozen=True)
class CycleResult:
    timestamp: str
    reading: PhysicalReading
    charge_status: ChargeStatus
    sink_status: str
    published: bool = False
    sink_unavailable: bool = False


class Poller:
    """Runs polling cycles against one fuel gauge."""

    def __init__(
        self,
        driver: BusDriver,
        config: Optional[PollerConfig] = None,
        sink: Optional[SysfsSink] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = datetime.now,
        output: Callable[[str], None] = print,
    ):
        self.driver = driver
        self.config = config or PollerConfig()
        if sink is None and self.config.publish:
            sink = SysfsSink(self.config.platform_path)
        self.sink = sink
        self.classifier = ChargeClassifier(
            self.config.increase_threshold, self.config.decrease_threshold
        )
        self.state = ClassifierState()
        self._sleep = sleep
        self._clock = clock
        self._output = output

    def _read_raw(self, timestamp: str):
        """Returns (vcell, soc, temp) or None if a critical read failed."""
        words = {}
        for name, register in (("VCELL", REG_VCELL), ("SOC", REG_SOC), ("TEMP", REG_TEMP)):
            try:
                words[name] = read_word(self.driver, register)
            except BusFault as e:
                words[name] = e

        for name in ("VCELL", "SOC"):
            if isinstance(words[name], BusFault):
                log.error("%s | Error reading valid %s data (%s). Skipping.", timestamp, name, words[name])
                return None

        temp = words["TEMP"]
        if isinstance(temp, BusFault):
            log.warning("%s | Error reading TEMP data (%s).", timestamp, temp)
            temp = None
        return words["VCELL"], words["SOC"], temp

    def _publish(self, timestamp: str, reading: PhysicalReading, sink_status: str):
        """Returns (published, sink_unavailable)."""
        try:
            self.sink.check()
        except SinkUnavailableFault as e:
            log.error("%s | %s", timestamp, e)
            return False, True

        published = self.sink.publish(
            PublishedStatus(reading.voltage_uv, reading.soc_percent_int, sink_status)
        )
        return published, False

    def run_cycle(self) -> Optional[CycleResult]:
        """
        Run one cycle without the trailing sleep.

        Returns:
            The cycle result, or None if the cycle was skipped.
        """
        timestamp = self._clock().strftime("%Y-%m-%d %H:%M:%S")

        raw = self._read_raw(timestamp)
        if raw is None:
            return None

        try:
            reading = convert(*raw)
        except ConversionFault as e:
            log.error("%s | Error converting readings (%s). Skipping.", timestamp, e)
            return None

        status = self.classifier.update(self.state, reading.voltage_v)
        sink_status = map_status(status, reading.voltage_v, self.config.full_threshold)

        self._output(
            ROW_FORMAT % (timestamp, reading.voltage_v, reading.soc_text, reading.temp_text, status)
        )

        published = sink_unavailable = False
        if self.config.publish and self.sink is not None:
            published, sink_unavailable = self._publish(timestamp, reading, sink_status)

        self.classifier.remember(self.state, reading.voltage_v)

        return CycleResult(timestamp, reading, status, sink_status, published, sink_unavailable)

    def run(self, max_cycles: Optional[int] = None):
        """Poll forever, or for ``max_cycles`` cycles."""
        self._output(HEADER)
        count = 0
        while max_cycles is None or count < max_cycles:
            result = self.run_cycle()
            if result is not None and result.sink_unavailable:
                self._sleep(self.config.sink_backoff)
            self._sleep(self.config.interval)
            count += 1
