"""Tests for the polling cycle."""
import copy
from datetime import datetime
from decimal import Decimal

import pytest

from max17048_battery import poller as poller_module
from max17048_battery.classifier import ChargeStatus, ClassifierState
from max17048_battery.config import PollerConfig
from max17048_battery.errors import ConversionFault
from max17048_battery.gauge import REG_SOC, REG_TEMP, REG_VCELL
from max17048_battery.poller import HEADER, Poller

from conftest import volts_to_raw

NOW = datetime(2024, 5, 1, 12, 30, 0)


def make_poller(bus, config, **kwargs):
    lines = []
    sleeps = []
    p = Poller(
        bus,
        config,
        sleep=sleeps.append,
        clock=lambda: NOW,
        output=lines.append,
        **kwargs,
    )
    return p, lines, sleeps


def read_sink(platform_dir):
    return tuple(
        (platform_dir / name).read_text()
        for name in ("set_voltage_uv", "set_capacity", "set_status")
    )


def test_cycle_publishes(fake_bus, config, platform_dir):
    p, lines, _ = make_poller(fake_bus, config)
    result = p.run_cycle()

    assert result.reading.voltage_v == Decimal("4.1500")
    assert result.charge_status == ChargeStatus.MONITORING
    assert result.sink_status == "Unknown"
    assert result.published
    assert read_sink(platform_dir) == ("4150000", "85", "Unknown")
    assert p.state.last_voltage == Decimal("4.1500")
    assert lines == ["2024-05-01 12:30:00 | 4.1500      | 85.50   | 25.00     | Monitoring"]


def test_cycles_follow_voltage_trend(fake_bus, config, platform_dir):
    p, _, _ = make_poller(fake_bus, config)
    p.run_cycle()

    fake_bus.set_word(REG_VCELL, volts_to_raw("4.155"))
    assert p.run_cycle().charge_status == ChargeStatus.STABLE
    assert read_sink(platform_dir)[2] == "Not charging"

    fake_bus.set_word(REG_VCELL, volts_to_raw("4.18"))
    assert p.run_cycle().charge_status == ChargeStatus.CHARGING

    fake_bus.set_word(REG_VCELL, volts_to_raw("4.165"))
    assert p.run_cycle().charge_status == ChargeStatus.CHARGING
    assert read_sink(platform_dir)[2] == "Charging"


def test_stable_full(fake_bus, config, platform_dir):
    fake_bus.set_word(REG_VCELL, volts_to_raw("4.18"))
    p, _, _ = make_poller(fake_bus, config)
    p.run_cycle()
    assert p.run_cycle().sink_status == "Full"
    assert read_sink(platform_dir)[2] == "Full"


@pytest.mark.parametrize("register", [REG_VCELL, REG_SOC, REG_SOC + 1])
def test_critical_bus_fault_skips_cycle(fake_bus, config, platform_dir, register):
    p, lines, _ = make_poller(fake_bus, config)
    p.run_cycle()
    before = copy.deepcopy(p.state)

    fake_bus.registers[register] = OSError(121, "Remote I/O error")
    (platform_dir / "set_status").write_text("")

    assert p.run_cycle() is None
    assert p.state == before
    assert len(lines) == 1
    assert (platform_dir / "set_status").read_text() == ""


def test_temperature_fault_is_not_critical(fake_bus, config):
    fake_bus.registers[REG_TEMP] = OSError(110, "timed out")
    p, lines, _ = make_poller(fake_bus, config)
    result = p.run_cycle()
    assert result is not None
    assert result.reading.temp_text == "N/A"
    assert "| N/A       |" in lines[0]


def test_temperature_sentinel(fake_bus, config):
    fake_bus.set_word(REG_TEMP, 0xFFFF)
    p, _, _ = make_poller(fake_bus, config)
    assert p.run_cycle().reading.temp_c is None


def test_conversion_fault_skips_cycle(fake_bus, config, monkeypatch):
    def broken(*args):
        raise ConversionFault("bad")

    monkeypatch.setattr(poller_module, "convert", broken)
    p, lines, _ = make_poller(fake_bus, config)
    assert p.run_cycle() is None
    assert p.state == ClassifierState()
    assert lines == []


def test_out_of_range_voltage_still_published(fake_bus, config, platform_dir):
    p, _, _ = make_poller(fake_bus, config)
    p.run_cycle()

    fake_bus.set_word(REG_VCELL, 0xFFFF)
    result = p.run_cycle()
    assert result.charge_status == ChargeStatus.CHARGING
    assert result.published
    assert read_sink(platform_dir)[0] == "5119900"
    assert p.state.last_voltage is None

    fake_bus.set_word(REG_VCELL, volts_to_raw("4.15"))
    assert p.run_cycle().charge_status == ChargeStatus.MONITORING


def test_publish_disabled(fake_bus, platform_dir):
    config = PollerConfig(platform_path=platform_dir, publish=False)
    p, _, _ = make_poller(fake_bus, config)
    result = p.run_cycle()
    assert not result.published
    assert not result.sink_unavailable
    assert p.sink is None
    assert read_sink(platform_dir) == ("", "", "")


def test_sink_unavailable(fake_bus, tmp_path):
    config = PollerConfig(platform_path=tmp_path / "missing")
    p, _, _ = make_poller(fake_bus, config)
    result = p.run_cycle()
    assert result.sink_unavailable
    assert not result.published
    assert p.state.last_voltage == Decimal("4.1500")


def test_run_sleeps_interval(fake_bus, config):
    p, lines, sleeps = make_poller(fake_bus, config)
    p.run(max_cycles=3)
    assert lines[0] == HEADER
    assert len(lines) == 4
    assert sleeps == [config.interval] * 3


def test_run_sleeps_after_skipped_cycle(fake_bus, config):
    fake_bus.registers[REG_SOC] = OSError(5, "I/O error")
    p, lines, sleeps = make_poller(fake_bus, config)
    p.run(max_cycles=2)
    assert sleeps == [config.interval] * 2
    assert lines == [HEADER]


def test_run_backs_off_when_sink_missing(fake_bus, tmp_path):
    config = PollerConfig(platform_path=tmp_path / "missing", interval=2)
    p, _, sleeps = make_poller(fake_bus, config)
    p.run(max_cycles=2)
    assert sleeps == [5, 2, 5, 2]
