"""
Battery status helper for conky and other scripts.
Outputs what the userspace_battery power supply currently reports.
"""

import sys

from .mapper import STATUS_CHARGING, STATUS_FULL, parse_sink_status
from .sink import CLASS_PATH, read_power_supply


def format_status(info: dict) -> str:
    """One-line summary like ``> 85% CHG 4.12V``."""
    capacity = info.get("capacity")
    if capacity is None:
        return "> N/A"

    status = info.get("status")
    if status is not None:
        status = parse_sink_status(status)
    if status == STATUS_CHARGING:
        suffix = " CHG"
    elif status == STATUS_FULL:
        suffix = " FULL"
    else:
        suffix = ""

    line = f"> {capacity}%{suffix}"
    voltage_uv = info.get("voltage_uv")
    if voltage_uv:
        line += f" {voltage_uv / 1_000_000:.2f}V"
    return line


def main(argv=None):
    """Entry point for battery status output."""
    argv = sys.argv[1:] if argv is None else argv
    class_path = argv[0] if argv else CLASS_PATH
    try:
        info = read_power_supply(class_path)
        if info is None:
            print("> N/A")
            return
        print(format_status(info))
    except OSError:
        print("> ERR")


if __name__ == "__main__":
    main()
