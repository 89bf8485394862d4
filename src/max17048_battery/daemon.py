#!/usr/bin/env python3
"""
MAX17048 polling daemon.
Samples the fuel gauge and feeds the userspace_battery kernel device.
"""

import logging
import os
import signal
import sys

from .config import build_parser, config_from_args
from .errors import ConfigError
from .gauge import open_driver
from .poller import Poller

PID_FILE = "/tmp/max17048_battery.pid"


def is_running() -> bool:
    """Check if another instance is running."""
    if os.path.exists(PID_FILE):
        try:
            with open(PID_FILE, "r") as f:
                pid = int(f.read().strip())
            os.kill(pid, 0)
            return True
        except (ValueError, ProcessLookupError):
            try:
                os.remove(PID_FILE)
            except OSError:
                pass
        except PermissionError:
            # Process exists but belongs to another user
            return True
    return False


def write_pid():
    """Write PID file."""
    with open(PID_FILE, "w") as f:
        f.write(str(os.getpid()))


def remove_pid():
    """Remove PID file if present."""
    try:
        os.remove(PID_FILE)
    except OSError:
        pass


def cleanup(*args):
    """Signal handler: clean up and exit."""
    remove_pid()
    sys.exit(0)


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv=None):
    """Entry point for the polling daemon."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = config_from_args(args)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    if is_running():
        print("Battery polling daemon already running", file=sys.stderr)
        sys.exit(1)

    signal.signal(signal.SIGTERM, cleanup)
    signal.signal(signal.SIGINT, cleanup)

    try:
        driver = open_driver(config.driver, config.bus, config.address)
    except OSError as e:
        print(f"Error opening I2C bus {config.bus}: {e}", file=sys.stderr)
        sys.exit(1)

    write_pid()
    print(f"--- Starting MAX17048 polling (PID {os.getpid()}) ---")
    print(
        f"Bus {config.bus} address 0x{config.address:02x}, every {config.interval}s, "
        f"publishing {'on' if config.publish else 'off'}"
    )

    try:
        Poller(driver, config).run()
    finally:
        driver.close()
        remove_pid()


if __name__ == "__main__":
    main()
