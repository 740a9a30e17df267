"""
hwstats daemon.

Thin host around the uevent listener: loads configuration, sets up
logging, picks a transport and a stats backend, then runs the listener
until the transport fails.
"""

from __future__ import annotations

import argparse
import logging
import sys

from hwstats import __version__
from hwstats.config import HwstatsConfig, load_config, validate_config
from hwstats.listener.loop import UeventListener, create_listener
from hwstats.listener.transport import (
    BufferEventSource,
    EventSource,
    TransportError,
    UdevEventSource,
    read_capture,
)
from hwstats.stats.service import create_stats_service

logger = logging.getLogger("hwstats")


def setup_logging(config: HwstatsConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.daemon.log_level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.daemon.log_file:
        handlers.append(logging.FileHandler(config.daemon.log_file))
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def run_listener(listener: UeventListener, once: bool = False, replay: bool = False) -> int:
    """
    Drive the listener and map its outcome to an exit status.

    Args:
        listener: Configured listener
        once: Process a single uevent and stop
        replay: Source is a finite capture; running out is a clean exit

    Returns:
        Process exit status.
    """
    try:
        if once:
            ok = listener.process_uevent()
            return 0 if ok else 1
        listener.listen_forever()
    except TransportError as e:
        if replay:
            logger.info("Replay finished: %s", listener.get_statistics())
            return 0
        logger.critical("Uevent transport failed: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        return 0
    finally:
        logger.debug("Listener statistics: %s", listener.get_statistics())
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the daemon."""
    parser = argparse.ArgumentParser(
        prog="hwstats-daemon",
        description="Hardware reliability uevent listener",
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c", "--config",
        metavar="FILE",
        help="Path to configuration file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--replay",
        metavar="FILE",
        help="Read uevents from a capture file instead of the kernel",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Process a single uevent and exit",
    )

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        config.daemon.log_level = "debug"

    errors = validate_config(config)
    if errors:
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    setup_logging(config)
    logger.info("Starting hwstats daemon v%s", __version__)

    source: EventSource
    if args.replay:
        try:
            source = BufferEventSource(read_capture(args.replay))
        except OSError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        source = UdevEventSource()

    stats = create_stats_service(config.stats)
    listener = create_listener(config, source, stats)
    try:
        return run_listener(listener, once=args.once, replay=bool(args.replay))
    finally:
        stats.close()


if __name__ == "__main__":
    sys.exit(main())
