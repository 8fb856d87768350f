from __future__ import annotations

import argparse
import logging
import signal
from dataclasses import replace
from typing import Optional, Tuple

from dotenv import load_dotenv

from .config import AppConfig, ConfigError, load_config
from .driver import ExtensionSession
from .models import BatteryReading
from .sinks import DesktopSink, LogSink, NotificationSink
from .upower import UPowerProvider

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def _build_session(cfg: AppConfig, dry_run: bool) -> Tuple[ExtensionSession, NotificationSink]:
    provider = UPowerProvider()
    if dry_run:
        sink: NotificationSink = LogSink()
    else:
        sink = DesktopSink(expire_timeout=cfg.notifier.expire_timeout_ms)
    return ExtensionSession(provider, sink, cfg), sink


def _close_sink(sink: NotificationSink) -> None:
    if isinstance(sink, DesktopSink):
        sink.close()


def run_once(cfg: AppConfig, dry_run: bool = False) -> BatteryReading:
    session, sink = _build_session(replace(cfg, check_on_start=False), dry_run)
    try:
        session.enable()
        reading = session.update()
        print(
            f"{reading.percentage:.0f}% {reading.state.name.lower().replace('_', '-')}; "
            f"present={reading.is_present}, time_to_empty={reading.time_to_empty}s, "
            f"time_to_full={reading.time_to_full}s"
        )
        return reading
    finally:
        # Keep whatever was shown; only drop the signal handlers.
        session.registrations.dispose_all()
        _close_sink(sink)


def run(cfg: AppConfig, dry_run: bool = False) -> None:
    from gi.repository import GLib  # type: ignore

    loop = GLib.MainLoop()

    def _quit(*_args) -> bool:
        logger.info("Stopping")
        loop.quit()
        return False

    for signum in (signal.SIGINT, signal.SIGTERM):
        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signum, _quit)

    session, sink = _build_session(cfg, dry_run)
    try:
        session.enable()
        loop.run()
    finally:
        session.disable()
        _close_sink(sink)


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Notify when the battery is charged past a threshold or full")
    ap.add_argument("--config", default=None, help="YAML config file (default: $FULLBATTERY_CONFIG or ~/.config/fullbattery/config.yaml)")
    ap.add_argument("--dry-run", action="store_true", help="log notifications instead of showing them")
    ap.add_argument("--once", action="store_true", help="read the battery, notify once and exit")
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args(argv)

    load_dotenv()
    try:
        cfg = load_config(args.config)
    except ConfigError as exc:
        ap.error(str(exc))
    if args.log_level:
        cfg.logging.level = args.log_level.upper()
    _configure_logging(cfg.logging.level)

    if args.once:
        run_once(cfg, dry_run=args.dry_run)
        return
    run(cfg, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
