#!/usr/bin/env python3
import argparse, asyncio, logging, sys
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config.logging_config import configure
from config.app_config import settings
from autoirrigation.core.exceptions import (
    BusConnectionError, ConfigurationError, DeviceJobError, DeviceNotFoundError,
)
from autoirrigation.mapping import DeviceStatusStore, StatusDispatcher
from autoirrigation.orchestration import IrrigationOrchestrator, OrchestratorConfig
from autoirrigation.protocols import BusClientConfig, MQTTGateway
from autoirrigation.services import (
    FrappeHistoryRecorder, InMemoryHistoryRecorder, SlackNotifier, TaskDefinitionLoader,
    load_device_configs,
)
from autoirrigation.triggers import JobClock

log = logging.getLogger("main")


def load_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"invalid SCHEDULE_TIMEZONE {name!r}: {e}") from e


def build_history():
    if settings.FRAPPE_URL:
        return FrappeHistoryRecorder(settings.FRAPPE_URL, settings.FRAPPE_USER, settings.FRAPPE_PWD,
                                     doctype=settings.HISTORY_DOCTYPE)
    log.warning("FRAPPE_URL is not set; job history is kept in memory only")
    return InMemoryHistoryRecorder()


async def async_main(args) -> int:
    tz = load_timezone(settings.SCHEDULE_TIMEZONE)
    devices = load_device_configs(settings.DEVICE_CONFIG_PATH)

    store = DeviceStatusStore()
    bus = MQTTGateway(
        BusClientConfig(
            broker=settings.MQTT_BROKER,
            client_id=settings.MQTT_CLIENT_ID,
            username=settings.MQTT_USERNAME,
            password=settings.MQTT_PASSWORD,
            connect_timeout=settings.MQTT_CONNECT_TIMEOUT,
            publish_timeout=settings.PUBLISH_ACK_TIMEOUT,
        ),
        StatusDispatcher(store),
    )
    notifier = SlackNotifier(settings.SLACK_BOT_TOKEN, settings.SLACK_CHANNEL_ID)
    orchestrator = IrrigationOrchestrator(
        devices, bus, store,
        TaskDefinitionLoader(settings.TASKS_DIR),
        notifier,
        build_history(),
        OrchestratorConfig(
            calibration_timeout=settings.CALIBRATION_TIMEOUT,
            poll_interval=settings.POLL_INTERVAL,
            settle_delay=settings.TASK_SETTLE_DELAY,
        ),
        now=lambda: datetime.now(tz),
    )

    try:
        async with bus:
            log.info("Subscribing to topics for configured devices...")
            for device in devices:
                bus.subscribe_device(device.id)

            if args.command == "serve":
                clock = JobClock(orchestrator, devices, tz)
                clock.start()
                log.info("Irrigation system started. Press Ctrl+C to stop.")
                try:
                    # keep process alive
                    while True:
                        await asyncio.sleep(3600)
                finally:
                    await clock.stop()

            # give retained status messages a moment to arrive before one-shot runs
            await asyncio.sleep(args.warmup)
            if args.command == "run-all":
                outcomes = await orchestrator.run_all_once()
                return 0 if all(o.succeeded for o in outcomes) else 1

            try:
                await orchestrator.run_for_device(args.device)
            except (DeviceNotFoundError, DeviceJobError) as e:
                log.error(str(e))
                return 1
            return 0
    finally:
        await notifier.aclose()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="auto-irrigation", description="Auto-irrigation orchestrator")
    parser.add_argument("--log-level", default=None, help="overrides LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve", help="run scheduled jobs until interrupted")
    run_all = sub.add_parser("run-all", help="run every configured device once")
    run_one = sub.add_parser("run", help="run one device once")
    run_one.add_argument("--device", required=True, help="device ID")
    for p in (run_all, run_one):
        p.add_argument("--warmup", type=float, default=2.0,
                       help="seconds to wait for status messages before running (default: 2)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure(args.log_level)
    try:
        return asyncio.run(async_main(args))
    except (ConfigurationError, BusConnectionError) as e:
        log.critical(str(e))
        return 2


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit("🌙  graceful shutdown")
