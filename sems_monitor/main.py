"""SEMS Monitor — Command Line Interface.

Operator commands over the device store and the notification pipeline:

  devices         list devices with normalized status badges
  summary         dashboard counters
  watch           print the summary again on every store change
  alert           generate (and optionally send) a customer alert
  bill            generate (and optionally send) a billing notice
  account-create  add a customer account
  account-delete  remove a device record

Usage:
    python -m sems_monitor devices --filter "Outage Detected"
    python -m sems_monitor alert 09171234567 --type Tampering --method Email --send
    python scripts/run.py summary
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys
from contextlib import AsyncExitStack
from datetime import date
from pathlib import Path
from typing import Any, Optional, Sequence

from sems_monitor.config import AppConfig, GeneratorConfig, load_config
from sems_monitor.devices.dashboard import (
    StatusFilter,
    badge_labels,
    filter_devices,
    summarize,
)
from sems_monitor.devices.models import Device, DeviceAccount
from sems_monitor.devices.normalizer import DeviceStatus, PaymentStatus
from sems_monitor.errors import ConfigurationError, SemsError
from sems_monitor.generator.ai_client import AIClient
from sems_monitor.generator.engine import build_engine
from sems_monitor.models import AlertType, Channel
from sems_monitor.notifier.dispatcher import MailTransport, NotificationDispatcher
from sems_monitor.notifier.session import (
    NotificationSession,
    build_alert_sheet,
    build_billing_sheet,
    default_recipient,
)
from sems_monitor.store.firebase_store import FirebaseStore
from sems_monitor.store.memory_store import MemoryStore
from sems_monitor.store.repository import DeviceRepository, RealtimeStore
from sems_monitor.utils.logger import get_logger, set_console_level

logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════
# Argument parsing
# ═══════════════════════════════════════════════════════════


def _channel_arg(value: str) -> Channel:
    channel = Channel.parse(value)
    if channel is None:
        raise argparse.ArgumentTypeError(f"unknown notification method: {value!r}")
    return channel


def _alert_type_arg(value: str) -> AlertType:
    alert_type = AlertType.parse(value)
    if alert_type is None:
        choices = ", ".join(t.value for t in AlertType)
        raise argparse.ArgumentTypeError(f"unknown alert type {value!r} (choose from {choices})")
    return alert_type


def _filter_arg(value: str) -> StatusFilter:
    status_filter = StatusFilter.parse(value)
    if status_filter is None:
        choices = ", ".join(f.value for f in StatusFilter)
        raise argparse.ArgumentTypeError(f"unknown filter {value!r} (choose from {choices})")
    return status_filter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sems-monitor",
        description="Smart meter monitoring: device dashboard and customer notifications.",
    )
    parser.add_argument("--settings", type=Path, help="Path to settings.yaml")
    parser.add_argument(
        "--store-file", type=Path,
        help="Use a local realtime-database JSON export instead of Firebase",
    )
    parser.add_argument(
        "--backend", choices=("llm", "template"),
        help="Override generator.backend from settings",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on console")

    sub = parser.add_subparsers(dest="command", required=True)

    devices = sub.add_parser("devices", help="List devices")
    devices.add_argument("--search", default="", help="Match name, address, contact or email")
    devices.add_argument("--filter", type=_filter_arg, default=StatusFilter.ALL, dest="status_filter")

    sub.add_parser("summary", help="Dashboard counters")
    sub.add_parser("watch", help="Print the summary on every change (Ctrl+C to stop)")

    alert = sub.add_parser("alert", help="Generate a customer alert")
    alert.add_argument("device_id")
    alert.add_argument("--type", type=_alert_type_arg, required=True, dest="alert_type")
    alert.add_argument("--method", type=_channel_arg, default=Channel.EMAIL)
    alert.add_argument("--details", help="Outage details (required for Outage-Scheduled)")
    alert.add_argument("--recipient", help="Defaults to the device's email or contact number")
    alert.add_argument("--send", action="store_true", help="Dispatch after generating")

    bill = sub.add_parser("bill", help="Generate a billing notice")
    bill.add_argument("device_id")
    bill.add_argument("--method", type=_channel_arg, default=Channel.EMAIL)
    bill.add_argument("--recipient", help="Defaults to the device's email or contact number")
    bill.add_argument("--send", action="store_true", help="Dispatch after generating")

    create = sub.add_parser("account-create", help="Add a customer account")
    create.add_argument("--name", required=True)
    create.add_argument("--contact", required=True, help="Contact number; also the record key")
    create.add_argument("--email", default="")
    create.add_argument("--address", default="")
    create.add_argument("--serial", default="")
    create.add_argument("--price", type=float, default=0.0)
    create.add_argument(
        "--payment", choices=[p.value for p in PaymentStatus], default=PaymentStatus.PAID.value,
    )
    create.add_argument(
        "--status",
        choices=[DeviceStatus.ACTIVATED.value, DeviceStatus.DEACTIVATED.value],
        default=DeviceStatus.ACTIVATED.value,
    )

    delete = sub.add_parser("account-delete", help="Remove a device record")
    delete.add_argument("device_id")

    return parser


# ═══════════════════════════════════════════════════════════
# Commands
# ═══════════════════════════════════════════════════════════


def _print_devices(devices: list[Device]) -> None:
    if not devices:
        print("No devices found.")
        return
    header = f"{'ID':<16} {'Name':<22} {'Status':<12} {'Tampering':<20} {'Outage':<16} {'Payment':<8}"
    print(header)
    print("─" * len(header))
    for device in devices:
        badges = badge_labels(device)
        print(
            f"{device.device_id:<16} {device.name[:22]:<22} {badges['status']:<12} "
            f"{badges['tampering']:<20} {badges['outage']:<16} {badges['payment']:<8}"
        )


def _print_summary(devices: list[Device]) -> None:
    summary = summarize(devices)
    print(f"Total devices:        {summary.total}")
    print(f"Tampered meters:      {summary.tampered}")
    print(f"Outages detected:     {summary.outages}")
    print(f"Most outage location: {summary.most_outage_location}")


async def _watch(repo: DeviceRepository) -> int:
    def _on_change(devices: list[Device]) -> None:
        print(f"\n═══ {len(devices)} devices ═══")
        _print_summary(devices)

    unsubscribe = await repo.watch(_on_change)
    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Watch stopped")
    finally:
        await unsubscribe()
    return 0


async def _notify(
    args: argparse.Namespace,
    config: AppConfig,
    repo: DeviceRepository,
    session: NotificationSession,
) -> int:
    device = await repo.get_device(args.device_id)
    if device is None:
        print(f"❌ Device {args.device_id} not found")
        return 1

    if args.command == "alert":
        sheet: Any = build_alert_sheet(device, args.alert_type, args.method, args.details)
    else:
        sheet = build_billing_sheet(device, args.method, date.today(), config.billing)

    message = await session.regenerate(sheet)
    if message is None:
        print(f"❌ {session.error}")
        return 1

    if message.subject:
        print(f"Subject: {message.subject}\n")
    print(message.body)

    if not args.send:
        return 0

    recipient = args.recipient or default_recipient(device, args.method)
    result = await session.send(recipient)
    print(f"\n{'✅' if result.success else '❌'} {result.message}")
    return 0 if result.success else 1


async def run(
    args: argparse.Namespace,
    config: AppConfig,
    store: Optional[RealtimeStore] = None,
    transport: Optional[MailTransport] = None,
) -> int:
    """Execute one parsed command.

    Args:
        args: Parsed CLI arguments.
        config: Loaded application configuration.
        store: Store to use instead of the one selected by args/config.
        transport: Mail transport override for the dispatcher.

    Returns:
        Process exit code.
    """
    if args.backend:
        config = dataclasses.replace(config, generator=GeneratorConfig(backend=args.backend))

    async with AsyncExitStack() as stack:
        if store is None:
            if args.store_file:
                store = await stack.enter_async_context(
                    MemoryStore.from_json_file(args.store_file)
                )
            elif config.store.database_url:
                store = await stack.enter_async_context(FirebaseStore(config.store))
            else:
                raise ConfigurationError(
                    "FIREBASE_DATABASE_URL is not set; pass --store-file to use a local export."
                )
        repo = DeviceRepository(store, config.store.devices_path)

        if args.command == "devices":
            _print_devices(filter_devices(await repo.list_devices(), args.search, args.status_filter))
            return 0
        if args.command == "summary":
            _print_summary(await repo.list_devices())
            return 0
        if args.command == "watch":
            return await _watch(repo)
        if args.command == "account-create":
            account = DeviceAccount(
                name=args.name,
                email=args.email,
                address=args.address,
                contact_number=args.contact,
                serial=args.serial,
                payment_status=PaymentStatus(args.payment),
                status=DeviceStatus(args.status),
                price=args.price,
            )
            key = await repo.create_account(account)
            print(f"✅ Account created: {key}")
            return 0
        if args.command == "account-delete":
            if await repo.get_device(args.device_id) is None:
                print(f"❌ Device {args.device_id} not found")
                return 1
            await repo.delete_device(args.device_id)
            print(f"✅ Device {args.device_id} deleted")
            return 0

        ai_client = None
        if config.generator.backend == "llm":
            ai_client = await stack.enter_async_context(AIClient(config.ai))
        session = NotificationSession(
            build_engine(config, ai_client),
            NotificationDispatcher(config.mail, transport),
        )
        return await _notify(args, config, repo, session)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(settings_path=args.settings)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Configuration error: {e}")
        return 2

    set_console_level("DEBUG" if args.verbose else config.log_level)

    try:
        return asyncio.run(run(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    except SemsError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
