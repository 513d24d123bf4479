"""Running adb against the selected device and listing connected devices."""

from __future__ import annotations

import re
import subprocess
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

ADB = "adb"
POLL_INTERVAL = 4.0

_BATTERY_VALUE = re.compile(r"\+?[0-9]+")


class DeviceHandle:
    """Thread-safe holder of the selected device serial; ``None`` lets adb pick."""

    def __init__(self, serial: str | None = None) -> None:
        self._lock = threading.Lock()
        self._serial = serial

    def current(self) -> str | None:
        with self._lock:
            return self._serial

    def select(self, serial: str | None) -> None:
        with self._lock:
            self._serial = serial


@dataclass
class DeviceEntry:
    serial: str
    state: str
    model: str | None = None
    release: str | None = None
    sdk: str | None = None
    battery: int | None = None

    def is_ready(self) -> bool:
        return self.state == "device"


def command(handle: DeviceHandle | None, *args: str) -> list[str]:
    """Build an adb argument list aimed at the selected device, if any."""
    argv = [ADB]
    serial = handle.current() if handle is not None else None
    if serial is not None:
        argv += ["-s", serial]
    argv.extend(args)
    return argv


def is_available() -> bool:
    try:
        result = subprocess.run(
            [ADB, "version"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError:
        return False
    return result.returncode == 0


def parse_devices_output(text: str) -> list[DeviceEntry]:
    """Parse the output of ``adb devices`` (the header line is skipped)."""
    entries = []
    for line in text.splitlines()[1:]:
        parts = line.split()
        if len(parts) >= 2:
            entries.append(DeviceEntry(serial=parts[0], state=parts[1]))
    return entries


def parse_battery_level(text: str) -> int | None:
    """Return the ``level:`` value from ``dumpsys battery`` output."""
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("level:"):
            value = stripped[len("level:"):].strip()
            if not _BATTERY_VALUE.fullmatch(value):
                return None
            level = int(value)
            return level if level <= 255 else None
    return None


def _run(argv: list[str]) -> subprocess.CompletedProcess | None:
    try:
        return subprocess.run(argv, capture_output=True, check=False)
    except OSError:
        return None


def _getprop(serial: str, key: str) -> str | None:
    result = _run([ADB, "-s", serial, "shell", "getprop", key])
    if result is None or result.returncode != 0:
        return None
    value = result.stdout.decode(errors="replace").strip()
    return value or None


def _battery(serial: str) -> int | None:
    result = _run([ADB, "-s", serial, "shell", "dumpsys", "battery"])
    if result is None or result.returncode != 0:
        return None
    return parse_battery_level(result.stdout.decode(errors="replace"))


def list_all() -> list[DeviceEntry]:
    """List connected devices, with properties filled in for ready ones."""
    result = _run([ADB, "devices"])
    if result is None:
        return []
    entries = parse_devices_output(result.stdout.decode(errors="replace"))
    for entry in entries:
        if entry.is_ready():
            entry.model = _getprop(entry.serial, "ro.product.model")
            entry.release = _getprop(entry.serial, "ro.build.version.release")
            entry.sdk = _getprop(entry.serial, "ro.build.version.sdk")
            entry.battery = _battery(entry.serial)
    return entries


def spawn_poller(
    send: Callable[[list[DeviceEntry]], object],
    interval: float = POLL_INTERVAL,
) -> threading.Thread:
    """Poll the device list in the background; stops once ``send`` raises."""

    def loop() -> None:
        while True:
            entries = list_all()
            try:
                send(entries)
            except Exception:
                break
            time.sleep(interval)

    thread = threading.Thread(target=loop, name="adb-device-poller", daemon=True)
    thread.start()
    return thread