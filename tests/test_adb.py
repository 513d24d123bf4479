import subprocess
from unittest.mock import patch

import pytest

from droidscope.adb import (
    DeviceEntry,
    DeviceHandle,
    command,
    is_available,
    list_all,
    parse_battery_level,
    parse_devices_output,
    spawn_poller,
)

DEVICES_TEXT = "List of devices attached\nemulator-5554\tdevice\nSERIAL0001\tunauthorized\n\n"


def _completed(argv, stdout=b"", returncode=0):
    return subprocess.CompletedProcess(argv, returncode, stdout=stdout, stderr=b"")


def test_handle_select_and_current():
    handle = DeviceHandle()
    assert handle.current() is None
    handle.select("emulator-5554")
    assert handle.current() == "emulator-5554"
    handle.select(None)
    assert handle.current() is None


def test_command_without_serial():
    assert command(DeviceHandle(), "logcat", "-v", "threadtime") == [
        "adb",
        "logcat",
        "-v",
        "threadtime",
    ]


def test_command_with_serial():
    handle = DeviceHandle("emulator-5554")
    assert command(handle, "shell", "ls") == ["adb", "-s", "emulator-5554", "shell", "ls"]


def test_parse_devices_output_skips_header_and_blanks():
    entries = parse_devices_output(DEVICES_TEXT)
    assert [(e.serial, e.state) for e in entries] == [
        ("emulator-5554", "device"),
        ("SERIAL0001", "unauthorized"),
    ]
    assert entries[0].is_ready()
    assert not entries[1].is_ready()


def test_parse_devices_output_ignores_incomplete_lines():
    assert parse_devices_output("List of devices attached\nlonely\n") == []


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Current Battery Service state:\n  AC powered: false\n  level: 87\n", 87),
        ("  level: abc\n  level: 50\n", None),
        ("  scale: 100\n", None),
        ("  level: 300\n", None),
    ],
)
def test_parse_battery_level(text, expected):
    assert parse_battery_level(text) == expected


def test_is_available_false_without_binary():
    with patch("subprocess.run", side_effect=FileNotFoundError):
        assert is_available() is False


def test_is_available_true_on_success():
    with patch("subprocess.run", return_value=_completed(["adb", "version"])):
        assert is_available() is True


def test_list_all_fills_ready_devices():
    props = {"ro.product.model": b"Pixel 7\n", "ro.build.version.release": b"14\n"}

    def fake_run(argv, **kwargs):
        if argv[1:] == ["devices"]:
            return _completed(argv, DEVICES_TEXT.encode())
        if "getprop" in argv:
            return _completed(argv, props.get(argv[-1], b"\n"))
        if "battery" in argv:
            return _completed(argv, b"  level: 87\n")
        raise AssertionError(argv)

    with patch("subprocess.run", side_effect=fake_run):
        entries = list_all()
    ready, other = entries
    assert ready.model == "Pixel 7"
    assert ready.release == "14"
    assert ready.sdk is None
    assert ready.battery == 87
    assert other == DeviceEntry(serial="SERIAL0001", state="unauthorized")


def test_list_all_without_adb_is_empty():
    with patch("subprocess.run", side_effect=FileNotFoundError):
        assert list_all() == []


def test_spawn_poller_stops_when_send_fails():
    received = []

    def send(entries):
        received.append(entries)
        if len(received) >= 2:
            raise RuntimeError("closed")

    with patch("subprocess.run", side_effect=FileNotFoundError):
        thread = spawn_poller(send, interval=0)
        thread.join(timeout=5)
    assert not thread.is_alive()
    assert received == [[], []]