"""One-shot device actions: screenshots, toggles, input and settings."""

from __future__ import annotations

import re
import struct
import subprocess
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from droidscope.adb import DeviceHandle, command

_UINT = re.compile(r"\+?[0-9]+")
_INPUT_SAFE = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789.,_-@:/"
)


class DeviceActionError(Exception):
    """Raised when a device action cannot be carried out."""


class DeviceAction(Enum):
    SCREENSHOT = "screenshot"
    SCREEN_RECORD = "screenrecord"
    ROTATE_RIGHT = "rotate right"
    DARK_MODE_ON = "dark mode on"
    DARK_MODE_OFF = "dark mode off"
    LOCALE = "set locale"
    FONT_SCALE = "font scale"
    BATTERY_UNPLUG = "battery unplug"
    BATTERY_PLUG = "battery plug"
    AIRPLANE_ON = "airplane on"
    AIRPLANE_OFF = "airplane off"
    WIFI_ON = "wifi on"
    WIFI_OFF = "wifi off"
    DATA_ON = "data on"
    DATA_OFF = "data off"
    INPUT_TEXT = "input text"
    TAP = "tap"

    def label(self) -> str:
        return self.value

    def description(self) -> str:
        return _DESCRIPTIONS[self]

    def needs_input(self) -> bool:
        return self in _INPUT_ACTIONS


_DESCRIPTIONS = {
    DeviceAction.SCREENSHOT: "Save current screen PNG in the current directory",
    DeviceAction.SCREEN_RECORD: "Record 10 seconds to MP4 in the current directory",
    DeviceAction.ROTATE_RIGHT: "Disable auto-rotate and advance user_rotation",
    DeviceAction.DARK_MODE_ON: "cmd uimode night yes",
    DeviceAction.DARK_MODE_OFF: "cmd uimode night no",
    DeviceAction.LOCALE: "Set persist.sys.locale and restart zygote",
    DeviceAction.FONT_SCALE: "settings put system font_scale",
    DeviceAction.BATTERY_UNPLUG: "dumpsys battery unplug",
    DeviceAction.BATTERY_PLUG: "dumpsys battery reset",
    DeviceAction.AIRPLANE_ON: "Enable airplane mode",
    DeviceAction.AIRPLANE_OFF: "Disable airplane mode",
    DeviceAction.WIFI_ON: "svc wifi enable",
    DeviceAction.WIFI_OFF: "svc wifi disable",
    DeviceAction.DATA_ON: "svc data enable",
    DeviceAction.DATA_OFF: "svc data disable",
    DeviceAction.INPUT_TEXT: "adb shell input text",
    DeviceAction.TAP: "adb shell input tap x y",
}

_INPUT_ACTIONS = frozenset(
    {DeviceAction.LOCALE, DeviceAction.FONT_SCALE, DeviceAction.INPUT_TEXT, DeviceAction.TAP}
)

_SIMPLE_SHELL = {
    DeviceAction.DARK_MODE_ON: ("cmd", "uimode", "night", "yes"),
    DeviceAction.DARK_MODE_OFF: ("cmd", "uimode", "night", "no"),
    DeviceAction.BATTERY_UNPLUG: ("dumpsys", "battery", "unplug"),
    DeviceAction.BATTERY_PLUG: ("dumpsys", "battery", "reset"),
    DeviceAction.WIFI_ON: ("svc", "wifi", "enable"),
    DeviceAction.WIFI_OFF: ("svc", "wifi", "disable"),
    DeviceAction.DATA_ON: ("svc", "data", "enable"),
    DeviceAction.DATA_OFF: ("svc", "data", "disable"),
}

ACTIONS: tuple[DeviceAction, ...] = tuple(DeviceAction)


@dataclass
class DeviceActionResult:
    action: DeviceAction
    success: bool
    summary: str
    output: str


@dataclass
class DeviceActionsState:
    selected: int = 0
    running: bool = False
    last: DeviceActionResult | None = None
    input: str = ""

    def move_down(self) -> None:
        if ACTIONS:
            self.selected = min(self.selected + 1, len(ACTIONS) - 1)

    def move_up(self) -> None:
        self.selected = max(self.selected - 1, 0)

    def selected_action(self) -> DeviceAction:
        if 0 <= self.selected < len(ACTIONS):
            return ACTIONS[self.selected]
        return DeviceAction.SCREENSHOT


def encode_input_text(text: str) -> str:
    """Encode text for ``input text``: spaces become %s and percent signs %25."""
    out = []
    for char in text:
        if char == " ":
            out.append("%s")
        elif char == "%":
            out.append("%25")
        elif char in _INPUT_SAFE:
            out.append(char)
        else:
            raise DeviceActionError("text supports letters, digits, spaces, and .,_-@:/%")
    return "".join(out)


def parse_coord(value: str) -> int:
    if _UINT.fullmatch(value) and int(value) <= 0xFFFFFFFF:
        return int(value)
    raise DeviceActionError("tap coordinates must be positive integers")


def parse_tap(value: str) -> tuple[int, int]:
    """Read ``"x y"`` into a pair of coordinates."""
    parts = value.split()
    if len(parts) != 2:
        raise DeviceActionError("tap expects: x y")
    return parse_coord(parts[0]), parse_coord(parts[1])


def validate_locale(locale: str) -> str:
    """Return the trimmed locale tag, or raise if it is empty or unsafe."""
    locale = locale.strip()
    if not locale:
        raise DeviceActionError("locale is empty")
    if not all((c.isascii() and c.isalnum()) or c in "-_" for c in locale):
        raise DeviceActionError("locale may contain only letters, digits, dash, underscore")
    return locale


def _as_single(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return float("inf") if value > 0 else float("-inf")


def parse_font_scale(value: str) -> str:
    """Return the trimmed font scale text once it is a number between 0.5 and 2.0."""
    value = value.strip()
    try:
        if "_" in value:
            raise ValueError(value)
        parsed = _as_single(float(value))
    except ValueError:
        raise DeviceActionError("font scale must be a number, for example 1.15") from None
    if not 0.5 <= parsed <= 2.0:
        raise DeviceActionError("font scale must be between 0.5 and 2.0")
    return value


def _run(argv: list[str]) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(argv, capture_output=True, check=False)
    except OSError as exc:
        raise DeviceActionError(str(exc)) from exc


def _output_text(result: subprocess.CompletedProcess) -> str:
    stdout = result.stdout.decode(errors="replace").strip()
    stderr = result.stderr.decode(errors="replace").strip()
    if not stderr:
        return stdout
    if not stdout:
        return stderr
    return f"{stdout}\n{stderr}"


def _error_text(result: subprocess.CompletedProcess) -> str:
    text = _output_text(result)
    if text:
        return text
    code = result.returncode
    return f"signal: {-code}" if code < 0 else f"exit status: {code}"


def _run_shell(handle: DeviceHandle | None, action: DeviceAction, *args: str) -> tuple[str, str]:
    result = _run(command(handle, "shell", *args))
    if result.returncode != 0:
        raise DeviceActionError(_error_text(result))
    text = _output_text(result)
    lines = text.splitlines()
    if lines and lines[0].strip():
        summary = f"{action.label()}: {lines[0].strip()}"
    else:
        summary = f"{action.label()} done"
    return summary, text


def _stamp() -> str:
    return datetime.now().strftime("%Y%m%d-%H%M%S")


def _artifact_path(kind: str, ext: str) -> Path:
    try:
        directory = Path.cwd()
    except OSError as exc:
        raise DeviceActionError(str(exc)) from exc
    return directory / f"droidscope-{kind}-{_stamp()}.{ext}"


def _screenshot(handle: DeviceHandle | None) -> tuple[str, str]:
    path = _artifact_path("screenshot", "png")
    result = _run(command(handle, "exec-out", "screencap", "-p"))
    if result.returncode != 0:
        raise DeviceActionError(_error_text(result))
    try:
        path.write_bytes(result.stdout)
    except OSError as exc:
        raise DeviceActionError(str(exc)) from exc
    return f"screenshot saved: {path}", str(path)


def _screenrecord(handle: DeviceHandle | None) -> tuple[str, str]:
    local = _artifact_path("screenrecord", "mp4")
    remote = f"/sdcard/droidscope-screenrecord-{_stamp()}.mp4"
    record = _run(command(handle, "shell", "screenrecord", "--time-limit", "10", remote))
    if record.returncode != 0:
        raise DeviceActionError(_error_text(record))
    pull = _run(command(handle, "pull", remote, str(local)))
    try:
        _run(command(handle, "shell", "rm", "-f", remote))
    except DeviceActionError:
        pass
    if pull.returncode != 0:
        raise DeviceActionError(_error_text(pull))
    return f"screenrecord saved: {local}", _output_text(pull)


def _rotate_right(handle: DeviceHandle | None) -> tuple[str, str]:
    current = _run(command(handle, "shell", "settings", "get", "system", "user_rotation"))
    raw = current.stdout.decode(errors="replace").strip()
    rotation = int(raw) if _UINT.fullmatch(raw) and int(raw) <= 255 else 0
    following = (rotation + 1) % 4
    action = DeviceAction.ROTATE_RIGHT
    _run_shell(handle, action, "settings", "put", "system", "accelerometer_rotation", "0")
    _run_shell(handle, action, "settings", "put", "system", "user_rotation", str(following))
    return f"rotation set to {following}", ""


def _set_locale(handle: DeviceHandle | None, text: str) -> tuple[str, str]:
    locale = validate_locale(text)
    _run_shell(handle, DeviceAction.LOCALE, "setprop", "persist.sys.locale", locale)
    try:
        _, output = _run_shell(handle, DeviceAction.LOCALE, "setprop", "ctl.restart", "zygote")
    except DeviceActionError as exc:
        return f"locale set: {locale} (restart failed)", f"restart zygote: {exc}"
    return f"locale set: {locale}", output


def _set_font_scale(handle: DeviceHandle | None, text: str) -> tuple[str, str]:
    value = parse_font_scale(text)
    _run_shell(handle, DeviceAction.FONT_SCALE, "settings", "put", "system", "font_scale", value)
    return f"font scale set: {value}", ""


def _set_airplane(handle: DeviceHandle | None, enabled: bool) -> tuple[str, str]:
    action = DeviceAction.AIRPLANE_ON if enabled else DeviceAction.AIRPLANE_OFF
    mode = "enable" if enabled else "disable"
    try:
        return _run_shell(handle, action, "cmd", "connectivity", "airplane-mode", mode)
    except DeviceActionError as first:
        value = "1" if enabled else "0"
        state = "true" if enabled else "false"
        _run_shell(handle, action, "settings", "put", "global", "airplane_mode_on", value)
        _, broadcast = _run_shell(
            handle,
            action,
            "am",
            "broadcast",
            "-a",
            "android.intent.action.AIRPLANE_MODE",
            "--ez",
            "state",
            state,
        )
        word = "enabled" if enabled else "disabled"
        return f"airplane mode {word}", f"cmd connectivity failed: {first}\n{broadcast}"


def _input_text(handle: DeviceHandle | None, text: str) -> tuple[str, str]:
    text = text.strip()
    if not text:
        raise DeviceActionError("text is empty")
    encoded = encode_input_text(text)
    _run_shell(handle, DeviceAction.INPUT_TEXT, "input", "text", encoded)
    return f"input text sent ({len(text)} chars)", encoded


def _tap(handle: DeviceHandle | None, text: str) -> tuple[str, str]:
    x, y = parse_tap(text)
    _run_shell(handle, DeviceAction.TAP, "input", "tap", str(x), str(y))
    return f"tap sent: {x},{y}", ""


def _perform(handle: DeviceHandle | None, action: DeviceAction, text: str) -> tuple[str, str]:
    if action in _SIMPLE_SHELL:
        return _run_shell(handle, action, *_SIMPLE_SHELL[action])
    match action:
        case DeviceAction.SCREENSHOT:
            return _screenshot(handle)
        case DeviceAction.SCREEN_RECORD:
            return _screenrecord(handle)
        case DeviceAction.ROTATE_RIGHT:
            return _rotate_right(handle)
        case DeviceAction.LOCALE:
            return _set_locale(handle, text)
        case DeviceAction.FONT_SCALE:
            return _set_font_scale(handle, text)
        case DeviceAction.AIRPLANE_ON:
            return _set_airplane(handle, True)
        case DeviceAction.AIRPLANE_OFF:
            return _set_airplane(handle, False)
        case DeviceAction.INPUT_TEXT:
            return _input_text(handle, text)
        case DeviceAction.TAP:
            return _tap(handle, text)
    raise DeviceActionError(f"unknown action: {action}")


def run_action(
    handle: DeviceHandle | None, action: DeviceAction, text: str | None = None
) -> DeviceActionResult:
    """Carry out ``action``; failures are reported in the result."""
    try:
        summary, output = _perform(handle, action, text or "")
    except DeviceActionError as exc:
        message = str(exc)
        return DeviceActionResult(action, False, f"{action.label()} failed: {message}", message)
    return DeviceActionResult(action, True, summary, output)


def spawn_action(
    handle: DeviceHandle | None,
    action: DeviceAction,
    text: str | None,
    send: Callable[[DeviceActionResult], object],
) -> threading.Thread:
    """Run the action in the background and hand its result to ``send``."""

    def work() -> None:
        send(run_action(handle, action, text))

    thread = threading.Thread(target=work, name="device-action", daemon=True)
    thread.start()
    return thread