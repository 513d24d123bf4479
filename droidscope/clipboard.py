"""Copying text to the system clipboard through a platform tool."""

from __future__ import annotations

import subprocess
import sys


class ClipboardError(Exception):
    """Raised when no clipboard tool could take the text."""


def candidates() -> list[tuple[str, tuple[str, ...]]]:
    """Clipboard programs to try on this platform, in order."""
    if sys.platform == "darwin":
        return [("pbcopy", ())]
    if sys.platform.startswith("win"):
        return [("clip", ())]
    return [
        ("wl-copy", ()),
        ("xclip", ("-selection", "clipboard")),
        ("xsel", ("--clipboard", "--input")),
    ]


def copy(text: str) -> str:
    """Copy ``text`` and return the name of the tool that took it."""
    for binary, args in candidates():
        try:
            process = subprocess.Popen(
                [binary, *args],
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError:
            continue
        try:
            process.stdin.write(text.encode())
            process.stdin.close()
        except OSError as exc:
            process.kill()
            process.wait()
            raise ClipboardError(f"{binary}: write failed: {exc}") from exc
        try:
            code = process.wait()
        except OSError as exc:
            raise ClipboardError(f"{binary}: {exc}") from exc
        if code == 0:
            return binary
        raise ClipboardError(f"{binary} exited with exit status: {code}")
    raise ClipboardError("no clipboard tool found (pbcopy/xclip/wl-copy/clip)")