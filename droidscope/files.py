"""A lazily expanded tree of the project's files, with a preview of the selected one."""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

MAX_PREVIEW_BYTES = 64 * 1024


@dataclass
class FileNode:
    name: str
    path: Path
    is_dir: bool
    expanded: bool = False
    children: list[FileNode] | None = None


@dataclass
class FlatEntry:
    depth: int
    name: str
    path: Path
    is_dir: bool
    expanded: bool


@dataclass
class FileMeta:
    size_bytes: int
    modified: str | None


@dataclass
class TextDetail:
    content: str


@dataclass
class BinaryDetail:
    reason: str


@dataclass
class TooLargeDetail:
    size_bytes: int


DetailKind = TextDetail | BinaryDetail | TooLargeDetail


def read_children(path: Path | str) -> list[FileNode]:
    """The entries of a directory: directories first, then by case-insensitive name."""
    children = []
    with os.scandir(path) as entries:
        for entry in entries:
            children.append(
                FileNode(
                    name=entry.name,
                    path=Path(entry.path),
                    is_dir=entry.is_dir(follow_symlinks=False),
                )
            )
    children.sort(key=lambda node: (not node.is_dir, node.name.lower()))
    return children


def _flatten(node: FileNode, depth: int) -> Iterator[FlatEntry]:
    yield FlatEntry(depth, node.name, node.path, node.is_dir, node.expanded)
    if node.expanded and node.children is not None:
        for child in node.children:
            yield from _flatten(child, depth + 1)


def _find_node(nodes: list[FileNode], target: Path) -> FileNode | None:
    for node in nodes:
        if node.path == target:
            return node
        if node.children is not None:
            found = _find_node(node.children, target)
            if found is not None:
                return found
    return None


def _format_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M")


class FilesState:
    """Browsing state of the files panel.

    Keys given to :meth:`handle_key` are single characters (``"j"``, ``" "``)
    or the names ``up``, ``down``, ``left``, ``right``, ``enter``, ``tab``
    and ``backspace``.
    """

    def __init__(self, root: Path | str | None = None) -> None:
        self.root: Path | None = None
        self.root_children: list[FileNode] | None = None
        self.selected_index = 0
        self.error: str | None = None
        self.detail_open = False
        self.detail_focused = False
        self.detail_scroll = 0
        self.selected_file: Path | None = None
        self.selected_meta: FileMeta | None = None
        self.selected_kind: DetailKind | None = None
        self.detail_error: str | None = None
        self.set_root(root)

    def set_root(self, root: Path | str | None) -> None:
        root = Path(root) if root is not None else None
        if self.root == root:
            return
        self.root = root
        self.selected_index = 0
        self._close_detail()
        self.refresh()

    def refresh(self) -> None:
        """Reread the top level and reload the open file, if it still exists."""
        self.error = None
        self.selected_index = 0
        self.root_children = None
        if self.root is None:
            return
        try:
            self.root_children = read_children(self.root)
        except OSError as exc:
            self.error = f"files: {exc}"
        if self.selected_file is not None:
            if self.selected_file.exists():
                self._load_detail(self.selected_file)
            else:
                self._close_detail()

    def handle_key(self, key: str) -> bool:
        """Act on a key press; return whether the key was used."""
        key = key if len(key) == 1 else key.lower()
        if self.detail_open and self.detail_focused:
            if key in ("up", "k"):
                self.detail_scroll = max(self.detail_scroll - 1, 0)
            elif key in ("down", "j"):
                self.detail_scroll += 1
            elif key == " ":
                self.detail_scroll += 12
            elif key == "tab":
                self.detail_focused = False
            elif key == "backspace":
                self._close_detail()
            else:
                return False
            return True

        if key in ("up", "k"):
            self.selected_index = max(self.selected_index - 1, 0)
        elif key in ("down", "j"):
            total = len(self.flatten_visible())
            if total:
                self.selected_index = min(self.selected_index + 1, total - 1)
        elif key in ("enter", "right"):
            self._open_or_toggle_selected()
        elif key == "left":
            self._collapse_selected()
        elif key == "backspace":
            if self.detail_open:
                self._close_detail()
            else:
                self._collapse_selected()
        elif key == "tab" and self.detail_open:
            self.detail_focused = True
        elif key == "r":
            self.refresh()
        else:
            return False
        return True

    def flatten_visible(self) -> list[FlatEntry]:
        """Visible rows of the tree, depth-first."""
        out: list[FlatEntry] = []
        for child in self.root_children or []:
            out.extend(_flatten(child, 0))
        return out

    def root_label(self) -> str | None:
        return str(self.root) if self.root is not None else None

    def selected_label(self) -> str:
        if self.selected_file is not None and self.selected_file.name:
            return self.selected_file.name
        return "detail"

    def _selected_entry(self, flat: list[FlatEntry]) -> FlatEntry | None:
        if 0 <= self.selected_index < len(flat):
            return flat[self.selected_index]
        return None

    def _open_or_toggle_selected(self) -> None:
        entry = self._selected_entry(self.flatten_visible())
        if entry is None:
            return
        if entry.is_dir:
            self._toggle_dir(entry.path)
        else:
            self.detail_open = True
            self.detail_focused = False
            self._load_detail(entry.path)

    def _toggle_dir(self, path: Path) -> None:
        if self.root_children is None:
            return
        node = _find_node(self.root_children, path)
        if node is None:
            return
        if node.expanded:
            node.expanded = False
            return
        try:
            node.children = read_children(node.path)
        except OSError as exc:
            self.error = f"files: {exc}"
            return
        node.expanded = True
        self.error = None

    def _collapse_selected(self) -> None:
        flat = self.flatten_visible()
        entry = self._selected_entry(flat)
        if entry is None:
            return
        if entry.is_dir and entry.expanded:
            if self.root_children is not None:
                node = _find_node(self.root_children, entry.path)
                if node is not None:
                    node.expanded = False
            return
        if entry.depth == 0:
            return
        target_depth = entry.depth - 1
        for index in range(self.selected_index - 1, -1, -1):
            if flat[index].depth == target_depth:
                self.selected_index = index
                break

    def _load_detail(self, path: Path) -> None:
        self.selected_file = path
        self.selected_meta = None
        self.selected_kind = None
        self.detail_error = None
        self.detail_scroll = 0
        try:
            stat = path.stat()
        except OSError as exc:
            self.detail_error = f"files: {exc}"
            return
        self.selected_meta = FileMeta(stat.st_size, _format_time(stat.st_mtime))
        if stat.st_size > MAX_PREVIEW_BYTES:
            self.selected_kind = TooLargeDetail(stat.st_size)
            return
        try:
            data = path.read_bytes()
        except OSError as exc:
            self.detail_error = f"files: {exc}"
            return
        if b"\0" in data:
            self.selected_kind = BinaryDetail("binary file")
            return
        self.selected_kind = TextDetail(data.decode(errors="replace"))

    def _close_detail(self) -> None:
        self.detail_open = False
        self.detail_focused = False
        self.detail_scroll = 0
        self.selected_file = None
        self.selected_meta = None
        self.selected_kind = None
        self.detail_error = None