"""Command palette entries and fuzzy filtering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from collections.abc import Iterable


class CommandKind(Enum):
    QUIT = auto()
    TOGGLE_HELP = auto()
    TOGGLE_MOUSE = auto()
    PICK_PROJECT = auto()
    OPEN_WORKSPACES = auto()
    SAVE_WORKSPACE = auto()
    RUN_GRADLE = auto()
    PICK_VARIANT = auto()
    PICK_DEVICE = auto()
    LAUNCH_EMULATOR = auto()
    CYCLE_FOCUS_NEXT = auto()
    CYCLE_FOCUS_PREV = auto()
    NEXT_SCREEN = auto()
    PREV_SCREEN = auto()
    EDIT_LAYOUT = auto()
    TOGGLE_ZOOM = auto()
    TOGGLE_PANEL = auto()
    FOCUS_PANEL = auto()


@dataclass(frozen=True)
class PanelSpec:
    """What the palette needs to know about a panel."""

    id: str
    name: str
    toggle_key: str
    focus_key: str
    requires_jvm: bool = False


@dataclass(frozen=True)
class CommandEntry:
    kind: CommandKind
    label: str
    category: str
    hint: str
    panel: str | None = None


_BASE_COMMANDS = (
    (CommandKind.QUIT, "Quit", "App", "q"),
    (CommandKind.TOGGLE_HELP, "Toggle help overlay", "App", "?"),
    (CommandKind.TOGGLE_MOUSE, "Toggle mouse mode", "App", "Alt+m"),
    (CommandKind.PICK_PROJECT, "Pick Android project…", "Project", "w"),
    (CommandKind.OPEN_WORKSPACES, "Open saved workspaces…", "Project", "W"),
    (CommandKind.SAVE_WORKSPACE, "Save current workspace", "Project", "S"),
    (CommandKind.RUN_GRADLE, "Run Gradle default task", "Build", "r"),
    (CommandKind.PICK_VARIANT, "Pick build variant…", "Build", "V"),
    (CommandKind.PICK_DEVICE, "Pick device…", "Device", "d"),
    (CommandKind.LAUNCH_EMULATOR, "Launch emulator AVD…", "Device", "e"),
    (CommandKind.CYCLE_FOCUS_NEXT, "Focus next panel", "Layout", "Tab"),
    (CommandKind.CYCLE_FOCUS_PREV, "Focus previous panel", "Layout", "Shift+Tab"),
    (CommandKind.NEXT_SCREEN, "Next screen", "Layout", "]"),
    (CommandKind.PREV_SCREEN, "Previous screen", "Layout", "["),
    (CommandKind.EDIT_LAYOUT, "Edit grid layout", "Layout", "0"),
    (CommandKind.TOGGLE_ZOOM, "Toggle zoom focused panel", "Layout", "z"),
)


def _ascii_lower(text: str) -> str:
    return "".join(c.lower() if c.isascii() else c for c in text)


def fuzzy_score(query: str, target: str) -> int | None:
    """Score ``query`` as a case-insensitive subsequence of ``target``; None if absent."""
    wanted = query.lower()
    haystack = target.lower()
    if not wanted:
        return 0
    matched = 0
    score = 0
    last_match: int | None = None
    prev_was_sep = True
    for index, char in enumerate(haystack):
        if matched < len(wanted) and wanted[matched] == char:
            score += 10
            if last_match is not None:
                if index == last_match + 1:
                    score += 6
            elif index == 0:
                score += 4
            if prev_was_sep:
                score += 8
            last_match = index
            matched += 1
        prev_was_sep = not char.isalnum()
    if matched == len(wanted):
        return score - len(haystack) // 4
    return None


def score_entry(query: str, entry: CommandEntry) -> int | None:
    """Best score of the query against label, category or an exact hint."""
    if not query:
        return 0
    scores = [fuzzy_score(query, entry.label), fuzzy_score(query, entry.category)]
    if _ascii_lower(entry.hint) == _ascii_lower(query):
        scores.append(200)
    present = [s for s in scores if s is not None]
    return max(present) if present else None


@dataclass
class CommandPalette:
    commands: list[CommandEntry]
    query: str = ""
    selected: int = 0

    def filtered(self) -> list[tuple[int, int]]:
        """(index, score) of matching commands, best first, ties by index."""
        matches = []
        for index, entry in enumerate(self.commands):
            score = score_entry(self.query, entry)
            if score is not None:
                matches.append((index, score))
        matches.sort(key=lambda item: (-item[1], item[0]))
        return matches

    def move_down(self, length: int) -> None:
        if length == 0:
            self.selected = 0
            return
        self.selected = min(self.selected + 1, length - 1)

    def move_up(self) -> None:
        self.selected = max(self.selected - 1, 0)

    def current_entry(self) -> CommandEntry | None:
        matches = self.filtered()
        if self.selected < len(matches):
            return self.commands[matches[self.selected][0]]
        return None


def build_commands(jvm_available: bool, panels: Iterable[PanelSpec]) -> list[CommandEntry]:
    """All palette commands, with toggle/focus entries for each usable panel."""
    commands = [CommandEntry(*row) for row in _BASE_COMMANDS]
    for panel in panels:
        if panel.requires_jvm and not jvm_available:
            continue
        commands.append(
            CommandEntry(
                CommandKind.TOGGLE_PANEL,
                f"Toggle panel: {panel.name}",
                "Panel",
                panel.toggle_key,
                panel.id,
            )
        )
        commands.append(
            CommandEntry(
                CommandKind.FOCUS_PANEL,
                f"Focus panel: {panel.name}",
                "Panel",
                panel.focus_key,
                panel.id,
            )
        )
    return commands