import pytest

from droidscope.command_palette import (
    CommandEntry,
    CommandKind,
    CommandPalette,
    PanelSpec,
    build_commands,
    fuzzy_score,
    score_entry,
)

PANELS = [
    PanelSpec(id="logcat", name="Logcat", toggle_key="L", focus_key="l"),
    PanelSpec(id="gradle", name="Gradle", toggle_key="G", focus_key="g", requires_jvm=True),
]


def test_fuzzy_empty_query_scores_zero():
    assert fuzzy_score("", "anything") == 0


def test_fuzzy_non_subsequence_is_none():
    assert fuzzy_score("xyz", "Quit") is None
    assert fuzzy_score("tiuq", "Quit") is None


def test_fuzzy_is_case_insensitive():
    assert fuzzy_score("QUIT", "quit") == fuzzy_score("quit", "Quit")


def test_fuzzy_prefers_consecutive_matches():
    assert fuzzy_score("abc", "abcx") > fuzzy_score("abc", "axbc")


def test_score_entry_exact_hint_wins():
    entry = CommandEntry(CommandKind.PICK_DEVICE, "Pick device…", "Device", "d")
    assert score_entry("d", entry) == 200
    assert score_entry("D", entry) == 200


def test_score_entry_no_match():
    entry = CommandEntry(CommandKind.QUIT, "Quit", "App", "q")
    assert score_entry("zz", entry) is None


def test_build_commands_includes_panels_when_jvm_available():
    commands = build_commands(True, PANELS)
    panel_commands = [(c.kind, c.panel, c.hint) for c in commands if c.category == "Panel"]
    assert panel_commands == [
        (CommandKind.TOGGLE_PANEL, "logcat", "L"),
        (CommandKind.FOCUS_PANEL, "logcat", "l"),
        (CommandKind.TOGGLE_PANEL, "gradle", "G"),
        (CommandKind.FOCUS_PANEL, "gradle", "g"),
    ]


def test_build_commands_skips_jvm_panels_without_jvm():
    commands = build_commands(False, PANELS)
    assert all(c.panel != "gradle" for c in commands)
    assert any(c.label == "Toggle panel: Logcat" for c in commands)


def test_filtered_empty_query_keeps_order():
    palette = CommandPalette(build_commands(True, PANELS))
    filtered = palette.filtered()
    assert [i for i, _ in filtered] == list(range(len(palette.commands)))
    assert {s for _, s in filtered} == {0}


def test_filtered_sorted_by_score_desc():
    palette = CommandPalette(build_commands(True, PANELS), query="panel")
    scores = [s for _, s in palette.filtered()]
    assert scores == sorted(scores, reverse=True)
    assert scores


def test_current_entry_follows_query():
    palette = CommandPalette(build_commands(True, PANELS), query="Quit")
    assert palette.current_entry().kind is CommandKind.QUIT


def test_current_entry_none_when_nothing_matches():
    palette = CommandPalette(build_commands(True, PANELS), query="zzzzqqq")
    assert palette.current_entry() is None


@pytest.mark.parametrize("length, steps, expected", [(3, 5, 2), (0, 1, 0), (5, 2, 2)])
def test_move_down_clamps(length, steps, expected):
    palette = CommandPalette([])
    for _ in range(steps):
        palette.move_down(length)
    assert palette.selected == expected


def test_move_up_stops_at_zero():
    palette = CommandPalette([], selected=1)
    palette.move_up()
    palette.move_up()
    assert palette.selected == 0