# droidscope

A library of building blocks for an Android developer console. The parts that
talk to a device run `adb`, which must be on your `PATH`.

## Modules

- `droidscope.adb` — `DeviceHandle`, a thread-safe holder of the selected
  device serial (`current()`, `select(serial)`); `command(handle, *args)`
  builds an `adb` argument list with `-s <serial>` when a device is selected;
  `is_available()` checks that `adb version` runs; `parse_devices_output` and
  `parse_battery_level` parse `adb devices` and `dumpsys battery` output;
  `list_all()` returns `DeviceEntry` objects, filling in model, Android
  release, SDK and battery level for ready devices; `spawn_poller(send,
  interval)` repeats `list_all()` on a background thread (every 4 seconds by
  default) until `send` raises.
- `droidscope.device_actions` — `DeviceAction` (screenshot, screen record,
  rotate right, dark mode on/off, locale, font scale, battery unplug/plug,
  airplane, Wi-Fi and mobile data on/off, input text, tap), `run_action(handle,
  action, text)` which always returns a `DeviceActionResult`, and
  `spawn_action` to run one on a thread. Screenshots and recordings are saved
  in the current directory as `droidscope-<kind>-<timestamp>.png/.mp4`. Input
  helpers `encode_input_text`, `parse_tap`, `parse_coord`, `validate_locale`
  and `parse_font_scale` raise `DeviceActionError` on bad input.
  `DeviceActionsState` keeps a selection over the action list.
- `droidscope.app_data_formats` — parsers for data read out of an app's
  private storage: `parse_ls` (`ls -la`), `parse_tables` and
  `parse_table_preview` (tab-separated `sqlite3` output),
  `parse_shared_preferences_xml` (SharedPreferences XML) and
  `parse_datastore_preferences` (Preferences DataStore protobuf), plus
  `validate_package`, `shell_quote`, `sql_identifier`, `join_path`,
  `parent_path` and `read_varint`.
- `droidscope.files` — `FilesState`, a lazily expanded tree of a local
  directory with a preview of the selected file (text, binary, or too large
  above 64 KiB). Keys passed to `handle_key` are single characters or the
  names `up`, `down`, `left`, `right`, `enter`, `tab` and `backspace`.
- `droidscope.config` — `Config` loaded from `config.toml`, saved per-project
  `WorkspaceProfile`s in a `WorkspaceStore` kept in `workspaces.json`, and
  `update_project_dir`, `update_android_package`, `update_default_task` which
  rewrite single keys of `config.toml`. Files live in `config_dir()` (the
  user config directory for `droidscope`) unless a `directory` is given.
  Missing or malformed files load as defaults.
- `droidscope.command_palette` — `CommandPalette` with fuzzy scoring
  (`fuzzy_score`, `score_entry`) and `build_commands(jvm_available, panels)`,
  which adds toggle and focus commands for each `PanelSpec`; panels with
  `requires_jvm` are left out when `jvm_available` is false.
- `droidscope.clipboard` — `copy(text)` pipes text to `pbcopy`, `clip`, or
  `wl-copy`/`xclip`/`xsel` and returns the tool's name.
- `droidscope.textfmt` — `truncate`, `format_size`, `wrap_lines`,
  `visible_start`, `format_table_row` and `format_preference_row` for
  fixed-width display.

## Installing

Install with your usual Python package installer; Python 3.11 or later is
required. The `test` extra pulls in pytest.

## Examples

List devices and select the first ready one:

```python
from droidscope.adb import DeviceHandle, list_all

handle = DeviceHandle()
for device in list_all():
    if device.is_ready():
        print(device.serial, device.model, device.battery)
        handle.select(device.serial)
        break
```

Take a screenshot or send a tap:

```python
from droidscope.device_actions import DeviceAction, run_action

result = run_action(handle, DeviceAction.SCREENSHOT)
print(result.success, result.summary)
print(run_action(handle, DeviceAction.TAP, "540 960").summary)
```

Read preference files you already have on disk:

```python
from pathlib import Path
from droidscope.app_data_formats import (
    parse_datastore_preferences,
    parse_shared_preferences_xml,
)

for row in parse_shared_preferences_xml(Path("settings.xml").read_text()):
    print(row.key, row.value_type, row.value)

rows, message = parse_datastore_preferences(Path("settings.preferences_pb").read_bytes())
```

Save a workspace:

```python
from droidscope.config import (
    WorkspaceProfile, load_workspaces, save_workspaces, workspace_id, workspace_name,
)

store = load_workspaces()
project = "/home/me/projects/MyApp"
store.upsert(WorkspaceProfile(workspace_id(project), workspace_name(project), project))
save_workspaces(store)
```

Errors are raised as `PackageError`, `ProtobufError`, `DeviceActionError` and
`ClipboardError`.

## What it does not do

- There is no terminal interface and no command to run; the package is a
  library.
- It does not list or launch emulator AVDs.
- It does not fetch app-private files, databases or preferences from a device
  itself; `droidscope.app_data_formats` only parses output you obtain (for
  example through `adb shell run-as`).
- It has no app-level actions such as launching, force-stopping or clearing
  an app, and no logcat or Gradle handling.