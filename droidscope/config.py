"""User configuration and saved workspaces."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import platformdirs
import tomli_w

APP_NAME = "droidscope"


def _opt(table: dict, key: str, kind: type) -> Any:
    value = table.get(key)
    if value is not None and not isinstance(value, kind):
        raise TypeError(f"{key}: expected {kind.__name__}")
    return value


def _section(data: dict, key: str) -> dict:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise TypeError(f"{key}: expected a table")
    return value


@dataclass
class GradleConfig:
    project_dir: Path | None = None
    default_task: str | None = None
    jar_path: Path | None = None


@dataclass
class AndroidConfig:
    package: str | None = None


@dataclass
class UiConfig:
    theme: str = "dark"


@dataclass
class Config:
    gradle: GradleConfig = field(default_factory=GradleConfig)
    ui: UiConfig = field(default_factory=UiConfig)
    android: AndroidConfig = field(default_factory=AndroidConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        if not isinstance(data, dict):
            raise TypeError("config must be a table")
        gradle = _section(data, "gradle")
        ui = _section(data, "ui")
        android = _section(data, "android")
        project_dir = _opt(gradle, "project_dir", str)
        jar_path = _opt(gradle, "jar_path", str)
        theme = _opt(ui, "theme", str)
        return cls(
            gradle=GradleConfig(
                project_dir=Path(project_dir) if project_dir is not None else None,
                default_task=_opt(gradle, "default_task", str),
                jar_path=Path(jar_path) if jar_path is not None else None,
            ),
            ui=UiConfig(theme=theme if theme is not None else "dark"),
            android=AndroidConfig(package=_opt(android, "package", str)),
        )


@dataclass
class WorkspaceLogcat:
    filter: str = ""
    min_level: str = "Verbose"
    package_filter: str | None = None
    use_regex: bool = False

    def to_dict(self) -> dict:
        return {
            "filter": self.filter,
            "min_level": self.min_level,
            "package_filter": self.package_filter,
            "use_regex": self.use_regex,
        }

    @classmethod
    def from_dict(cls, data: dict) -> WorkspaceLogcat:
        if not isinstance(data, dict):
            raise TypeError("logcat must be an object")
        filter_text = _opt(data, "filter", str)
        min_level = _opt(data, "min_level", str)
        use_regex = _opt(data, "use_regex", bool)
        return cls(
            filter=filter_text if filter_text is not None else "",
            min_level=min_level if min_level is not None else "Verbose",
            package_filter=_opt(data, "package_filter", str),
            use_regex=bool(use_regex),
        )


@dataclass
class WorkspaceProfile:
    id: str
    name: str
    project_dir: Path
    default_task: str | None = None
    package: str | None = None
    preferred_device: str | None = None
    logcat: WorkspaceLogcat = field(default_factory=WorkspaceLogcat)
    screens: list[dict] = field(default_factory=list)
    active_screen: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "project_dir": str(self.project_dir),
            "default_task": self.default_task,
            "package": self.package,
            "preferred_device": self.preferred_device,
            "logcat": self.logcat.to_dict(),
            "screens": list(self.screens),
            "active_screen": self.active_screen,
        }

    @classmethod
    def from_dict(cls, data: dict) -> WorkspaceProfile:
        if not isinstance(data, dict):
            raise TypeError("workspace must be an object")
        for key in ("id", "name", "project_dir"):
            if not isinstance(data[key], str):
                raise TypeError(f"{key}: expected a string")
        screens = data.get("screens") or []
        if not isinstance(screens, list):
            raise TypeError("screens: expected a list")
        active_screen = data.get("active_screen") or 0
        if isinstance(active_screen, bool) or not isinstance(active_screen, int) or active_screen < 0:
            raise ValueError("active_screen: expected a non-negative integer")
        logcat = data.get("logcat")
        return cls(
            id=data["id"],
            name=data["name"],
            project_dir=Path(data["project_dir"]),
            default_task=_opt(data, "default_task", str),
            package=_opt(data, "package", str),
            preferred_device=_opt(data, "preferred_device", str),
            logcat=WorkspaceLogcat.from_dict(logcat) if logcat is not None else WorkspaceLogcat(),
            screens=screens,
            active_screen=active_screen,
        )


@dataclass
class WorkspaceStore:
    active: str | None = None
    workspaces: list[WorkspaceProfile] = field(default_factory=list)

    def active_workspace(self) -> WorkspaceProfile | None:
        if self.active is None:
            return None
        return next((w for w in self.workspaces if w.id == self.active), None)

    def find_by_project(self, project_dir: Path | str) -> WorkspaceProfile | None:
        target = Path(project_dir)
        return next((w for w in self.workspaces if Path(w.project_dir) == target), None)

    def upsert(self, workspace: WorkspaceProfile) -> None:
        """Insert or replace by id, make it active and keep the list sorted by name."""
        self.active = workspace.id
        for index, existing in enumerate(self.workspaces):
            if existing.id == workspace.id:
                self.workspaces[index] = workspace
                break
        else:
            self.workspaces.append(workspace)
        self.workspaces.sort(key=lambda w: w.name.lower())

    def to_dict(self) -> dict:
        return {"active": self.active, "workspaces": [w.to_dict() for w in self.workspaces]}

    @classmethod
    def from_dict(cls, data: dict) -> WorkspaceStore:
        if not isinstance(data, dict):
            raise TypeError("workspace store must be an object")
        workspaces = data.get("workspaces") or []
        if not isinstance(workspaces, list):
            raise TypeError("workspaces: expected a list")
        return cls(
            active=_opt(data, "active", str),
            workspaces=[WorkspaceProfile.from_dict(w) for w in workspaces],
        )


def config_dir() -> Path:
    return Path(platformdirs.user_config_dir(APP_NAME, appauthor=False, roaming=True))


def _dir(directory: Path | str | None) -> Path:
    return Path(directory) if directory is not None else config_dir()


def load_config(directory: Path | str | None = None) -> Config:
    """Read config.toml; a missing or malformed file gives the defaults."""
    path = _dir(directory) / "config.toml"
    try:
        return Config.from_dict(tomllib.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, TypeError):
        return Config()


def load_workspaces(directory: Path | str | None = None) -> WorkspaceStore:
    """Read workspaces.json; a missing or malformed file gives an empty store."""
    path = _dir(directory) / "workspaces.json"
    try:
        return WorkspaceStore.from_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, TypeError, KeyError):
        return WorkspaceStore()


def save_workspaces(store: WorkspaceStore, directory: Path | str | None = None) -> None:
    target = _dir(directory)
    target.mkdir(parents=True, exist_ok=True)
    (target / "workspaces.json").write_text(json.dumps(store.to_dict(), indent=2), encoding="utf-8")


def _update_config(directory: Path | str | None, section: str, key: str, value: str | None) -> None:
    target = _dir(directory)
    target.mkdir(parents=True, exist_ok=True)
    path = target / "config.toml"
    try:
        doc = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        doc = {}
    table = doc.setdefault(section, {})
    if isinstance(table, dict):
        if value is None:
            table.pop(key, None)
        else:
            table[key] = value
    path.write_text(tomli_w.dumps(doc), encoding="utf-8")


def update_project_dir(project_dir: Path | str, directory: Path | str | None = None) -> None:
    _update_config(directory, "gradle", "project_dir", str(project_dir))


def update_android_package(package: str | None, directory: Path | str | None = None) -> None:
    _update_config(directory, "android", "package", package)


def update_default_task(task: str | None, directory: Path | str | None = None) -> None:
    _update_config(directory, "gradle", "default_task", task)


def workspace_id(project_dir: Path | str) -> str:
    return str(Path(project_dir))


def workspace_name(project_dir: Path | str) -> str:
    """The project folder's name, or the whole path when it has none."""
    path = Path(project_dir)
    if path.name and path.name != "..":
        return path.name
    return str(path)