"""Building blocks for an Android developer console: adb devices, device actions, app data parsers, project files, workspaces and a command palette."""

__version__ = "0.1.0"