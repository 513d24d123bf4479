[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "droidscope"
version = "0.1.0"
description = "Building blocks for an Android developer console: adb devices, device actions, app data parsers, project files, workspaces and a command palette"
requires-python = ">=3.11"
keywords = ["android", "adb", "sqlite", "datastore", "sharedpreferences", "developer-tools"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Debuggers",
]
dependencies = [
    "platformdirs>=3",
    "tomli-w>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
]

[tool.hatch.build.targets.wheel]
packages = ["droidscope"]

[tool.hatch.build.targets.sdist]
include = ["droidscope", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
