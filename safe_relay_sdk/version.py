"""
Version information for the Safe relay SDK.

Installed packages report the distribution version. A plain source checkout
has no distribution metadata, so the version is read from the pyproject.toml
next to the package instead.
"""
import importlib.metadata
import pathlib
from typing import Optional

import tomli

DISTRIBUTION = "safe-relay-sdk"
PYPROJECT = pathlib.Path(__file__).parent.parent / "pyproject.toml"
UNKNOWN_VERSION = "0.1.0"


def read_pyproject_version(path: pathlib.Path = PYPROJECT) -> Optional[str]:
    """Return ``[project].version`` from a pyproject file, or None if unreadable"""
    try:
        with path.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        return None


def get_version() -> str:
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        return read_pyproject_version() or UNKNOWN_VERSION


__version__ = get_version()
