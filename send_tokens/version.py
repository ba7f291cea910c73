"""
Package version, from installed metadata or the source checkout's pyproject.toml.
"""
import importlib.metadata
import pathlib

import tomli

DISTRIBUTION = "send-tokens"
UNKNOWN_VERSION = "0.0.0"
PYPROJECT = pathlib.Path(__file__).resolve().parent.parent / "pyproject.toml"


def _source_version(pyproject: pathlib.Path = PYPROJECT) -> str:
    try:
        with pyproject.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (OSError, KeyError, tomli.TOMLDecodeError):
        return UNKNOWN_VERSION


def get_version() -> str:
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        return _source_version()


__version__ = get_version()
