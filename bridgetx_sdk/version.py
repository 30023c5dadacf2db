"""
Version information for the bridgetx SDK.
"""
import importlib.metadata
import pathlib

import tomli

try:
    __version__ = importlib.metadata.version("bridgetx-sdk")
except importlib.metadata.PackageNotFoundError:
    # Source checkout: read the version from pyproject.toml
    try:
        path = pathlib.Path(__file__).parent.parent / "pyproject.toml"
        with open(path, "rb") as f:
            data = tomli.load(f)
        __version__ = data["project"]["version"]
    except (FileNotFoundError, KeyError):
        __version__ = "0.1.0"
