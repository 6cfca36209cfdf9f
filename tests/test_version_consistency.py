"""Ensure runtime/wrapper/package versions stay in sync."""

from pathlib import Path

import pytest

import mcp_wrapper
from multitool import __version__ as package_version
from multitool.version import __version__

tomllib = pytest.importorskip("tomllib")


def test_version_single_source_of_truth():
    pyproject_path = Path(__file__).resolve().parents[1] / "pyproject.toml"
    with pyproject_path.open("rb") as f:
        pyproject = tomllib.load(f)

    assert pyproject["project"]["version"] == __version__
    assert package_version == __version__
    assert mcp_wrapper.__version__ == __version__
