from pathlib import Path

import pytest

setuptools = pytest.importorskip("setuptools")

ROOT = Path(__file__).resolve().parents[1]


def test_views_ship_with_the_package():
    packages = setuptools.find_packages(where=str(ROOT), include=["ontoscope*"])
    assert "ontoscope" in packages
    assert "ontoscope.views" in packages
