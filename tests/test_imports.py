"""Every module imports cleanly on the supported interpreters."""

import importlib

import pytest


pytestmark = pytest.mark.unit


@pytest.mark.parametrize("module", [
    "territories",
    "territories.store",
    "territories.editor",
    "territories.formats",
    "territories.geocoder",
    "territories.tiles",
    "app.main",
    "app.cli",
])
def test_module_imports(module):
    assert importlib.import_module(module) is not None


def test_store_annotations_resolve():
    import typing

    from territories.models import LatLng
    from territories.store import TerritoryStore

    hints = typing.get_type_hints(TerritoryStore.create)
    assert hints["points"] == list[LatLng]
