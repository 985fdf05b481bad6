"""Test the interactive browser's actions."""

from maven_reaper.factory import Factory
from maven_reaper.models.package import DeletionTarget
from maven_reaper.services.browser import (
    DELETE_KEY,
    RELOAD_KEY,
    choose_package,
)

from support.registry import OWNER_PATH, FakeRegistry
from support.selector import ScriptedSelector

PKG = f"{OWNER_PATH}/packages/maven"


def test_reload(factory: Factory, fake_registry: FakeRegistry) -> None:
    """Test that reload picks up changes made elsewhere."""
    browser = factory.create_browser("com.acme.lib")
    assert [x.id for x in browser.reload()] == [13, 11, 12]
    fake_registry.versions["com.acme.lib"].pop(0)
    assert [x.id for x in browser.reload()] == [11, 12]
    assert browser.package is not None
    assert browser.package.version_count == 2


def test_delete_selected(
    factory: Factory, fake_registry: FakeRegistry
) -> None:
    """Test deleting the selected version, then reloading."""
    browser = factory.create_browser("com.acme.lib")
    browser.reload()
    result = browser.delete_selected(11)
    assert result is not None
    assert result.success
    assert result.target == DeletionTarget.VERSION
    assert fake_registry.deletions == [f"{PKG}/com.acme.lib/versions/11"]
    assert [x.id for x in browser.versions] == [13, 12]
    assert browser.delete_selected(11) is None


def test_delete_last_selected(
    factory: Factory, fake_registry: FakeRegistry
) -> None:
    """Test that deleting the only version deletes the package."""
    browser = factory.create_browser("com.acme.libx")
    browser.reload()
    result = browser.delete_selected(21)
    assert result is not None
    assert result.target == DeletionTarget.PACKAGE
    assert fake_registry.deletions == [f"{PKG}/com.acme.libx"]
    assert browser.package is None
    assert browser.versions == []


def test_run(factory: Factory, fake_registry: FakeRegistry) -> None:
    """Test the selection loop: reload, delete twice, then quit."""
    selector = ScriptedSelector(
        [
            (RELOAD_KEY, None),
            (DELETE_KEY, 11),
            (DELETE_KEY, 12),
            ("", 13),
        ]
    )
    browser = factory.create_browser("com.acme.lib")
    results = browser.run(selector)
    assert [x.success for x in results] == [True, True]
    assert len(selector.shown) == 4
    assert len(selector.shown[0]) == 3
    assert len(selector.shown[2]) == 2
    assert len(selector.shown[3]) == 1
    assert fake_registry.deletions == [
        f"{PKG}/com.acme.lib/versions/11",
        f"{PKG}/com.acme.lib/versions/12",
    ]


def test_run_ends_when_package_is_gone(
    factory: Factory, fake_registry: FakeRegistry
) -> None:
    """Test that the loop stops once the package has been deleted."""
    selector = ScriptedSelector([(DELETE_KEY, 41)])
    browser = factory.create_browser("com.acme.tools.cli")
    results = browser.run(selector)
    assert len(results) == 1
    assert results[0].target == DeletionTarget.PACKAGE
    assert fake_registry.deletions == [f"{PKG}/com.acme.tools.cli"]


def test_choose_package(factory: Factory) -> None:
    """Test picking a package to browse."""
    resolver = factory.create_package_resolver()
    assert choose_package(resolver, ScriptedSelector([("", 5)])) == (
        "org.other.thing"
    )
    assert choose_package(resolver, ScriptedSelector([("", None)])) is None
