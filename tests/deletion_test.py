"""Test the deletion engine."""

from collections.abc import Iterator

import pytest

from maven_reaper.config import RegistryConfig, RetentionPolicy
from maven_reaper.exceptions import PackageNameError
from maven_reaper.factory import Factory
from maven_reaper.models.package import (
    DeletionTarget,
    Package,
    Version,
)
from maven_reaper.models.pattern import WILDCARD
from maven_reaper.services.deletion import DeletionEngine
from maven_reaper.services.resolver import PackageResolver, VersionResolver
from maven_reaper.storage.github import GitHubPackagesClient

from support.registry import OWNER_PATH, FakeRegistry

PKG = f"{OWNER_PATH}/packages/maven"


class FixedPackageResolver(PackageResolver):
    """Resolve to a fixed list of packages, whatever the filter."""

    def __init__(self, packages: list[Package]) -> None:
        self._fixed = packages

    def resolve_packages(
        self, group: str = WILDCARD, artifact: str = WILDCARD
    ) -> list[Package]:
        return list(self._fixed)


@pytest.fixture
def client(
    registry_cfg: RegistryConfig, fake_registry: FakeRegistry
) -> Iterator[GitHubPackagesClient]:
    with GitHubPackagesClient(
        registry_cfg, transport=fake_registry.transport
    ) as client:
        yield client


@pytest.fixture
def engine(factory: Factory) -> DeletionEngine:
    return factory.create_deletion_engine()


def test_last_version_deletes_package(
    engine: DeletionEngine, fake_registry: FakeRegistry
) -> None:
    """Test that a package's only version is removed by deleting the
    package.
    """
    results = list(engine.delete_versions("com.acme", "libx"))
    assert fake_registry.deletions == [f"{PKG}/com.acme.libx"]
    assert len(results) == 1
    assert results[0].success
    assert results[0].target == DeletionTarget.PACKAGE
    assert results[0].version is not None
    assert results[0].version.id == 21
    assert all(x["name"] != "com.acme.libx" for x in fake_registry.packages)


def test_not_last_version(
    engine: DeletionEngine, fake_registry: FakeRegistry
) -> None:
    """Test that a version of a multi-version package is deleted alone."""
    results = list(engine.delete_versions("com.acme", "lib", "11"))
    assert fake_registry.deletions == [f"{PKG}/com.acme.lib/versions/11"]
    assert [x.target for x in results] == [DeletionTarget.VERSION]
    assert results[0].success
    assert results[0].status_code == 204
    remaining = fake_registry.versions["com.acme.lib"]
    assert [x["id"] for x in remaining] == [13, 12]


def test_wildcard_version_filter(
    engine: DeletionEngine, fake_registry: FakeRegistry
) -> None:
    """Test deleting all versions across several packages.

    com.acme.lib has three versions, so each is deleted individually (and
    the registry refuses the last one, since the count was a snapshot).
    com.acme.libx and com.acme.tools.cli each have one, so each package is
    deleted.
    """
    results = list(engine.delete_versions("com.acme", WILDCARD))
    assert fake_registry.deletions == [
        f"{PKG}/com.acme.lib/versions/13",
        f"{PKG}/com.acme.lib/versions/11",
        f"{PKG}/com.acme.lib/versions/12",
        f"{PKG}/com.acme.libx",
        f"{PKG}/com.acme.tools.cli",
    ]
    assert [x.success for x in results] == [True, True, False, True, True]
    assert results[2].status_code == 400
    assert "last version" in results[2].message


def test_partial_failure(
    engine: DeletionEngine, fake_registry: FakeRegistry
) -> None:
    """Test that one failed deletion does not stop the next."""
    fake_registry.fail("DELETE", f"{PKG}/xcom.acme.lib/versions/31", 500)
    results = list(engine.delete_versions("xcom.acme", "lib"))
    assert fake_registry.deletions == [
        f"{PKG}/xcom.acme.lib/versions/31",
        f"{PKG}/xcom.acme.lib/versions/32",
    ]
    assert [x.success for x in results] == [False, True]
    assert results[0].status_code == 500
    assert "Injected" in results[0].message
    assert not all(x.success for x in results)


def test_malformed_name_aborts(
    client: GitHubPackagesClient, fake_registry: FakeRegistry
) -> None:
    """Test that an unsplittable name halts the whole run."""
    packages = FixedPackageResolver(
        [
            Package(id=6, name="noseparator", version_count=1),
            Package(id=5, name="org.other.thing", version_count=2),
        ]
    )
    engine = DeletionEngine(client, packages, VersionResolver(client))
    results = engine.delete_versions()
    with pytest.raises(PackageNameError, match="noseparator"):
        next(results)
    assert fake_registry.deletions == []
    paths = [path for _, path in fake_registry.requests]
    assert not any("org.other.thing" in x for x in paths)


def test_delete_twice(
    engine: DeletionEngine, fake_registry: FakeRegistry
) -> None:
    """Test that deleting a deleted version is a failure, not a crash."""
    pkg = Package(id=1, name="com.acme.lib", version_count=3)
    ver = Version(id=11, name="1.0.0", package_name="com.acme.lib")
    first = engine.delete_version(pkg, ver)
    second = engine.delete_version(pkg, ver)
    assert first.success
    assert not second.success
    assert second.status_code == 404
    assert "Failed to delete version" in str(second)


def test_results_stream(
    engine: DeletionEngine, fake_registry: FakeRegistry
) -> None:
    """Test that each deletion is reported before the next is issued."""
    results = engine.delete_versions("org.other", "thing")
    first = next(results)
    assert first.success
    assert len(fake_registry.deletions) == 1
    rest = list(results)
    assert len(rest) == 1
    assert len(fake_registry.deletions) == 2


def test_delete_packages(
    engine: DeletionEngine, fake_registry: FakeRegistry
) -> None:
    """Test that matched packages are listed and then each deleted."""
    fake_registry.fail("DELETE", f"{PKG}/com.acme.lib", 403)
    seen: list[str] = []

    def on_match(pkg: Package) -> None:
        seen.append(pkg.name)
        assert fake_registry.deletions == []

    results = list(
        engine.delete_packages("com.acme", "%", on_match=on_match)
    )
    assert seen == ["com.acme.lib", "com.acme.libx", "com.acme.tools.cli"]
    assert fake_registry.deletions == [f"{PKG}/{x}" for x in seen]
    assert [x.success for x in results] == [False, True, True]
    assert all(x.target == DeletionTarget.PACKAGE for x in results)


def test_package_result_rows(
    engine: DeletionEngine, fake_registry: FakeRegistry
) -> None:
    """Test that package results carry the deleted package's record."""
    results = list(engine.delete_packages("org.other", "thing"))
    assert len(results) == 1
    assert results[0].package is not None
    assert results[0].package.id == 5
    assert results[0].to_row() == [
        "package",
        "5",
        "org.other.thing",
        "2024-05-02T10:00:00Z",
        "https://github.com/octocat/packages/5",
        "deleted",
    ]
    assert str(results[0]) == "Deleted package org.other.thing (5)"

    fake_registry.fail("DELETE", f"{PKG}/com.acme.libx", 403)
    (failed,) = engine.delete_versions("com.acme", "libx")
    assert failed.target == DeletionTarget.PACKAGE
    assert failed.to_row()[:3] == ["package", "2", "com.acme.libx"]
    assert failed.to_row()[-1] == "failed:403"
    assert str(failed).startswith(
        "Failed to delete package com.acme.libx (2) version"
    )


def test_dry_run(
    registry_cfg: RegistryConfig,
    fake_registry: FakeRegistry,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test that a dry run reports deletions without making them."""
    cfg = registry_cfg.model_copy(update={"dry_run": True})
    with Factory.standalone(cfg, transport=fake_registry.transport) as fac:
        engine = fac.create_deletion_engine()
        results = list(engine.delete_versions("com.acme", WILDCARD))
    assert fake_registry.deletions == []
    assert len(results) == 5
    assert all(x.success and x.dry_run for x in results)
    assert "(not really)" in str(results[0])
    err = capsys.readouterr().err
    assert f"Using registry https://api.github.com{OWNER_PATH}/maven" in err
    assert "Dry run: nothing will be deleted" in err


def test_clean_by_number(
    engine: DeletionEngine, fake_registry: FakeRegistry
) -> None:
    """Test keeping the newest versions of each package."""
    results = list(
        engine.clean(RetentionPolicy(number=1), "com.acme", "lib")
    )
    assert fake_registry.deletions == [
        f"{PKG}/com.acme.lib/versions/12",
        f"{PKG}/com.acme.lib/versions/11",
    ]
    assert all(x.success for x in results)
    remaining = fake_registry.versions["com.acme.lib"]
    assert [x["name"] for x in remaining] == ["1.2.0"]


def test_clean_keeps_single_versions(
    engine: DeletionEngine, fake_registry: FakeRegistry
) -> None:
    """Test that cleaning never deletes a package's only version."""
    results = list(engine.clean(RetentionPolicy(number=1)))
    assert all(x.target == DeletionTarget.VERSION for x in results)
    assert f"{PKG}/com.acme.libx" not in fake_registry.deletions
    assert len(fake_registry.packages) == 6
    assert all(len(x) == 1 for x in fake_registry.versions.values())


def test_clean_skips_undated(engine: DeletionEngine) -> None:
    """Test that versions without a date are never cleaned by age."""
    vers = [
        Version(id=i, name=f"1.{i}", package_name="a.b") for i in range(3)
    ]
    assert engine.plan_clean(vers, RetentionPolicy(age="0s")) == []
    by_number = engine.plan_clean(vers, RetentionPolicy(number=1))
    assert [x.id for x in by_number] == [1, 0]


def test_plan_clean(engine: DeletionEngine, factory: Factory) -> None:
    """Test choosing versions to clean by count and by age."""
    vers = factory.create_version_resolver().resolve_versions("com.acme.lib")
    by_two = engine.plan_clean(vers, RetentionPolicy(number=2))
    assert [x.id for x in by_two] == [11]
    by_many = engine.plan_clean(vers, RetentionPolicy(number=10))
    assert by_many == []
    old = engine.plan_clean(vers, RetentionPolicy(age="0s"))
    assert [x.id for x in old] == [12, 11]
    recent = engine.plan_clean(vers, RetentionPolicy(age="36500d"))
    assert recent == []
