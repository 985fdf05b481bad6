"""Delete packages and versions from the registry."""

import datetime
from collections.abc import Callable, Iterator

import structlog
from safir.datetime import current_datetime

from ..config import RetentionPolicy
from ..exceptions import RegistryError
from ..models.package import (
    DeletionResult,
    DeletionTarget,
    Package,
    Version,
    split_package_name,
)
from ..models.pattern import WILDCARD
from ..storage.github import GitHubPackagesClient
from .resolver import PackageResolver, VersionResolver


class DeletionEngine:
    """Decide what to delete, delete it one item at a time, and report each
    outcome as it happens.

    A registry package cannot be left without versions.  When a package
    has exactly one version, deleting that version means deleting the
    package instead.  The version count used for that decision is the one
    reported when packages were resolved; it is not re-read between
    deletions, so someone else deleting versions at the same time can make
    it stale.  For an operator-driven tool that is an accepted risk.

    Failed deletions are reported and the run carries on.  A package whose
    name cannot be split into group and artifact when its last version is
    deleted raises `~maven_reaper.exceptions.PackageNameError`, which ends
    the run.
    """

    def __init__(
        self,
        client: GitHubPackagesClient,
        packages: PackageResolver,
        versions: VersionResolver,
        *,
        dry_run: bool = False,
    ) -> None:
        self._client = client
        self._packages = packages
        self._versions = versions
        self._dry_run = dry_run
        self._logger = structlog.get_logger(__name__)

    def delete_packages(
        self,
        group: str = WILDCARD,
        artifact: str = WILDCARD,
        on_match: Callable[[Package], None] | None = None,
    ) -> Iterator[DeletionResult]:
        """Delete every package matching the patterns.

        Each matched package is passed to ``on_match`` before any deletion
        happens.
        """
        matched = self._packages.resolve_packages(group, artifact)
        if on_match is not None:
            for pkg in matched:
                on_match(pkg)
        for pkg in matched:
            yield self._delete_package(pkg)

    def delete_versions(
        self,
        group: str = WILDCARD,
        artifact: str = WILDCARD,
        version: str = WILDCARD,
    ) -> Iterator[DeletionResult]:
        """Delete matching versions of every matching package, deleting the
        whole package where its only version would go.

        Raises
        ------
        PackageNameError
            A single-version package has a name with no separator.
        """
        for pkg in self._packages.resolve_packages(group, artifact):
            resolved = self._versions.resolve_versions(pkg.name, version)
            yield from self._delete_package_versions(pkg, resolved)

    def delete_version(
        self, package: Package, version: Version
    ) -> DeletionResult:
        """Delete one version, or its package if it is the last one."""
        return next(self._delete_package_versions(package, [version]))

    def clean(
        self,
        policy: RetentionPolicy,
        group: str = WILDCARD,
        artifact: str = WILDCARD,
    ) -> Iterator[DeletionResult]:
        """Delete obsolete versions of matching packages.

        The newest version of a package always survives, so this never
        deletes a package.
        """
        for pkg in self._packages.resolve_packages(group, artifact):
            resolved = self._versions.resolve_versions(pkg.name)
            for ver in self.plan_clean(resolved, policy):
                yield self._delete_version(ver)

    def plan_clean(
        self, versions: list[Version], policy: RetentionPolicy
    ) -> list[Version]:
        """Choose which of one package's versions a policy would delete."""
        newest_first = sorted(
            versions,
            key=lambda x: (
                x.updated_at is not None,
                x.updated_at or datetime.datetime.min,
                x.id,
            ),
            reverse=True,
        )
        candidates = newest_first[1:]
        if policy.number is not None:
            return newest_first[policy.number :]
        if policy.age is None:
            return []
        cutoff = current_datetime() - policy.age
        retval: list[Version] = []
        for ver in candidates:
            if ver.updated_at is None:
                self._logger.warning(
                    f"Version {ver.name} of {ver.package_name} has no date"
                )
                continue
            if ver.updated_at < cutoff:
                retval.append(ver)
        return retval

    def _delete_package_versions(
        self, package: Package, versions: list[Version]
    ) -> Iterator[DeletionResult]:
        is_last = package.version_count == 1
        for ver in versions:
            if is_last:
                split_package_name(package.name)
                self._logger.info(
                    f"Version {ver.name} is the last of {package.name};"
                    " deleting the package"
                )
                yield self._delete_package(package, ver)
                # The package is gone, and its versions with it.
                return
            yield self._delete_version(ver)

    def _delete_package(
        self, package: Package, version: Version | None = None
    ) -> DeletionResult:
        return self._delete(
            self._client.package_path(package.name),
            DeletionResult(
                target=DeletionTarget.PACKAGE,
                package_name=package.name,
                package=package,
                version=version,
                success=False,
            ),
        )

    def _delete_version(self, version: Version) -> DeletionResult:
        return self._delete(
            self._client.version_path(version.package_name, version.id),
            DeletionResult(
                target=DeletionTarget.VERSION,
                package_name=version.package_name,
                version=version,
                success=False,
            ),
        )

    def _delete(self, resource: str, result: DeletionResult) -> DeletionResult:
        if self._dry_run:
            result.success = True
            result.dry_run = True
            self._logger.info(str(result))
            return result
        try:
            r = self._client.delete(resource)
        except RegistryError as exc:
            result.message = str(exc)
            self._logger.error(str(result))
            return result
        result.status_code = r.status_code
        if r.is_success:
            result.success = True
            self._logger.info(str(result))
        else:
            result.message = r.text
            self._logger.error(str(result))
        return result
