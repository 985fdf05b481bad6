"""Turn group/artifact/version filters into registry records."""

import structlog

from ..exceptions import RegistryError
from ..models.package import Package, Version
from ..models.pattern import WILDCARD, PackageFilter
from ..storage.github import GitHubPackagesClient


class PackageResolver:
    """Find packages whose names match a `PackageFilter`.

    The registry can only filter by package type, so every package of the
    configured type is fetched and the name matching happens here.
    """

    def __init__(
        self, client: GitHubPackagesClient, package_type: str
    ) -> None:
        self._client = client
        self._package_type = package_type
        self._logger = structlog.get_logger(__name__)

    def resolve_packages(
        self, group: str = WILDCARD, artifact: str = WILDCARD
    ) -> list[Package]:
        """Return matching packages in registry order."""
        pkg_filter = PackageFilter.from_strings(group, artifact)
        records = self._client.list(
            self._client.packages_path(),
            params={"package_type": self._package_type},
        )
        packages = [Package.from_json(x) for x in records]
        matched = [x for x in packages if pkg_filter.matches(x.name)]
        self._logger.debug(
            f"{len(matched)} of {len(packages)} packages match {pkg_filter}"
        )
        return matched

    def get_package(self, package_name: str) -> Package:
        """Fetch current metadata for one package."""
        return Package.from_json(
            self._client.get(self._client.package_path(package_name))
        )


class VersionResolver:
    """Find versions of a single package.

    With the wildcard, every version is listed.  Anything else is taken as
    a version ID and looked up directly; the registry does the matching.
    """

    def __init__(self, client: GitHubPackagesClient) -> None:
        self._client = client
        self._logger = structlog.get_logger(__name__)

    def resolve_versions(
        self, package_name: str, version: str = WILDCARD
    ) -> list[Version]:
        if version == WILDCARD:
            records = self._client.list(
                self._client.versions_path(package_name)
            )
            return [Version.from_json(x, package_name) for x in records]
        try:
            record = self._client.get(
                self._client.version_path(package_name, version)
            )
        except RegistryError as exc:
            if exc.status_code == 404:
                self._logger.debug(
                    f"No version '{version}' in package {package_name}"
                )
                return []
            raise
        return [Version.from_json(record, package_name)]
