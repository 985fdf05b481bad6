"""Interactive browsing of one package's versions.

The browser is a loop around a selector (by default, an external ``fzf``
process).  Each round shows the current version list and gets back the key
that ended the selection and the selected row.  Reload and delete-selected
are methods on `Browser`, which holds the resolvers and the package being
browsed, so the selector needs no state of its own.
"""

import shutil
import subprocess
from typing import Protocol

import structlog

from ..models.package import DeletionResult, DeletionTarget, Package, Version
from .deletion import DeletionEngine
from .resolver import PackageResolver, VersionResolver

RELOAD_KEY = "ctrl-r"
DELETE_KEY = "ctrl-d"


class Selector(Protocol):
    """Present rows and return ``(key, selected row)``.

    The key is empty when the selection ended normally; the row is `None`
    when the user aborted.
    """

    def select(self, rows: list[str], header: str) -> tuple[str, str | None]:
        ...


class FzfSelector:
    """Run ``fzf`` to choose a row."""

    def __init__(self, executable: str = "fzf") -> None:
        path = shutil.which(executable)
        if path is None:
            raise FileNotFoundError(f"'{executable}' not found on PATH")
        self._executable = path

    def select(self, rows: list[str], header: str) -> tuple[str, str | None]:
        proc = subprocess.run(
            [
                self._executable,
                f"--expect={RELOAD_KEY},{DELETE_KEY}",
                f"--header={header}",
                "--delimiter=\t",
                "--no-multi",
            ],
            input="\n".join(rows),
            stdout=subprocess.PIPE,
            text=True,
            check=False,
        )
        # 130 is an interrupt, 1 is no match: either way, nothing chosen.
        if proc.returncode != 0:
            return "", None
        lines = proc.stdout.split("\n")
        key = lines[0]
        row = lines[1] if len(lines) > 1 and lines[1] else None
        return key, row


class Browser:
    """Reload and delete-selected actions for one package's versions."""

    def __init__(
        self,
        engine: DeletionEngine,
        packages: PackageResolver,
        versions: VersionResolver,
        package_name: str,
    ) -> None:
        self._engine = engine
        self._packages = packages
        self._versions = versions
        self.package_name = package_name
        self.package: Package | None = None
        self.versions: list[Version] = []
        self._logger = structlog.get_logger(__name__)

    def reload(self) -> list[Version]:
        """Re-read the package and its versions."""
        self.package = self._packages.get_package(self.package_name)
        self.versions = self._versions.resolve_versions(self.package_name)
        return self.versions

    def delete_selected(self, version_id: int) -> DeletionResult | None:
        """Delete the selected version (or its package, if it is the last
        one) and reload.
        """
        if self.package is None:
            self.reload()
        ver = next((x for x in self.versions if x.id == version_id), None)
        if ver is None or self.package is None:
            self._logger.warning(
                f"No version {version_id} in {self.package_name}"
            )
            return None
        result = self._engine.delete_version(self.package, ver)
        if (
            result.success
            and not result.dry_run
            and result.target == DeletionTarget.PACKAGE
        ):
            self.package = None
            self.versions = []
        else:
            self.reload()
        return result

    def rows(self) -> list[str]:
        return ["\t".join(x.to_row()) for x in self.versions]

    def run(self, selector: Selector) -> list[DeletionResult]:
        """Loop until the user makes a selection, aborts, or deletes the
        whole package.  Returns the results of any deletions.
        """
        results: list[DeletionResult] = []
        header = (
            f"{self.package_name}: {RELOAD_KEY} reload, "
            f"{DELETE_KEY} delete selected"
        )
        self.reload()
        while True:
            key, row = selector.select(self.rows(), header)
            if key == RELOAD_KEY:
                self.reload()
                continue
            if key == DELETE_KEY:
                if row is None:
                    continue
                result = self.delete_selected(int(row.split("\t")[0]))
                if result is not None:
                    results.append(result)
                if self.package is None:
                    return results
                continue
            return results


def choose_package(
    packages: PackageResolver, selector: Selector
) -> str | None:
    """Let the user pick a package name from every package."""
    pkgs = packages.resolve_packages()
    rows = ["\t".join(x.to_row()) for x in pkgs]
    _, row = selector.select(rows, "Choose a package")
    if row is None:
        return None
    return row.split("\t")[1]
