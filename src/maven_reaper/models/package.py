"""Models for the package registry records we care about."""

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Any, Self, TypeAlias

from safir.datetime import isodatetime, parse_isodatetime

from ..exceptions import PackageNameError

JSONRecord: TypeAlias = dict[str, Any]


def _parse_date(inp: str | None) -> datetime.datetime | None:
    # Registry timestamps are UTC with a trailing Z
    if not inp:
        return None
    return parse_isodatetime(inp)


def split_package_name(name: str) -> tuple[str, str]:
    """Split a dot-joined package name into group and artifact on the last
    separator.

    Raises
    ------
    PackageNameError
        The name contains no separator.
    """
    group, sep, artifact = name.rpartition(".")
    if not sep:
        raise PackageNameError(name)
    return group, artifact


@dataclass
class Package:
    """A maven package: a ``group.artifact`` container of versions.

    ``version_count`` is whatever the registry reported when the package
    was listed.  It is not refreshed as versions are deleted.
    """

    id: int
    name: str
    version_count: int = 0
    updated_at: datetime.datetime | None = None
    url: str = ""

    @property
    def group(self) -> str:
        return split_package_name(self.name)[0]

    @property
    def artifact(self) -> str:
        return split_package_name(self.name)[1]

    @classmethod
    def from_json(cls, inp: JSONRecord) -> Self:
        return cls(
            id=int(inp["id"]),
            name=inp["name"],
            version_count=int(inp.get("version_count", 0)),
            updated_at=_parse_date(inp.get("updated_at")),
            url=inp.get("html_url") or inp.get("url") or "",
        )

    def to_row(self) -> list[str]:
        return [
            str(self.id),
            self.name,
            isodatetime(self.updated_at) if self.updated_at else "",
            self.url,
        ]


@dataclass
class Version:
    """One published version of a package.  The owning package is referred
    to by name.
    """

    id: int
    name: str
    package_name: str
    updated_at: datetime.datetime | None = None
    url: str = ""

    @classmethod
    def from_json(cls, inp: JSONRecord, package_name: str) -> Self:
        return cls(
            id=int(inp["id"]),
            name=inp["name"],
            package_name=package_name,
            updated_at=_parse_date(inp.get("updated_at")),
            url=inp.get("html_url") or "",
        )

    def to_row(self) -> list[str]:
        return [
            str(self.id),
            self.name,
            isodatetime(self.updated_at) if self.updated_at else "",
            self.package_name,
        ]


class DeletionTarget(Enum):
    """What a deletion call was aimed at."""

    PACKAGE = "package"
    VERSION = "version"


@dataclass
class DeletionResult:
    """Outcome of one attempted deletion.

    Package deletions carry the resolved `Package`; version deletions carry
    the `Version`, and a package deleted in place of its last version
    carries both.
    """

    target: DeletionTarget
    package_name: str
    success: bool
    package: Package | None = None
    version: Version | None = None
    status_code: int | None = None
    message: str = ""
    dry_run: bool = False

    def __str__(self) -> str:
        what = self.package_name
        if self.package is not None:
            what += f" ({self.package.id})"
        if self.version is not None:
            what += f" version {self.version.name} ({self.version.id})"
        if self.success:
            dry = " (not really)" if self.dry_run else ""
            return f"Deleted {self.target.value} {what}{dry}"
        status = f" [{self.status_code}]" if self.status_code else ""
        return (
            f"Failed to delete {self.target.value} {what}{status}: "
            f"{self.message}"
        )

    def to_row(self) -> list[str]:
        """Target, then the deleted record's row, then the outcome."""
        if self.target == DeletionTarget.PACKAGE and self.package is not None:
            record = self.package.to_row()
        elif self.version is not None:
            record = self.version.to_row()
        else:
            record = ["", self.package_name, "", ""]
        if self.success:
            outcome = "dry-run" if self.dry_run else "deleted"
        else:
            outcome = f"failed:{self.status_code or ''}"
        return [self.target.value, *record, outcome]
