"""Configuration for the maven package reaper."""

from __future__ import annotations

import datetime
import os
from pathlib import Path
from typing import Annotated, Any, Self

import yaml
from pydantic import (
    BaseModel,
    BeforeValidator,
    Field,
    HttpUrl,
    SecretStr,
    model_validator,
)
from safir.datetime import parse_timedelta
from safir.pydantic import CamelCaseModel, validate_exactly_one_of

from .models.owner_category import OwnerCategory
from .models.pattern import WILDCARD

TOKEN_VARIABLES = ("GITHUB_TOKEN", "GH_TOKEN")
"""Environment variables consulted, in order, for an API token."""


def _empty_str_is_none(inp: Any) -> Any:
    if isinstance(inp, str) and inp == "":
        return None
    return inp


def _human_timedelta(inp: Any) -> Any:
    if isinstance(inp, str):
        return parse_timedelta(inp) if inp else None
    return inp


def _token_from_environment() -> SecretStr | None:
    for var in TOKEN_VARIABLES:
        value = os.getenv(var)
        if value:
            return SecretStr(value)
    return None


class RegistryAuth(BaseModel):
    """Authentication for the package registry API.

    If no token is configured, it is taken from the environment.
    """

    token: Annotated[
        SecretStr | None,
        Field(
            default_factory=_token_from_environment,
            title="Token",
            description="Bearer token for the registry API.",
            examples=["ghp_hunter2"],
        ),
    ]


class RetentionPolicy(BaseModel):
    """Which versions of a package survive a clean.

    'number' means keep that many of the newest versions.  'age' means keep
    anything updated within the specified duration.  Durations are strings
    as accepted by Safir's ``parse_timedelta``.  Regardless of the policy,
    the newest version of each package is always kept.

    You must specify exactly one of these.
    """

    age: Annotated[
        datetime.timedelta | None,
        BeforeValidator(_human_timedelta),
        Field(
            title="Age",
            description="Maximum age of versions to retain.",
        ),
    ] = None

    number: Annotated[
        int | None,
        BeforeValidator(_empty_str_is_none),
        Field(
            title="Number",
            description="Number of newest versions to retain.",
            ge=1,
        ),
    ] = None

    _validate_options = model_validator(mode="after")(
        validate_exactly_one_of("number", "age")
    )


class PackageQuery(BaseModel):
    """Select packages by group and artifact patterns."""

    group: Annotated[
        str,
        Field(
            title="Group",
            description="Group pattern; '%' matches anything.",
            examples=["com.example"],
        ),
    ] = WILDCARD

    artifact: Annotated[
        str,
        Field(
            title="Artifact",
            description="Artifact pattern; '%' matches anything.",
            examples=["lib-%"],
        ),
    ] = WILDCARD


class VersionQuery(BaseModel):
    """Select versions of one package."""

    package_name: Annotated[
        str,
        Field(
            title="Package name",
            description="Full dot-joined package name.",
            examples=["com.example.lib"],
        ),
    ]

    version: Annotated[
        str,
        Field(
            title="Version",
            description="Version ID, or '%' for all versions.",
            examples=["123456"],
        ),
    ] = WILDCARD


class VersionDeleteQuery(PackageQuery):
    """Select versions across every package matching the patterns."""

    version: Annotated[
        str,
        Field(
            title="Version",
            description="Version ID, or '%' for all versions.",
            examples=["123456"],
        ),
    ] = WILDCARD


class RegistryConfig(CamelCaseModel):
    """Configuration to talk to a package registry API."""

    api_url: Annotated[
        HttpUrl,
        Field(
            title="API URL",
            description="Base URL of the registry API",
            examples=[HttpUrl("https://api.github.com")],
        ),
    ] = HttpUrl("https://api.github.com")

    owner: Annotated[
        str | None,
        BeforeValidator(_empty_str_is_none),
        Field(
            title="Owner",
            description=(
                "User or organization owning the packages.  If unset, the"
                " owner of the token."
            ),
            examples=["lsst-sqre"],
        ),
    ] = None

    owner_category: Annotated[
        OwnerCategory,
        Field(
            title="Owner category",
            description="Whether the owner is a user or an organization",
            examples=[OwnerCategory.ORG],
        ),
    ] = OwnerCategory.USER

    package_type: Annotated[
        str,
        Field(
            title="Package type",
            description="Registry package type to manage",
            examples=["maven"],
        ),
    ] = "maven"

    page_size: Annotated[
        int,
        Field(
            title="Page size",
            description="Records requested per page when listing.",
            ge=1,
            le=100,
        ),
    ] = 100

    retries: Annotated[
        int,
        Field(
            title="Retries",
            description=(
                "Connection-level retries for the HTTP transport.  Requests"
                " that received a response are never retried."
            ),
            ge=0,
        ),
    ] = 0

    auth: Annotated[
        RegistryAuth,
        Field(
            default_factory=RegistryAuth,
            title="Registry Auth",
            description="Authentication details for the registry API.",
        ),
    ]

    dry_run: Annotated[
        bool,
        Field(
            title="Dry run",
            description="Do not actually delete anything from the registry.",
        ),
    ] = False

    debug: Annotated[
        bool,
        Field(
            title="Debug",
            description="Much more verbose logging.",
        ),
    ] = False

    @property
    def owner_path(self) -> str:
        """API path prefix for the configured owner."""
        if self.owner is None:
            if self.owner_category == OwnerCategory.ORG:
                raise ValueError("An organization needs an owner name")
            return f"/{OwnerCategory.AUTHENTICATED.value}"
        if self.owner_category == OwnerCategory.AUTHENTICATED:
            raise ValueError(
                f"Owner '{self.owner}' given with owner category "
                f"'{OwnerCategory.AUTHENTICATED.value}'"
            )
        return f"/{self.owner_category.value}/{self.owner}"

    @classmethod
    def from_file(cls, path: Path) -> Self:
        return cls.model_validate(yaml.safe_load(path.read_text()) or {})
