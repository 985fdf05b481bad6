"""Component factory."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import closing, contextmanager
from typing import Self

import httpx
import structlog
from structlog.stdlib import BoundLogger

from .config import RegistryConfig
from .services.browser import Browser
from .services.deletion import DeletionEngine
from .services.resolver import PackageResolver, VersionResolver
from .storage.github import GitHubPackagesClient


class Factory:
    """Build reaper components that share one authenticated client.

    Parameters
    ----------
    config
        Registry configuration.
    client
        Registry client, already authenticated.
    logger
        Logger to use for messages.
    """

    @classmethod
    @contextmanager
    def standalone(
        cls,
        config: RegistryConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> Iterator[Self]:
        """Context manager for reaper components.

        Parameters
        ----------
        config
            Registry configuration.
        transport
            HTTP transport override, for the test suite.

        Yields
        ------
        Factory
            Newly-created factory.  The registry client is closed on exit.
        """
        logger = structlog.get_logger(__name__)
        client = GitHubPackagesClient(config, transport=transport)
        with closing(client):
            client.authenticate(config.auth)
            logger.debug(f"Using registry {client.name}")
            yield cls(config, client, logger)

    def __init__(
        self,
        config: RegistryConfig,
        client: GitHubPackagesClient,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._client = client
        self._logger = logger

    def create_package_resolver(self) -> PackageResolver:
        return PackageResolver(self._client, self._config.package_type)

    def create_version_resolver(self) -> VersionResolver:
        return VersionResolver(self._client)

    def create_deletion_engine(self) -> DeletionEngine:
        if self._config.dry_run:
            self._logger.info("Dry run: nothing will be deleted")
        return DeletionEngine(
            self._client,
            self.create_package_resolver(),
            self.create_version_resolver(),
            dry_run=self._config.dry_run,
        )

    def create_browser(self, package_name: str) -> Browser:
        return Browser(
            self.create_deletion_engine(),
            self.create_package_resolver(),
            self.create_version_resolver(),
            package_name,
        )
