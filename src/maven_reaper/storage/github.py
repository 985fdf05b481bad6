"""Storage driver for the GitHub package registry API."""

import logging
import sys
from typing import Any, Self, TypeAlias

import httpx
import structlog

from ..config import RegistryAuth, RegistryConfig
from ..exceptions import RegistryError

JSONRecord: TypeAlias = dict[str, Any]


class GitHubPackagesClient:
    """Synchronous client for the packages endpoints of the GitHub API.

    Everything is blocking and sequential.  Listing walks every page before
    returning, and nothing here retries a request that got a response; the
    only retries are connection-level ones done by the HTTP transport.

    Parameters
    ----------
    cfg
        Registry configuration.
    transport
        Transport to use instead of the default network transport.
        Intended for the test suite.
    """

    def __init__(
        self,
        cfg: RegistryConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        log_level = logging.DEBUG if cfg.debug else logging.INFO
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        )
        self._logger = structlog.get_logger(__name__)

        self._url = str(cfg.api_url).rstrip("/")
        self._owner_path = cfg.owner_path
        self._package_type = cfg.package_type
        self._page_size = cfg.page_size
        if transport is None:
            transport = httpx.HTTPTransport(retries=cfg.retries)
        self._http_client = httpx.Client(transport=transport)
        self._http_client.headers.update(
            {
                "accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )
        self.name = f"{self._url}{self._owner_path}/{self._package_type}"

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._http_client.close()

    def authenticate(self, auth: RegistryAuth) -> None:
        """Use the token as a bearer token.  Without one, requests are
        anonymous and listing may work while deletion will not.
        """
        if auth.token is None:
            self._logger.warning("No registry token supplied")
            return
        token = auth.token.get_secret_value()
        self._http_client.headers["authorization"] = f"Bearer {token}"

    def packages_path(self) -> str:
        return f"{self._owner_path}/packages"

    def package_path(self, package_name: str) -> str:
        return (
            f"{self._owner_path}/packages/{self._package_type}/{package_name}"
        )

    def versions_path(self, package_name: str) -> str:
        return f"{self.package_path(package_name)}/versions"

    def version_path(self, package_name: str, version_id: int | str) -> str:
        return f"{self.versions_path(package_name)}/{version_id}"

    def list(
        self, resource: str, params: dict[str, Any] | None = None
    ) -> list[JSONRecord]:
        """GET every page of a collection and return the concatenation, in
        the order the registry yields them.

        Raises
        ------
        RegistryError
            Any page could not be fetched.
        """
        url = f"{self._url}{resource}"
        query: dict[str, Any] = dict(params or {})
        query["per_page"] = self._page_size
        page = 1
        results: list[JSONRecord] = []
        while True:
            self._logger.debug(
                f"Requesting {resource}: records "
                f"{(page - 1) * self._page_size + 1}-{page * self._page_size}"
            )
            query["page"] = page
            records = self._get_json(url, query)
            if not isinstance(records, list):
                raise RegistryError(
                    f"Expected a list from {url}", url=url, body=str(records)
                )
            results.extend(records)
            if len(records) < self._page_size:
                break
            page += 1
        self._logger.debug(f"Found {len(results)} records at {resource}")
        return results

    def get(self, resource: str) -> JSONRecord:
        """GET a single record.

        Raises
        ------
        RegistryError
            The record could not be fetched.
        """
        url = f"{self._url}{resource}"
        self._logger.debug(f"Requesting {resource}")
        record = self._get_json(url, None)
        if not isinstance(record, dict):
            raise RegistryError(
                f"Expected an object from {url}", url=url, body=str(record)
            )
        return record

    def delete(self, resource: str) -> httpx.Response:
        """Issue a DELETE.  A non-2xx response is returned to the caller,
        not raised; only transport failures raise.

        Raises
        ------
        RegistryError
            The registry could not be reached.
        """
        url = f"{self._url}{resource}"
        self._logger.debug(f"Deleting {resource}")
        try:
            return self._http_client.delete(url)
        except httpx.TransportError as exc:
            raise RegistryError(f"Cannot reach {url}: {exc}", url=url) from exc

    def _get_json(self, url: str, params: dict[str, Any] | None) -> Any:
        try:
            r = self._http_client.get(url, params=params)
        except httpx.TransportError as exc:
            raise RegistryError(f"Cannot reach {url}: {exc}", url=url) from exc
        if r.is_error:
            raise RegistryError(
                f"GET {url} failed",
                status_code=r.status_code,
                url=url,
                body=r.text,
            )
        return r.json()
