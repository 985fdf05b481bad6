"""Exceptions raised by the maven reaper."""

__all__ = ["PackageNameError", "RegistryError"]


class RegistryError(Exception):
    """The registry could not be reached or answered with an error.

    Parameters
    ----------
    message
        Human-readable description.
    status_code
        HTTP status, if a response was received.
    url
        URL of the failed request.
    body
        Response body, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.body = body

    def __str__(self) -> str:
        msg = super().__str__()
        if self.status_code is not None:
            msg = f"{msg} (status {self.status_code})"
        if self.body:
            msg = f"{msg}: {self.body}"
        return msg


class PackageNameError(ValueError):
    """A package name cannot be split into group and artifact."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Package name '{name}' cannot be split into group and artifact"
        )
        self.name = name
