# Entrius 2025

"""Error taxonomy shared by the fleet iterator, the GitHub client and the CLI."""

from typing import Optional

from repofleet.constants import RETRYABLE_STATUSES


class RepoFleetError(Exception):
    """Base class for every error raised by repo-fleet."""


class ConfigError(RepoFleetError):
    """Missing or invalid configuration, or a command invoked without required criteria.

    Raised before any network or disk I/O happens.
    """


class FatalError(RepoFleetError):
    """Aborts the whole command with a non-zero exit."""


class EmptyResultError(FatalError):
    """No repository matched the configured sources."""


class CacheIOError(FatalError):
    """The cache directory could not be created."""


class DiscoveryError(FatalError):
    """A configured organization, repository or search query could not be listed."""


class HttpError(RepoFleetError):
    """A GitHub API call answered with a status >= 400."""

    def __init__(
        self,
        status: int,
        message: str = "",
        url: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        self.status = status
        self.message = message
        self.url = url
        self.retry_after = retry_after  # seconds GitHub asked us to wait when rate limited
        super().__init__(self._describe())

    def _describe(self) -> str:
        where = f" for {self.url}" if self.url else ""
        detail = f": {self.message}" if self.message else ""
        return f"HTTP {self.status}{where}{detail}"

    @property
    def retryable(self) -> bool:
        return isinstance(self, TransientFetchError)


class TransientFetchError(HttpError):
    """An HttpError worth retrying: rate limits, 5xx answers and connection failures (status 0)."""


def http_error_for(
    status: int,
    message: str = "",
    url: Optional[str] = None,
    retry_after: Optional[float] = None,
) -> HttpError:
    """Build the most specific HttpError subclass for a status code."""
    if status in RETRYABLE_STATUSES:
        return TransientFetchError(status, message, url, retry_after)
    return HttpError(status, message, url, retry_after)


class PerRepositoryError(RepoFleetError):
    """Listing items for one repository failed after all attempts."""

    def __init__(self, repository_key: str, cause: BaseException):
        self.repository_key = repository_key
        self.cause = cause
        super().__init__(f"{repository_key}: {cause}")
