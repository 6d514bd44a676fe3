"""Exception types raised by prsift."""


class PrsiftError(Exception):
    """Base class for prsift errors."""


class InvalidCursor(PrsiftError, ValueError):
    """Pagination cursor is malformed or semantically invalid."""


class InvalidConfiguration(PrsiftError, ValueError):
    """A configured constant (e.g. the default page size) is unusable."""


class RemoteFetchError(PrsiftError):
    """A REST fetch against the GitHub API failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GraphQueryFailure(PrsiftError):
    """The review-thread GraphQL query failed or returned errors."""
