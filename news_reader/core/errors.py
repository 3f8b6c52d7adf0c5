"""Exception types surfaced to callers of the news reader."""

from __future__ import annotations


class NewsReaderError(Exception):
    """Base class for errors raised by the news reader."""


class InvalidRequestError(NewsReaderError):
    """The caller supplied missing or invalid input.

    Rejected immediately with an explanatory message; the HTTP layer maps
    it to status 400.
    """


class FeedValidationError(InvalidRequestError):
    """A submitted feed could not be fetched or parsed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Feed at {url} is not a valid RSS/Atom feed: {reason}")
        self.url = url
        self.reason = reason
