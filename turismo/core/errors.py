from __future__ import annotations


class RatingError(Exception):
    """Base class for rating aggregation failures."""


class InvalidArgument(RatingError):
    pass


class NotFound(RatingError):
    pass


class StoreFailure(RatingError):
    pass
