"""Exceptions surfaced to callers of the aggregation core.

Upstream-provider and embedding failures never appear here: they are
absorbed where they happen and reduce to empty or missing data.
"""


class ValidationError(ValueError):
    """A caller broke the contract of the call (empty keyword, bad filter, ...)."""


class StoreUnavailableError(RuntimeError):
    """The article/subscription store cannot be reached at all."""
