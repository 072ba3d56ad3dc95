"""Exceptions raised by sharptask."""


class SharptaskError(Exception):
    """Base exception for sharptask errors."""

    pass


class ConfigError(SharptaskError):
    """Settings are unusable (e.g. an unknown timezone)."""

    pass


class StoreError(SharptaskError):
    """Base exception for task store errors."""

    pass


class StoreUnavailableError(StoreError):
    """The task store cannot be reached or queried.

    This is the only error that aborts a whole sync run.
    """

    pass


class StoreConstraintViolationError(StoreError):
    """The task store rejected a patch."""

    pass
