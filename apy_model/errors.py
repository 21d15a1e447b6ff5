class ApyModelError(Exception):
    """Base class for errors raised by the APY model."""


class InvalidArgument(ApyModelError, ValueError):
    """Unknown asset or strategy identifier passed to a mutation."""


class FetchError(ApyModelError):
    """Upstream data needed for a projection cycle could not be retrieved."""
