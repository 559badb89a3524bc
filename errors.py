# Error kinds raised by the lookup adapters and the calculator.
# The message of each error is what gets shown to the user.


class CommuteError(Exception):
    """Base class for every failure that ends a calculation or a lookup."""

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(CommuteError):
    """Malformed input, detected before any network call."""


class ServiceError(CommuteError):
    """An external service answered with a non-success status or could not be reached."""


class NotFoundError(CommuteError):
    """The geocoding service answered but had no usable location."""


class NoRouteError(CommuteError):
    """The routing service answered but found no path."""
